"""
Deterministic analyzer for the repository catalogue.

Used when no OpenAI API key is configured, and as the per-call fallback when the
remote analyzer fails. Every method is a pure function of its arguments.
"""

import logging
import re
from typing import Any, Dict, List, Optional

from repocatalog.analyzer import Analyzer, Classification, ExtractedTool
from repocatalog.config import CATEGORY_KEYWORDS, DEFAULT_CATEGORY, MAX_FALLBACK_TOOLS

# A declaration keyword, any chained modifiers ("export default async function"),
# then the declared identifier.
_DECLARATION = re.compile(
    r"\b(?:function|const|let|var|export|class|def)\s+"
    r"(?:(?:default|async|function\*?|const|let|var|class)\s+)*"
    r"([A-Za-z_]\w*)"
)

_MODIFIERS = {"default", "async", "function", "const", "let", "var", "class"}


class DeterministicAnalyzer(Analyzer):
    """
    Keyword and pattern based analyzer with no external calls.
    """

    def __init__(self, category_keywords: Optional[Dict[str, List[str]]] = None):
        """
        Initialize the deterministic analyzer.

        Args:
            category_keywords: Ordered category -> keyword list mapping. Defaults to
                the built-in taxonomy.
        """
        self.category_keywords = category_keywords or CATEGORY_KEYWORDS
        self.logger = logging.getLogger(__name__)

    def score_categories(self, text: str) -> Dict[str, int]:
        """Count the distinct keywords of each category found in text (case-insensitive)."""
        lowered = text.lower()
        return {
            category: sum(1 for keyword in keywords if keyword in lowered)
            for category, keywords in self.category_keywords.items()
        }

    def classify(self, text: str, repository_name: str) -> Classification:
        best_match = DEFAULT_CATEGORY
        max_matches = 0
        # Strictly greater: on a tie the category declared first keeps the lead
        for category, matches in self.score_categories(text).items():
            if matches > max_matches:
                max_matches = matches
                best_match = category

        self.logger.info(
            f"Keyword classification of {repository_name}: {best_match} ({max_matches} keywords)"
        )
        return Classification(
            label=best_match,
            rationale=(
                f"This repository appears to be related to {best_match} based on keyword "
                f"analysis. It contains functionality typical of this category."
            ),
        )

    def extract_tools(self, text: str, repository_name: str) -> List[ExtractedTool]:
        names = []
        for match in _DECLARATION.finditer(text):
            name = match.group(1)
            if name in _MODIFIERS or name in names:
                continue
            names.append(name)
            if len(names) >= MAX_FALLBACK_TOOLS:
                break

        if not names:
            return [
                ExtractedTool(
                    name=repository_name,
                    description="Main repository functionality",
                    type="service",
                )
            ]

        return [
            ExtractedTool(
                name=name,
                description=f"Function or tool extracted from {repository_name}",
                type="function",
            )
            for name in names
        ]

    def compare(self, repositories: List[Dict[str, Any]], category: str) -> str:
        differences = "\n".join(
            f"- {repository.get('name')}: "
            f"{repository.get('description') or 'Unique implementation approach'}"
            for repository in repositories
        )
        return (
            f'Comparison of {len(repositories)} repositories in the "{category}" category:\n'
            f"\n"
            f"Similarities:\n"
            f"- All repositories provide functionality related to {category}\n"
            f"- Common tools and patterns are used across implementations\n"
            f"\n"
            f"Differences:\n"
            f"{differences}\n"
            f"\n"
            f"Recommendations:\n"
            f"Consider your specific use case when choosing between these options. "
            f"Each has its strengths for different scenarios."
        )

    def recommend(
        self, aggregate_stats: Dict[str, Any], user_needs: Optional[str] = None
    ) -> str:
        return (
            "Based on the analysis, here are the recommendations:\n"
            "\n"
            "1. Consider the category that best matches your needs\n"
            "2. Review the tools available in each repository\n"
            "3. Compare features and choose the best fit\n"
            "4. Start with the most actively maintained repository\n"
            "\n"
            "The analysis shows diverse options across different categories, "
            "providing good coverage for various use cases."
        )
