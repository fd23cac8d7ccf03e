"""
LLM-backed analyzer for the repository catalogue.

Every method raises CapabilityError on failure instead of degrading silently;
FallbackAnalyzer decides what to do about it.
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional

from repocatalog.analyzer import Analyzer, Classification, ExtractedTool
from repocatalog.config import (
    CATEGORIES,
    CLASSIFY_CONTENT_CHARS,
    COMPARE_CONTENT_CHARS,
    EXTRACT_CONTENT_CHARS,
)
from repocatalog.errors import CapabilityError
from repocatalog.llm_service import LLMService
from repocatalog.prompts import (
    CLASSIFY_PROMPT,
    CLASSIFY_SYSTEM_PROMPT,
    COMPARE_PROMPT,
    COMPARE_SYSTEM_PROMPT,
    EXTRACT_TOOLS_PROMPT,
    EXTRACT_TOOLS_SYSTEM_PROMPT,
    RECOMMEND_PROMPT,
    RECOMMEND_SYSTEM_PROMPT,
)

_CODE_FENCE = re.compile(r"```[\w-]*[ \t]*\n(.*?)\n?[ \t]*```", re.DOTALL)


def strip_code_fence(reply: str) -> str:
    """Return the body of the first fenced code block in reply, or reply itself."""
    match = _CODE_FENCE.search(reply)
    return match.group(1).strip() if match else reply.strip()


class RemoteAnalyzer(Analyzer):
    """
    Analyzer that delegates to the remote LLM through an LLMService.
    """

    def __init__(self, llm_service: LLMService):
        """
        Initialize the remote analyzer.

        Args:
            llm_service (LLMService): The LLM service instance.
        """
        self.llm_service = llm_service
        self.logger = logging.getLogger(__name__)

    def classify(self, text: str, repository_name: str) -> Classification:
        self.logger.info(f"Categorizing {repository_name} with LLM")
        prompt = CLASSIFY_PROMPT.format(
            categories="\n".join(f"- {category}" for category in CATEGORIES),
            repository_name=repository_name,
            content=text[:CLASSIFY_CONTENT_CHARS],
        )
        reply = self.llm_service.complete(
            CLASSIFY_SYSTEM_PROMPT, prompt, temperature=0.3, max_tokens=200
        )

        first_line, _, rest = reply.strip().partition("\n")
        label = first_line.strip()
        if not label:
            raise CapabilityError(f"LLM returned no category for {repository_name}")
        return Classification(label=label, rationale=rest.strip())

    def extract_tools(self, text: str, repository_name: str) -> List[ExtractedTool]:
        self.logger.info(f"Extracting tools from {repository_name} with LLM")
        prompt = EXTRACT_TOOLS_PROMPT.format(
            repository_name=repository_name,
            content=text[:EXTRACT_CONTENT_CHARS],
        )
        reply = self.llm_service.complete(
            EXTRACT_TOOLS_SYSTEM_PROMPT, prompt, temperature=0.3, max_tokens=1000
        )

        try:
            payload = json.loads(strip_code_fence(reply))
        except json.JSONDecodeError as e:
            raise CapabilityError(f"Tool extraction reply is not valid JSON: {e}") from e

        if not isinstance(payload, list):
            raise CapabilityError(
                f"Tool extraction reply must be a JSON array, got {type(payload).__name__}"
            )

        tools = []
        for item in payload:
            if not isinstance(item, dict) or not str(item.get("name") or "").strip():
                raise CapabilityError(f"Tool entry without a name: {item!r}")
            tools.append(
                ExtractedTool(
                    name=str(item["name"]).strip(),
                    description=str(item.get("description") or ""),
                    type=str(item.get("type") or "function"),
                )
            )
        return tools

    def compare(self, repositories: List[Dict[str, Any]], category: str) -> str:
        self.logger.info(f"Comparing {len(repositories)} repositories in '{category}' with LLM")
        summaries = [
            {
                "name": repository.get("name"),
                "description": repository.get("description"),
                "category": repository.get("category"),
                "summary": (repository.get("raw_content") or "")[:COMPARE_CONTENT_CHARS]
                or "No output available",
            }
            for repository in repositories
        ]
        prompt = COMPARE_PROMPT.format(
            category=category,
            repositories=json.dumps(summaries, indent=2),
        )
        return self.llm_service.complete(
            COMPARE_SYSTEM_PROMPT, prompt, temperature=0.5, max_tokens=1500
        )

    def recommend(
        self, aggregate_stats: Dict[str, Any], user_needs: Optional[str] = None
    ) -> str:
        self.logger.info("Generating recommendations with LLM")
        prompt = RECOMMEND_PROMPT.format(
            analysis_results=json.dumps(aggregate_stats, indent=2, default=str),
            user_needs=user_needs or "General purpose recommendations",
        )
        return self.llm_service.complete(
            RECOMMEND_SYSTEM_PROMPT, prompt, temperature=0.6, max_tokens=1000
        )
