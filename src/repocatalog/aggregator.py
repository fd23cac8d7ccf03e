"""
Aggregation and reporting for the repository catalogue.

Reads the store, groups repositories by category, compares every category with two
or more members and asks the analyzer for corpus-wide recommendations.
"""

import logging
from collections import Counter
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from repocatalog.analyzer import Analyzer
from repocatalog.config import UNCATEGORIZED
from repocatalog.errors import NotFoundError
from repocatalog.store import Store


def group_by_category(repositories: List[Dict[str, Any]]) -> Dict[str, List[Dict[str, Any]]]:
    """Group repositories by category, keeping first-seen order for groups and members."""
    groups: Dict[str, List[Dict[str, Any]]] = {}
    for repository in repositories:
        category = (repository.get("category") or "").strip() or UNCATEGORIZED
        groups.setdefault(category, []).append(repository)
    return groups


class Aggregator:
    """
    Builds cross-repository comparisons and the summary report.
    """

    def __init__(self, store: Store, analyzer: Analyzer):
        self.store = store
        self.analyzer = analyzer
        self.logger = logging.getLogger(__name__)

    def run(self, user_needs: Optional[str] = None) -> Dict[str, Any]:
        """
        Compare every category and produce the catalogue report.

        Each run appends new Comparison rows; earlier ones are left untouched.
        Store failures propagate: there is no partial report.

        Args:
            user_needs (Optional[str]): Free-text need statement passed to recommend().

        Returns:
            Dict: The report (summary, comparisons, recommendations, timestamp).

        Raises:
            NotFoundError: If the catalogue holds no repositories.
        """
        repositories = self.store.list_repositories()
        self.logger.info(f"Found {len(repositories)} repositories in database")
        if not repositories:
            raise NotFoundError("No repositories found. Process some repositories first.")

        groups = group_by_category(repositories)
        for category, members in groups.items():
            self.logger.info(f"  - {category}: {len(members)} repositories")
            self.store.add_category(category, f"Repositories categorized as {category}")

        category_analyses = {}
        for category, members in groups.items():
            if len(members) < 2:
                self.logger.info(
                    f'Category "{category}" has only 1 repository, skipping comparison'
                )
                continue

            self.logger.info(f"Analyzing category: {category}")
            comparison = self.analyzer.compare(members, category)
            category_analyses[category] = comparison
            self.store.record_comparison(
                category, [member["id"] for member in members], comparison, ""
            )

        all_tools = self.store.list_all_tools()
        tools_by_type = Counter((tool.get("type") or "").strip() or "unknown" for tool in all_tools)
        self.logger.info(f"Total tools across all repositories: {len(all_tools)}")

        recommendations = self.analyzer.recommend(
            {
                "categories": list(groups),
                "repository_count": len(repositories),
                "tool_count": len(all_tools),
                "category_analyses": category_analyses,
            },
            user_needs,
        )

        return {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "summary": {
                "total_repositories": len(repositories),
                "total_tools": len(all_tools),
                "categories": len(groups),
                "categories_detail": [
                    {
                        "name": category,
                        "count": len(members),
                        "repositories": [
                            {"id": member["id"], "name": member["name"], "url": member["url"]}
                            for member in members
                        ],
                    }
                    for category, members in groups.items()
                ],
                "tools_by_type": dict(tools_by_type),
            },
            "comparisons": category_analyses,
            "recommendations": recommendations,
        }

    def category_report(self, category: str) -> Dict[str, Any]:
        """Repositories, tools and stored comparisons for one category."""
        repositories = self.store.list_repositories_by_category(category)
        tools = []
        for repository in repositories:
            tools.extend(self.store.list_tools_by_repository(repository["id"]))

        return {
            "category": category,
            "repository_count": len(repositories),
            "repositories": [
                {key: value for key, value in repository.items() if key != "raw_content"}
                for repository in repositories
            ],
            "tool_count": len(tools),
            "tools": tools,
            "comparisons": self.store.list_comparisons_by_category(category),
        }

    def tools_listing(self) -> Dict[str, Any]:
        """All tools grouped by owning repository."""
        tools = self.store.list_all_tools()
        by_repository: Dict[str, Dict[str, Any]] = {}
        for tool in tools:
            entry = by_repository.setdefault(
                tool["repository_url"],
                {"repository": tool["repository_name"], "url": tool["repository_url"], "tools": []},
            )
            entry["tools"].append(
                {"name": tool["name"], "description": tool["description"], "type": tool["type"]}
            )

        return {"total_tools": len(tools), "repositories": list(by_repository.values())}
