"""
Analyzer interface for the repository catalogue.

Two implementations exist: RemoteAnalyzer (LLM-backed) and DeterministicAnalyzer
(keyword and pattern based). The mode is chosen once by build_analyzer(). When the
remote mode is active it is wrapped in FallbackAnalyzer, which re-runs a single
failed call on the deterministic implementation.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional

from repocatalog.config import DEFAULT_MODEL_NAME
from repocatalog.errors import CapabilityError


@dataclass
class Classification:
    """Category label plus the reasoning behind it."""

    label: str
    rationale: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ExtractedTool:
    """A tool or capability found in a repository."""

    name: str
    description: str = ""
    type: str = "function"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class Analyzer(ABC):
    """
    Base class for analyzers.

    Subclasses must implement classify(), extract_tools(), compare() and recommend().
    """

    @property
    def mode(self) -> str:
        """Short name of the analysis mode, used in logs and reports."""
        return type(self).__name__

    @abstractmethod
    def classify(self, text: str, repository_name: str) -> Classification:
        """
        Assign a repository to one taxonomy category.

        Args:
            text: Flattened repository content.
            repository_name: Name of the repository.

        Returns:
            Classification with label and rationale.
        """

    @abstractmethod
    def extract_tools(self, text: str, repository_name: str) -> List[ExtractedTool]:
        """List the tools/functions a repository provides."""

    @abstractmethod
    def compare(self, repositories: List[Dict[str, Any]], category: str) -> str:
        """
        Compare repositories that share a category.

        Args:
            repositories: Repository dicts as returned by the Store.
            category: The shared category label.

        Returns:
            Comparison narrative.
        """

    @abstractmethod
    def recommend(
        self, aggregate_stats: Dict[str, Any], user_needs: Optional[str] = None
    ) -> str:
        """Produce recommendations over the whole catalogue."""


class FallbackAnalyzer(Analyzer):
    """
    Runs every call on a primary analyzer and re-runs it on a fallback analyzer
    when the primary raises CapabilityError.

    A failure only affects the call it happened in; the next call tries the primary again.
    """

    def __init__(self, primary: Analyzer, fallback: Analyzer):
        self.primary = primary
        self.fallback = fallback
        self.logger = logging.getLogger(__name__)

    @property
    def mode(self) -> str:
        return f"{self.primary.mode} (fallback: {self.fallback.mode})"

    def _call(self, operation: str, *args, **kwargs):
        try:
            return getattr(self.primary, operation)(*args, **kwargs)
        except CapabilityError as e:
            self.logger.warning(
                f"{operation} failed on {self.primary.mode}, using {self.fallback.mode}: {e}"
            )
            return getattr(self.fallback, operation)(*args, **kwargs)

    def classify(self, text: str, repository_name: str) -> Classification:
        return self._call("classify", text, repository_name)

    def extract_tools(self, text: str, repository_name: str) -> List[ExtractedTool]:
        return self._call("extract_tools", text, repository_name)

    def compare(self, repositories: List[Dict[str, Any]], category: str) -> str:
        return self._call("compare", repositories, category)

    def recommend(
        self, aggregate_stats: Dict[str, Any], user_needs: Optional[str] = None
    ) -> str:
        return self._call("recommend", aggregate_stats, user_needs)


def build_analyzer(api_key: Optional[str] = None, model_name: str = DEFAULT_MODEL_NAME) -> Analyzer:
    """
    Select the analysis mode once, based on whether a credential is available.

    Args:
        api_key (Optional[str]): OpenAI API key; None or empty selects the deterministic mode.
        model_name (str): Chat model used by the remote analyzer.

    Returns:
        Analyzer: FallbackAnalyzer(RemoteAnalyzer, DeterministicAnalyzer) or DeterministicAnalyzer.
    """
    from repocatalog.deterministic_analyzer import DeterministicAnalyzer

    logger = logging.getLogger(__name__)
    if not api_key:
        logger.warning(
            "OPENAI_API_KEY environment variable is not set. "
            "Using deterministic keyword analysis instead of the LLM."
        )
        return DeterministicAnalyzer()

    from repocatalog.llm_service import LLMService
    from repocatalog.remote_analyzer import RemoteAnalyzer

    llm_service = LLMService(api_key=api_key, model_name=model_name)
    return FallbackAnalyzer(primary=RemoteAnalyzer(llm_service), fallback=DeterministicAnalyzer())
