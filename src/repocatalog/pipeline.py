"""
Ingestion pipeline for the repository catalogue.

Processes one repository end to end:
Registered -> ContentFetched -> Classified -> ToolsExtracted -> Done, or Failed.

Registration is idempotent (the url resolves to the same id), but the later steps
append: running the pipeline again for the same url adds new tool and analysis rows.
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Protocol, Union

from repocatalog.analyzer import Analyzer
from repocatalog.errors import ExtractionError, MalformedBatchInputError
from repocatalog.store import Store

CATEGORIZATION = "categorization"
TOOL_EXTRACTION = "tool_extraction"


class ContentExtractor(Protocol):
    """Anything that can turn a repository url into a text blob."""

    def fetch(self, url: str, name: str) -> str:
        ...


class PipelineStage(Enum):
    REGISTERED = "registered"
    CONTENT_FETCHED = "content_fetched"
    CLASSIFIED = "classified"
    TOOLS_EXTRACTED = "tools_extracted"
    DONE = "done"
    FAILED = "failed"


@dataclass
class PipelineResult:
    """Outcome of one pipeline run."""

    success: bool
    stage: PipelineStage
    repository_id: Optional[int] = None
    category: Optional[str] = None
    tool_count: int = 0
    error: Optional[str] = None
    failed_stage: Optional[PipelineStage] = None

    def to_dict(self) -> Dict[str, Any]:
        if not self.success:
            return {
                "success": False,
                "error": self.error,
                "stage": self.stage.value,
                "failed_stage": self.failed_stage.value if self.failed_stage else None,
                "repository_id": self.repository_id,
            }
        return {
            "success": True,
            "repository_id": self.repository_id,
            "category": self.category,
            "tool_count": self.tool_count,
            "stage": self.stage.value,
        }


class IngestionPipeline:
    """
    Orchestrates store, extractor and analyzer for a single repository at a time.
    """

    def __init__(self, store: Store, analyzer: Analyzer, extractor: ContentExtractor):
        """
        Initialize the pipeline.

        Args:
            store (Store): Catalogue store; the caller owns its lifetime.
            analyzer (Analyzer): Analyzer selected for this run.
            extractor (ContentExtractor): Collaborator that produces the repository blob.
        """
        self.store = store
        self.analyzer = analyzer
        self.extractor = extractor
        self.logger = logging.getLogger(__name__)

    def process(self, url: str, name: str, description: str = "") -> PipelineResult:
        """
        Run the pipeline for one repository. Never raises.

        Args:
            url (str): Repository URL (natural key).
            name (str): Repository name.
            description (str): Free-text description.

        Returns:
            PipelineResult: Summary on success, or the error and the stage that failed.
        """
        self.logger.info(f"Processing repository: {name} ({url})")
        stage = PipelineStage.REGISTERED
        repository_id = None
        try:
            self.logger.info("Step 1: Registering repository...")
            repository_id = self.store.upsert_repository(name, url, description)

            stage = PipelineStage.CONTENT_FETCHED
            self.logger.info("Step 2: Fetching repository content...")
            blob = self.extractor.fetch(url, name)
            if not blob or not blob.strip():
                raise ExtractionError(f"Content extractor returned no content for {url}")
            self.store.set_raw_content(repository_id, blob)
            self.logger.info(f"Repository content saved ({len(blob)} chars)")

            stage = PipelineStage.CLASSIFIED
            self.logger.info("Step 3: Categorizing repository...")
            classification = self.analyzer.classify(blob, name)
            category = classification.label.strip()
            self.store.set_category(repository_id, category)
            self.store.record_analysis(
                repository_id, CATEGORIZATION, json.dumps(classification.to_dict())
            )
            self.logger.info(f"Category: {category}")

            stage = PipelineStage.TOOLS_EXTRACTED
            self.logger.info("Step 4: Extracting tools and functionalities...")
            tools = self.analyzer.extract_tools(blob, name)
            extracted_at = datetime.now(timezone.utc).isoformat()
            for tool in tools:
                self.store.add_tool(
                    repository_id,
                    tool.name,
                    tool.description,
                    tool.type,
                    {"extracted_at": extracted_at},
                )
            self.store.record_analysis(
                repository_id,
                TOOL_EXTRACTION,
                json.dumps([tool.to_dict() for tool in tools]),
            )
            self.logger.info(f"Extracted {len(tools)} tools")

        except Exception as e:
            self.logger.error(f"Error processing repository {name} during {stage.value}: {str(e)}")
            self.logger.debug("Pipeline failure details", exc_info=True)
            return PipelineResult(
                success=False,
                stage=PipelineStage.FAILED,
                repository_id=repository_id,
                error=str(e),
                failed_stage=stage,
            )

        self.logger.info(f"Successfully processed: {name}")
        return PipelineResult(
            success=True,
            stage=PipelineStage.DONE,
            repository_id=repository_id,
            category=category,
            tool_count=len(tools),
        )

    def process_batch(self, entries: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """
        Process repositories one after another. A failure is recorded and the batch continues.

        Args:
            entries: Dicts with "url", "name" and optional "description".

        Returns:
            List[Dict]: Each entry merged with its pipeline result.
        """
        results = []
        for entry in entries:
            result = self.process(entry["url"], entry["name"], entry.get("description") or "")
            results.append({**entry, **result.to_dict()})

        failures = sum(1 for result in results if not result["success"])
        self.logger.info(
            f"Batch complete: {len(results) - failures} succeeded, {failures} failed"
        )
        return results


def load_batch_file(path: Union[str, Path]) -> List[Dict[str, Any]]:
    """
    Read a batch file: a JSON array of {"url", "name", "description"?} objects.

    Raises:
        MalformedBatchInputError: If the file is unreadable, not JSON, or has the wrong shape.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            entries = json.load(f)
    except OSError as e:
        raise MalformedBatchInputError(f"Cannot read batch file {path}: {str(e)}") from e
    except json.JSONDecodeError as e:
        raise MalformedBatchInputError(f"Batch file {path} is not valid JSON: {str(e)}") from e

    if not isinstance(entries, list):
        raise MalformedBatchInputError(f"Batch file {path} must contain a JSON array")

    for index, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise MalformedBatchInputError(f"Batch entry {index} is not an object")
        for key in ("url", "name"):
            if not isinstance(entry.get(key), str) or not entry[key].strip():
                raise MalformedBatchInputError(f"Batch entry {index} has no '{key}'")
        description = entry.get("description")
        if description is not None and not isinstance(description, str):
            raise MalformedBatchInputError(f"Batch entry {index} has a non-string 'description'")

    return entries
