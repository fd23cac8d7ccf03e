"""
Relational store for the repository catalogue.

The Store owns every row in the five catalogue tables. Each public method runs in
its own transaction, so a single call is atomic, but consecutive calls are never
grouped: callers must tolerate partial state after a crash between two calls.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import create_engine, event, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from repocatalog.config import DEFAULT_DATABASE_URL
from repocatalog.errors import ForeignKeyViolationError, NotFoundError
from repocatalog.models import AnalysisResult, Base, Category, Comparison, Repository, Tool


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Store:
    """
    Transactional CRUD surface over the catalogue schema.

    Results are returned as plain dictionaries; ORM objects never leave the Store.
    Use as a context manager (or call close()) to release the engine.
    """

    def __init__(self, database_url: str = DEFAULT_DATABASE_URL):
        """
        Open (and if needed create) the catalogue database.

        Args:
            database_url (str): SQLAlchemy database URL, e.g. "sqlite:///repositories.db".
        """
        self.logger = logging.getLogger(__name__)
        self.database_url = database_url
        self.engine = create_engine(database_url)
        if self.engine.dialect.name == "sqlite":
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)
        Base.metadata.create_all(self.engine)
        self._session_factory = sessionmaker(bind=self.engine)
        self.logger.debug(f"Store opened at {database_url}")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()
        return False

    def close(self):
        """Dispose of the engine and its pooled connections."""
        self.engine.dispose()

    # Repository methods

    def upsert_repository(self, name: str, url: str, description: str = "") -> int:
        """
        Register a repository, or resolve the id of the one already stored for this url.

        An existing row is returned untouched; name and description are not updated.

        Returns:
            int: The repository id.
        """
        existing_id = self._find_repository_id(url)
        if existing_id is not None:
            self.logger.info(f"Repository already exists for {url}, using ID {existing_id}")
            return existing_id

        try:
            with self._session_factory.begin() as session:
                repository = Repository(name=name, url=url, description=description or "")
                session.add(repository)
                session.flush()
                repository_id = repository.id
        except IntegrityError:
            # Another writer stored the same url between the lookup and the insert
            repository_id = self._find_repository_id(url)
            if repository_id is None:
                raise
            return repository_id

        self.logger.info(f"Repository added with ID {repository_id}: {name}")
        return repository_id

    def _find_repository_id(self, url: str) -> Optional[int]:
        with self._session_factory() as session:
            return session.execute(
                select(Repository.id).where(Repository.url == url)
            ).scalar_one_or_none()

    def get_repository(self, repository_id: int) -> Dict[str, Any]:
        with self._session_factory() as session:
            repository = session.get(Repository, repository_id)
            if repository is None:
                raise NotFoundError(f"Repository {repository_id} not found")
            return repository.to_dict()

    def set_raw_content(self, repository_id: int, blob: str) -> None:
        """Store the flattened repository content and stamp the processing time."""
        with self._session_factory.begin() as session:
            repository = session.get(Repository, repository_id)
            if repository is None:
                raise NotFoundError(f"Repository {repository_id} not found")
            repository.raw_content = blob
            repository.processed_at = datetime.now(timezone.utc)

    def set_category(self, repository_id: int, category: str) -> None:
        with self._session_factory.begin() as session:
            repository = session.get(Repository, repository_id)
            if repository is None:
                raise NotFoundError(f"Repository {repository_id} not found")
            repository.category = category

    def list_repositories(self) -> List[Dict[str, Any]]:
        """All repositories in ingestion (id) order."""
        with self._session_factory() as session:
            repositories = session.execute(
                select(Repository).order_by(Repository.id)
            ).scalars()
            return [repository.to_dict() for repository in repositories]

    def list_repositories_by_category(self, category: str) -> List[Dict[str, Any]]:
        with self._session_factory() as session:
            repositories = session.execute(
                select(Repository)
                .where(Repository.category == category)
                .order_by(Repository.id)
            ).scalars()
            return [repository.to_dict() for repository in repositories]

    # Tool methods

    def add_tool(
        self,
        repository_id: int,
        name: str,
        description: Optional[str],
        type: Optional[str],
        metadata: Optional[Dict[str, Any]] = None,
    ) -> int:
        """
        Attach an extracted tool to a repository.

        Raises:
            ForeignKeyViolationError: If the repository does not exist.
        """
        try:
            with self._session_factory.begin() as session:
                if session.get(Repository, repository_id) is None:
                    raise ForeignKeyViolationError(
                        f"Cannot add tool '{name}': repository {repository_id} does not exist"
                    )
                tool = Tool(
                    repository_id=repository_id,
                    name=name,
                    description=description,
                    type=type,
                    extra_metadata=metadata or {},
                )
                session.add(tool)
                session.flush()
                return tool.id
        except IntegrityError as e:
            raise ForeignKeyViolationError(
                f"Cannot add tool '{name}' to repository {repository_id}: {e.orig}"
            ) from e

    def list_tools_by_repository(self, repository_id: int) -> List[Dict[str, Any]]:
        with self._session_factory() as session:
            tools = session.execute(
                select(Tool).where(Tool.repository_id == repository_id).order_by(Tool.id)
            ).scalars()
            return [tool.to_dict() for tool in tools]

    def list_all_tools(self) -> List[Dict[str, Any]]:
        """All tools, each joined with its owning repository's name and url."""
        with self._session_factory() as session:
            rows = session.execute(
                select(Tool, Repository.name, Repository.url)
                .join(Repository, Tool.repository_id == Repository.id)
                .order_by(Tool.id)
            ).all()
            tools = []
            for tool, repository_name, repository_url in rows:
                tool_dict = tool.to_dict()
                tool_dict["repository_name"] = repository_name
                tool_dict["repository_url"] = repository_url
                tools.append(tool_dict)
            return tools

    # Category methods

    def add_category(self, name: str, description: str = "") -> bool:
        """
        Register a category name. Registering an existing name is a no-op.

        Returns:
            bool: True if a new row was created.
        """
        with self._session_factory() as session:
            exists = session.execute(
                select(Category.id).where(Category.name == name)
            ).scalar_one_or_none()
        if exists is not None:
            return False

        try:
            with self._session_factory.begin() as session:
                session.add(Category(name=name, description=description))
        except IntegrityError:
            return False
        self.logger.debug(f"Registered category: {name}")
        return True

    def list_categories(self) -> List[Dict[str, Any]]:
        with self._session_factory() as session:
            categories = session.execute(select(Category).order_by(Category.id)).scalars()
            return [category.to_dict() for category in categories]

    # Analysis methods

    def record_analysis(
        self,
        repository_id: int,
        analysis_type: str,
        result: Optional[str],
        score: Optional[float] = None,
    ) -> int:
        """
        Append an analysis result. Earlier results of the same type are kept.

        Raises:
            ForeignKeyViolationError: If the repository does not exist.
        """
        try:
            with self._session_factory.begin() as session:
                if session.get(Repository, repository_id) is None:
                    raise ForeignKeyViolationError(
                        f"Cannot record {analysis_type} analysis: "
                        f"repository {repository_id} does not exist"
                    )
                analysis = AnalysisResult(
                    repository_id=repository_id,
                    analysis_type=analysis_type,
                    result=result,
                    score=score,
                )
                session.add(analysis)
                session.flush()
                return analysis.id
        except IntegrityError as e:
            raise ForeignKeyViolationError(
                f"Cannot record {analysis_type} analysis for repository {repository_id}: {e.orig}"
            ) from e

    def list_analysis_results(self, repository_id: int) -> List[Dict[str, Any]]:
        with self._session_factory() as session:
            results = session.execute(
                select(AnalysisResult)
                .where(AnalysisResult.repository_id == repository_id)
                .order_by(AnalysisResult.id)
            ).scalars()
            return [analysis.to_dict() for analysis in results]

    # Comparison methods

    def record_comparison(
        self,
        category: str,
        repository_ids: List[int],
        narrative: str,
        recommendations: str = "",
    ) -> int:
        """Append a comparison. Earlier comparisons for the category are kept."""
        with self._session_factory.begin() as session:
            comparison = Comparison(
                category=category,
                repository_ids=list(repository_ids),
                comparison_result=narrative,
                recommendations=recommendations,
            )
            session.add(comparison)
            session.flush()
            return comparison.id

    def list_comparisons_by_category(self, category: str) -> List[Dict[str, Any]]:
        with self._session_factory() as session:
            comparisons = session.execute(
                select(Comparison)
                .where(Comparison.category == category)
                .order_by(Comparison.id)
            ).scalars()
            return [comparison.to_dict() for comparison in comparisons]

    def list_comparisons(self) -> List[Dict[str, Any]]:
        with self._session_factory() as session:
            comparisons = session.execute(select(Comparison).order_by(Comparison.id)).scalars()
            return [comparison.to_dict() for comparison in comparisons]
