"""
SQLAlchemy models for the repository catalogue.

Five tables: repositories, tools, categories, analysis_results and comparisons.
Tools and analysis results reference their repository through a real foreign key;
comparisons keep the compared repository ids as a serialized JSON list.
"""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def _utcnow():
    return datetime.now(timezone.utc)


def _isoformat(value):
    return value.isoformat() if value is not None else None


class Repository(Base):
    """A tracked source repository. The url is the natural key."""
    __tablename__ = "repositories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    url = Column(String(2048), nullable=False, unique=True)
    description = Column(Text, nullable=False, default="")
    raw_content = Column(Text, nullable=True)  # flattened repository dump
    category = Column(String(100), nullable=True, index=True)
    extra_metadata = Column("metadata", JSON, nullable=False, default=dict)
    processed_at = Column(DateTime, nullable=True)  # set when raw_content is stored

    tools = relationship("Tool", back_populates="repository")
    analysis_results = relationship("AnalysisResult", back_populates="repository")

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "url": self.url,
            "description": self.description,
            "raw_content": self.raw_content,
            "category": self.category,
            "metadata": self.extra_metadata or {},
            "processed_at": _isoformat(self.processed_at),
        }

    def __repr__(self):
        return f"<Repository(id={self.id}, name='{self.name}', url='{self.url}')>"


class Tool(Base):
    """A capability extracted from one repository. Names are not unique."""
    __tablename__ = "tools"

    id = Column(Integer, primary_key=True, autoincrement=True)
    repository_id = Column(Integer, ForeignKey("repositories.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    type = Column(String(50), nullable=True)  # function, api, service, utility, ...
    extra_metadata = Column("metadata", JSON, nullable=False, default=dict)

    repository = relationship("Repository", back_populates="tools")

    def to_dict(self):
        return {
            "id": self.id,
            "repository_id": self.repository_id,
            "name": self.name,
            "description": self.description,
            "type": self.type,
            "metadata": self.extra_metadata or {},
        }


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=_utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "created_at": _isoformat(self.created_at),
        }


class AnalysisResult(Base):
    """Append-only audit record of one analyzer call against one repository."""
    __tablename__ = "analysis_results"

    id = Column(Integer, primary_key=True, autoincrement=True)
    repository_id = Column(Integer, ForeignKey("repositories.id"), nullable=False, index=True)
    analysis_type = Column(String(50), nullable=False)  # categorization, tool_extraction
    result = Column(Text, nullable=True)
    score = Column(Float, nullable=True)
    analyzed_at = Column(DateTime, nullable=False, default=_utcnow)

    repository = relationship("Repository", back_populates="analysis_results")

    def to_dict(self):
        return {
            "id": self.id,
            "repository_id": self.repository_id,
            "analysis_type": self.analysis_type,
            "result": self.result,
            "score": self.score,
            "analyzed_at": _isoformat(self.analyzed_at),
        }


class Comparison(Base):
    """Append-only comparison of every repository in one category."""
    __tablename__ = "comparisons"

    id = Column(Integer, primary_key=True, autoincrement=True)
    category = Column(String(100), nullable=False, index=True)
    repository_ids = Column(JSON, nullable=False, default=list)  # ordered list of ints
    comparison_result = Column(Text, nullable=True)
    recommendations = Column(Text, nullable=True)
    compared_at = Column(DateTime, nullable=False, default=_utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "category": self.category,
            "repository_ids": list(self.repository_ids or []),
            "comparison_result": self.comparison_result,
            "recommendations": self.recommendations,
            "compared_at": _isoformat(self.compared_at),
        }
