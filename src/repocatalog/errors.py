"""
Exception types for the repository catalogue.
"""


class RepoCatalogError(Exception):
    """Base class for all repocatalog errors."""


class NotFoundError(RepoCatalogError):
    """A referenced repository (or other entity) does not exist."""


class ForeignKeyViolationError(RepoCatalogError):
    """A tool or analysis result references an unknown repository."""


class ExtractionError(RepoCatalogError):
    """The content extractor could not produce a text blob for a repository."""


class CapabilityError(RepoCatalogError):
    """
    The remote LLM call failed or returned content that could not be used.

    Raised by the remote analyzer only; FallbackAnalyzer absorbs it.
    """


class MalformedBatchInputError(RepoCatalogError):
    """A batch file is missing, is not valid JSON, or has the wrong shape."""
