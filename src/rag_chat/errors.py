"""
Errors - Exception taxonomy for the RAG chat pipelines

Every failure raised by the ingestion and query pipelines derives from
RAGError so the entry points (CLI and HTTP handler) can catch them once.

License: MIT
"""

from typing import List, Optional, Sequence


class RAGError(Exception):
    """Base class for all pipeline errors."""


class ConfigurationError(RAGError, ValueError):
    """Missing or invalid settings. Fatal at startup."""


class LoadError(RAGError):
    """A document source could not be read."""

    def __init__(self, message: str, source: Optional[str] = None):
        super().__init__(message)
        self.source = source


class EmbeddingError(RAGError):
    """The embedding provider failed or returned malformed output."""


class VectorIndexError(RAGError):
    """
    An upsert or query against the vector index failed.

    Attributes:
        failed_ids: Entry ids that could not be written (upserts)
        query: Query text that could not be served (searches)
    """

    def __init__(
        self,
        message: str,
        failed_ids: Optional[Sequence[str]] = None,
        query: Optional[str] = None,
    ):
        super().__init__(message)
        self.failed_ids: List[str] = list(failed_ids or [])
        self.query = query


class GenerationError(RAGError):
    """The language model call failed before or during streaming."""

    def __init__(self, message: str, emitted: int = 0):
        super().__init__(message)
        self.emitted = emitted
