"""
Data Model - Shared types for the ingestion and query pipelines

License: MIT
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

Scalar = Union[str, int, float, bool]


@dataclass(frozen=True)
class Document:
    """Raw document text with its source identifier and metadata."""

    text: str
    source: str
    metadata: Dict[str, Scalar] = field(default_factory=dict)


@dataclass(frozen=True)
class Chunk:
    """
    Contiguous slice of a document's text.

    ``char_start``/``char_end`` are offsets into the trimmed document text.
    """

    text: str
    source: str
    chunk_index: int
    char_start: int
    char_end: int
    metadata: Dict[str, Scalar] = field(default_factory=dict)

    def index_metadata(self) -> Dict[str, Scalar]:
        """Metadata persisted next to the vector in the index."""
        return {
            **self.metadata,
            "source": self.source,
            "chunk_index": self.chunk_index,
            "char_start": self.char_start,
            "char_end": self.char_end,
        }


@dataclass(frozen=True)
class IndexEntry:
    """A chunk with its stable id and embedding."""

    id: str
    vector: List[float]
    chunk: Chunk

    @property
    def text(self) -> str:
        return self.chunk.text


@dataclass(frozen=True)
class ScoredChunk:
    """One retrieval hit."""

    chunk: Chunk
    score: float
    id: Optional[str] = None


@dataclass(frozen=True)
class Prompt:
    """
    Model prompt with an instruction channel and a question channel.

    The assembled context lives inside ``system`` as plain text; the
    question is sent as the user message.
    """

    system: str
    question: str

    def to_messages(self) -> List[Dict[str, Any]]:
        return [
            {"role": "system", "content": self.system},
            {"role": "user", "content": self.question},
        ]
