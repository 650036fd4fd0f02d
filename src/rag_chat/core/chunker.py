"""
Chunker - Overlap-aware recursive character splitting

Part of the RAG chat service.
Ingestion pipeline, step 2: Document -> Chunks

License: MIT
"""

from typing import List, Sequence, Tuple
import logging

from .models import Chunk, Document

logger = logging.getLogger(__name__)

# Boundary preference: paragraph, then line, then word. Hard cut otherwise.
DEFAULT_SEPARATORS: Tuple[str, ...] = ("\n\n", "\n", " ")


class Chunker:
    """
    Split documents into overlapping character windows.

    Each window ends at the latest paragraph break it contains; failing that
    the latest line break, then the latest space, and only then is the text
    hard-cut at ``chunk_size``. A chunk ends just before its separator, so the
    separator opens the next chunk and no character is lost. Consecutive
    chunks share exactly ``chunk_overlap`` characters.
    """

    def __init__(
        self,
        chunk_size: int = 1000,
        chunk_overlap: int = 100,
        separators: Sequence[str] = DEFAULT_SEPARATORS,
    ):
        """
        Initialize the chunker.

        Args:
            chunk_size: Maximum number of characters per chunk
            chunk_overlap: Number of characters shared by consecutive chunks

        Raises:
            ValueError: If the size/overlap pair is invalid
        """
        if chunk_size < 1:
            raise ValueError(f"Chunk size must be at least 1, got {chunk_size}")
        if chunk_overlap < 0:
            raise ValueError(f"Chunk overlap cannot be negative, got {chunk_overlap}")
        if chunk_overlap >= chunk_size:
            raise ValueError(
                f"Chunk overlap ({chunk_overlap}) must be less than chunk size ({chunk_size})"
            )

        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self.separators = tuple(separators)

    def chunk(self, document: Document) -> List[Chunk]:
        """
        Split a document into chunks.

        Args:
            document: Document to split

        Returns:
            Chunks in document order; empty for blank documents
        """
        text = document.text.strip()
        if not text:
            logger.warning(f"Empty text provided for chunking from {document.source}")
            return []

        chunks = [
            Chunk(
                text=text[start:end],
                source=document.source,
                chunk_index=index,
                char_start=start,
                char_end=end,
                metadata=dict(document.metadata),
            )
            for index, (start, end) in enumerate(self.split_spans(text))
        ]

        logger.info(f"Created {len(chunks)} chunks from {document.source}")
        return chunks

    def chunk_documents(self, documents: Sequence[Document]) -> List[Chunk]:
        """Chunk several documents, keeping document order."""
        chunks: List[Chunk] = []
        for document in documents:
            chunks.extend(self.chunk(document))
        return chunks

    def split_spans(self, text: str) -> List[Tuple[int, int]]:
        """
        Compute ``(start, end)`` offsets of every window over ``text``.

        Args:
            text: Text to split (already trimmed)

        Returns:
            Half-open spans, each at most ``chunk_size`` long
        """
        length = len(text)
        if length <= self.chunk_size:
            return [(0, length)]

        spans = []
        start = 0
        while True:
            limit = start + self.chunk_size
            if limit >= length:
                spans.append((start, length))
                break

            end = self._find_boundary(text, start, limit)
            spans.append((start, end))
            start = end - self.chunk_overlap

        return spans

    def _find_boundary(self, text: str, start: int, limit: int) -> int:
        """
        Pick the end offset for the window beginning at ``start``.

        The end must leave the next window starting after ``start``, so cuts
        at or before ``start + chunk_overlap`` are not usable.
        """
        floor = start + self.chunk_overlap + 1

        for separator in self.separators:
            # A separator starting exactly at the limit is a clean cut too.
            position = text.rfind(separator, floor, limit + len(separator))
            if position != -1:
                return position

        return limit


def chunk(document: Document, chunk_size: int, chunk_overlap: int) -> List[Chunk]:
    """
    Split one document into overlapping chunks.

    Args:
        document: Document to split
        chunk_size: Maximum number of characters per chunk
        chunk_overlap: Characters repeated from the previous chunk

    Returns:
        List of chunks
    """
    return Chunker(chunk_size=chunk_size, chunk_overlap=chunk_overlap).chunk(document)
