"""
Index Writer - Batched, idempotent upserts into the vector index

Part of the RAG chat service.
Ingestion pipeline, step 4: (id, vector, chunk) -> vector index

License: MIT
"""

from dataclasses import dataclass, field
from typing import List, Sequence
import logging

from ..errors import VectorIndexError
from ..infrastructure.monitoring import index_upsert_duration_tracker, record_error
from ..utils.helpers import chunk_id, chunk_list
from .models import Chunk, IndexEntry
from .vector_store import VectorStoreBase

logger = logging.getLogger(__name__)


@dataclass
class UpsertResult:
    """Outcome of a successful upsert call."""

    upserted: int
    batches: int
    ids: List[str] = field(default_factory=list)


def build_entries(chunks: Sequence[Chunk], vectors: Sequence[List[float]]) -> List[IndexEntry]:
    """
    Pair chunks with their vectors under deterministic ids.

    Raises:
        ValueError: If the two sequences are not aligned
    """
    if len(chunks) != len(vectors):
        raise ValueError(f"Got {len(vectors)} vectors for {len(chunks)} chunks")

    return [
        IndexEntry(id=chunk_id(chunk.source, chunk.text), vector=list(vector), chunk=chunk)
        for chunk, vector in zip(chunks, vectors)
    ]


class IndexWriter:
    """
    Upserts entries in fixed-size batches.

    Every batch is attempted even if an earlier one fails; failures are
    reported together so the caller knows exactly which ids are missing.
    Re-running with the same entries is safe because ids are derived from
    content and source.
    """

    def __init__(self, vector_store: VectorStoreBase, batch_size: int = 100):
        if batch_size < 1:
            raise ValueError("Upsert batch size must be at least 1")

        self.vector_store = vector_store
        self.batch_size = batch_size

    def upsert(self, entries: Sequence[IndexEntry]) -> UpsertResult:
        """
        Write entries to the vector index.

        Args:
            entries: Entries with computed embeddings

        Returns:
            UpsertResult with the number of distinct entries written

        Raises:
            ValueError: If an entry has no vector
            VectorIndexError: If any batch failed; ``failed_ids`` lists them
        """
        if not entries:
            logger.warning("No entries provided for upsert")
            return UpsertResult(upserted=0, batches=0)

        for entry in entries:
            if not entry.vector:
                raise ValueError(f"Entry {entry.id} has no embedding")

        # Repeated text in one source maps to one id; backends reject duplicate ids per call.
        unique = {}
        for entry in entries:
            unique.setdefault(entry.id, entry)
        if len(unique) < len(entries):
            logger.info(f"Skipping {len(entries) - len(unique)} entries with duplicate ids")
        entries = list(unique.values())

        batches = chunk_list(entries, self.batch_size)
        failed_ids: List[str] = []
        errors: List[str] = []

        for number, batch in enumerate(batches, start=1):
            try:
                with index_upsert_duration_tracker():
                    self.vector_store.upsert(batch)
                logger.debug(f"Upserted batch {number}/{len(batches)} ({len(batch)} entries)")
            except Exception as e:
                logger.error(f"Error upserting batch {number}/{len(batches)}: {str(e)}")
                record_error(type(e).__name__, "vector_store")
                failed_ids.extend(entry.id for entry in batch)
                errors.append(str(e))

        if failed_ids:
            raise VectorIndexError(
                f"{len(failed_ids)} of {len(entries)} entries failed to upsert: {errors[0]}",
                failed_ids=failed_ids,
            )

        logger.info(f"Successfully upserted {len(entries)} entries in {len(batches)} batches")
        return UpsertResult(
            upserted=len(entries), batches=len(batches), ids=[entry.id for entry in entries]
        )
