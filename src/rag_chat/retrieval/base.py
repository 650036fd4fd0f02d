"""
Base Retrieval Classes - Query-time nearest-neighbour retrieval

Part of the RAG chat service.
Query pipeline, step 2: question -> ranked chunks

License: MIT
"""

from abc import ABC, abstractmethod
from typing import List
import logging

from ..core.embedding_generator import EmbeddingGenerator
from ..core.models import ScoredChunk
from ..core.vector_store import VectorStoreBase
from ..errors import VectorIndexError
from ..infrastructure.monitoring import record_error, vector_search_duration_tracker

logger = logging.getLogger(__name__)


class BaseRetriever(ABC):
    """
    Abstract base class for retrievers.

    ``k`` is always supplied by the caller; there is no implicit default.
    """

    @abstractmethod
    def retrieve(self, query: str, k: int) -> List[ScoredChunk]:
        """
        Retrieve the chunks most relevant to ``query``.

        Args:
            query: Query string
            k: Maximum number of chunks to return

        Returns:
            Chunks ranked by descending score
        """

    def validate_query(self, query: str) -> bool:
        """
        Validate query input.

        Raises:
            ValueError: If query is invalid
        """
        if not query or not query.strip():
            raise ValueError("Query cannot be empty")

        if len(query) > 10000:
            raise ValueError("Query is too long")

        return True


class VectorRetriever(BaseRetriever):
    """
    Vector-based retrieval using semantic embeddings.

    Must be given the same EmbeddingGenerator configuration that was used at
    ingestion time, so query and chunk vectors live in the same space.
    """

    def __init__(self, vector_store: VectorStoreBase, embedding_generator: EmbeddingGenerator):
        self.vector_store = vector_store
        self.embedding_generator = embedding_generator

    def retrieve(self, query: str, k: int) -> List[ScoredChunk]:
        """
        Retrieve chunks using vector similarity search.

        Args:
            query: Query string
            k: Number of chunks to retrieve; ``0`` returns nothing

        Returns:
            Up to ``k`` chunks, best match first; empty for an empty index

        Raises:
            ValueError: If the query is empty
            EmbeddingError: If the query cannot be embedded
            VectorIndexError: If the index query fails
        """
        if k <= 0:
            return []

        self.validate_query(query)

        query_embedding = self.embedding_generator.embed_query(query)

        try:
            with vector_search_duration_tracker():
                results = self.vector_store.query(query_embedding, top_k=k)
        except Exception as e:
            logger.error(f"Vector retrieval failed for query '{query[:100]}': {str(e)}")
            record_error(type(e).__name__, "vector_store")
            raise VectorIndexError(f"Vector index query failed: {e}", query=query) from e

        ranked = sorted(results, key=lambda result: result.score, reverse=True)[:k]
        logger.info(f"Retrieved {len(ranked)} chunks (k={k})")
        return ranked
