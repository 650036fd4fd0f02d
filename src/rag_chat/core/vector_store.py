"""
Vector Store - Thin adapters over the external vector index

Part of the RAG chat service.
The index is treated as an opaque nearest-neighbour service reached through
an endpoint URL and an access token.

License: MIT
"""

from typing import Any, Dict, List, Optional, Sequence
from abc import ABC, abstractmethod
from urllib.parse import urlparse
import logging
import threading

from ..errors import ConfigurationError
from .models import Chunk, IndexEntry, ScoredChunk

logger = logging.getLogger(__name__)

# Keys written by Chunk.index_metadata() plus the stored text.
_RESERVED_KEYS = ("text", "source", "chunk_index", "char_start", "char_end")


class VectorStoreBase(ABC):
    """Abstract base class for vector stores."""

    @abstractmethod
    def upsert(self, entries: Sequence[IndexEntry]) -> None:
        """Insert or overwrite entries by id."""

    @abstractmethod
    def query(self, vector: List[float], top_k: int) -> List[ScoredChunk]:
        """Return up to ``top_k`` nearest entries."""

    @abstractmethod
    def count(self) -> int:
        """Number of entries currently stored."""

    @abstractmethod
    def dimension(self) -> Optional[int]:
        """Vector dimension of the index, if the backend reports one."""

    def verify_dimension(self, expected: int) -> None:
        """
        Fail fast when the index was built for a different embedding size.

        Raises:
            ConfigurationError: If the reported dimension differs from ``expected``
        """
        actual = self.dimension()
        if actual is not None and actual != expected:
            raise ConfigurationError(
                f"Vector index dimension {actual} does not match embedding dimension {expected}"
            )

    def ping(self) -> bool:
        """Check if the vector store is reachable."""
        try:
            self.count()
            return True
        except Exception as e:
            logger.error(f"Vector store health check failed: {str(e)}")
            return False


def entry_metadata(entry: IndexEntry) -> Dict[str, Any]:
    """Flat metadata record stored next to the vector."""
    return {**entry.chunk.index_metadata(), "text": entry.chunk.text}


def chunk_from_metadata(metadata: Optional[Dict[str, Any]], text: Optional[str] = None) -> Chunk:
    """Rebuild a Chunk from a stored metadata record."""
    metadata = dict(metadata or {})
    return Chunk(
        text=text if text is not None else str(metadata.get("text", "")),
        source=str(metadata.get("source", "")),
        chunk_index=int(metadata.get("chunk_index", 0)),
        char_start=int(metadata.get("char_start", 0)),
        char_end=int(metadata.get("char_end", 0)),
        metadata={k: v for k, v in metadata.items() if k not in _RESERVED_KEYS},
    )


class VectorStore(VectorStoreBase):
    """
    Production vector store.

    Supports Pinecone (serverless index addressed by its host URL) and
    Chroma (HTTP server). Clients are created lazily and shared.
    """

    def __init__(
        self,
        backend: str = "pinecone",
        url: Optional[str] = None,
        token: Optional[str] = None,
        index_name: str = "rag-documents",
        metric: str = "cosine",
        namespace: str = "",
        client: Any = None,
        index: Any = None,
    ) -> None:
        """
        Initialize the vector store.

        Args:
            backend: Vector store backend ('pinecone', 'chroma')
            url: Index endpoint (Pinecone index host, or Chroma server URL)
            token: Access token for the endpoint
            index_name: Chroma collection name
            metric: Similarity metric the index was built with
            namespace: Pinecone namespace
        """
        if backend not in ("pinecone", "chroma"):
            raise ValueError(f"Unsupported backend: {backend}")

        self.backend = backend
        self.url = url
        self.token = token
        self.index_name = index_name
        self.metric = metric
        self.namespace = namespace
        self._client = client
        self._index = index
        self._lock = threading.Lock()

    @property
    def client(self) -> Any:
        """Lazy initialization of vector store client."""
        if self._client is None:
            with self._lock:
                if self._client is None:
                    self._client = self._create_client()
        return self._client

    @property
    def index(self) -> Any:
        """Pinecone index handle or Chroma collection."""
        if self._index is None:
            client = self.client
            with self._lock:
                if self._index is None:
                    self._index = self._open_index(client)
        return self._index

    def _create_client(self) -> Any:
        if self.backend == "pinecone":
            from pinecone import Pinecone

            return Pinecone(api_key=self.token)

        import chromadb

        parsed = urlparse(self.url or "http://localhost:8000")
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else None
        return chromadb.HttpClient(
            host=parsed.hostname or "localhost",
            port=parsed.port or (443 if parsed.scheme == "https" else 8000),
            ssl=parsed.scheme == "https",
            headers=headers,
        )

    def _open_index(self, client: Any) -> Any:
        if self.backend == "pinecone":
            return client.Index(host=self.url)

        space = {"cosine": "cosine", "dotproduct": "ip", "euclidean": "l2"}[self.metric]
        return client.get_or_create_collection(
            name=self.index_name, metadata={"hnsw:space": space}
        )

    def upsert(self, entries: Sequence[IndexEntry]) -> None:
        """
        Write entries to the index, overwriting existing ids.

        Args:
            entries: Entries with computed vectors
        """
        if not entries:
            return

        if self.backend == "pinecone":
            self.index.upsert(
                vectors=[
                    {"id": entry.id, "values": entry.vector, "metadata": entry_metadata(entry)}
                    for entry in entries
                ],
                namespace=self.namespace,
            )
        else:
            self.index.upsert(
                ids=[entry.id for entry in entries],
                embeddings=[entry.vector for entry in entries],
                documents=[entry.chunk.text for entry in entries],
                metadatas=[entry.chunk.index_metadata() for entry in entries],
            )

    def query(self, vector: List[float], top_k: int) -> List[ScoredChunk]:
        """
        Search for the nearest entries.

        Args:
            vector: Query embedding
            top_k: Maximum number of results

        Returns:
            Scored chunks as reported by the backend (higher is better)
        """
        if top_k < 1:
            return []

        if self.backend == "pinecone":
            return self._query_pinecone(vector, top_k)
        return self._query_chroma(vector, top_k)

    def _query_pinecone(self, vector: List[float], top_k: int) -> List[ScoredChunk]:
        response = self.index.query(
            vector=vector, top_k=top_k, include_metadata=True, namespace=self.namespace
        )

        results = []
        for match in response.matches:
            results.append(
                ScoredChunk(
                    chunk=chunk_from_metadata(match.metadata),
                    score=float(match.score),
                    id=match.id,
                )
            )
        return results

    def _query_chroma(self, vector: List[float], top_k: int) -> List[ScoredChunk]:
        available = self.index.count()
        if available == 0:
            return []

        response = self.index.query(
            query_embeddings=[vector],
            n_results=min(top_k, available),
            include=["documents", "metadatas", "distances"],
        )

        results = []
        for i, entry_id in enumerate(response["ids"][0]):
            distance = response["distances"][0][i]
            # Chroma reports distances; cosine and ip distances are 1 - similarity.
            score = -distance if self.metric == "euclidean" else 1 - distance
            results.append(
                ScoredChunk(
                    chunk=chunk_from_metadata(
                        response["metadatas"][0][i], text=response["documents"][0][i]
                    ),
                    score=float(score),
                    id=entry_id,
                )
            )
        return results

    def count(self) -> int:
        if self.backend == "pinecone":
            stats = self.index.describe_index_stats()
            return int(getattr(stats, "total_vector_count", 0) or 0)
        return int(self.index.count())

    def dimension(self) -> Optional[int]:
        if self.backend == "pinecone":
            stats = self.index.describe_index_stats()
            dimension = getattr(stats, "dimension", None)
            return int(dimension) if dimension else None
        # Chroma collections take the dimension of their first vector;
        # an empty collection has none yet.
        if self.index.count() == 0:
            return None
        record = self.index.get(limit=1, include=["embeddings"])
        embeddings = record.get("embeddings")
        if embeddings is None or len(embeddings) == 0:
            return None
        return len(embeddings[0])
