"""
Embedding Generator - Map texts to fixed-dimension vectors

Part of the RAG chat service.
Shared by the ingestion pipeline (chunk texts) and the query pipeline
(the user question), so both sides always use the same model.

License: MIT
"""

from typing import List, Optional, Sequence
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor

import openai

from ..errors import EmbeddingError
from ..infrastructure.monitoring import embedding_duration_tracker, record_error
from ..utils.helpers import chunk_list

logger = logging.getLogger(__name__)


class EmbeddingGenerator:
    """
    Generate embeddings using OpenAI's embedding models.

    Texts are sent in batches; batches run concurrently on a small thread
    pool and are reassembled in input order. A failure in any batch fails
    the whole call, so callers never see a partial result.
    """

    def __init__(
        self,
        model: str = "text-embedding-3-small",
        batch_size: int = 100,
        dimension: int = 1536,
        max_workers: int = 3,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        max_retries: int = 3,
        client=None,
    ):
        """
        Initialize the embedding generator.

        Args:
            model: OpenAI embedding model to use
            batch_size: Number of texts to send per request
            dimension: Expected vector length; other lengths are rejected
            max_workers: Concurrent batch requests
            api_key: OpenAI API key (falls back to OPENAI_API_KEY)
            client: Preconfigured OpenAI-compatible client
        """
        if batch_size < 1:
            raise ValueError("Embedding batch size must be at least 1")

        self.model = model
        self.batch_size = batch_size
        self.dimension = dimension
        self.max_workers = max(1, max_workers)
        self.api_key = api_key
        self.timeout = timeout
        self.max_retries = max_retries
        self._client = client
        self._client_lock = threading.Lock()

    @property
    def client(self):
        """Lazy, thread-safe initialization of the OpenAI client."""
        if self._client is None:
            with self._client_lock:
                if self._client is None:
                    self._client = openai.OpenAI(
                        api_key=self.api_key,
                        timeout=self.timeout,
                        max_retries=self.max_retries,
                    )
        return self._client

    def embed(self, texts: Sequence[str]) -> List[List[float]]:
        """
        Embed a sequence of texts.

        Args:
            texts: Texts to embed

        Returns:
            One vector per input text, in input order

        Raises:
            EmbeddingError: If any batch fails or returns malformed output
        """
        texts = list(texts)
        if not texts:
            return []

        for i, text in enumerate(texts):
            if not isinstance(text, str):
                raise EmbeddingError(f"Text {i} is not a string: {type(text).__name__}")

        batches = chunk_list(texts, self.batch_size)
        logger.info(f"Generating embeddings for {len(texts)} texts in {len(batches)} batches")
        start_time = time.time()

        with embedding_duration_tracker():
            if len(batches) == 1:
                results = [self._embed_batch(batches[0])]
            else:
                workers = min(self.max_workers, len(batches))
                with ThreadPoolExecutor(max_workers=workers) as executor:
                    # map() yields in submission order and re-raises the first failure
                    results = list(executor.map(self._embed_batch, batches))

        vectors = [vector for batch_vectors in results for vector in batch_vectors]
        if len(vectors) != len(texts):
            raise EmbeddingError(f"Expected {len(texts)} embeddings, got {len(vectors)}")

        total_time = time.time() - start_time
        logger.info(f"Embedding generation completed in {total_time:.2f} seconds")
        return vectors

    def embed_query(self, query: str) -> List[float]:
        """
        Generate embedding for a single query.

        Args:
            query: Query text to embed

        Returns:
            Query embedding vector

        Raises:
            ValueError: If query is empty
            EmbeddingError: If the provider call fails
        """
        if not query.strip():
            raise ValueError("Query cannot be empty")

        return self.embed([query])[0]

    def _embed_batch(self, batch: List[str]) -> List[List[float]]:
        """
        Embed one batch with a single provider request.

        Args:
            batch: Texts for this request

        Returns:
            Vectors ordered like ``batch``
        """
        try:
            response = self.client.embeddings.create(input=batch, model=self.model)
        except Exception as e:
            logger.error(f"Error processing embedding batch of {len(batch)}: {str(e)}")
            record_error(type(e).__name__, "embedding")
            raise EmbeddingError(f"Embedding request failed: {e}") from e

        data = list(getattr(response, "data", None) or [])
        if len(data) != len(batch):
            record_error("malformed_response", "embedding")
            raise EmbeddingError(
                f"Embedding provider returned {len(data)} vectors for {len(batch)} inputs"
            )

        # Items carry their input position; do not trust response order.
        ordered = sorted(enumerate(data), key=self._position)
        return [self._validate_vector(item.embedding) for _, item in ordered]

    @staticmethod
    def _position(pair) -> int:
        position, item = pair
        index = getattr(item, "index", None)
        return position if index is None else index

    def _validate_vector(self, vector) -> List[float]:
        if not isinstance(vector, (list, tuple)):
            raise EmbeddingError(f"Invalid embedding type: {type(vector).__name__}")

        if len(vector) != self.dimension:
            raise EmbeddingError(
                f"Embedding dimension {len(vector)} does not match configured {self.dimension}"
            )

        try:
            return [float(value) for value in vector]
        except (TypeError, ValueError) as e:
            raise EmbeddingError(f"Embedding contains non-numeric values: {e}") from e
