"""
API Dependencies - Process-wide service wiring for FastAPI

Part of the RAG chat service.

License: MIT
"""

from typing import Any, Dict, Optional
import logging
import threading
import time

from starlette.concurrency import run_in_threadpool

from ..config import RAGConfig, get_config
from ..core.embedding_generator import EmbeddingGenerator
from ..core.generator import StreamingGenerator
from ..core.prompt import ContextAssembler, PromptBuilder
from ..core.query import RAGQueryProcessor
from ..core.vector_store import VectorStore
from ..retrieval.base import VectorRetriever

logger = logging.getLogger(__name__)

# Global instance (initialized lazily)
_chat_service = None
_chat_service_lock = threading.Lock()


class RAGChatService:
    """
    Holds the shared clients and the query processor.

    One instance serves every request; the embedding, index and model
    clients it owns are safe for concurrent use.
    """

    def __init__(self, config: RAGConfig):
        """
        Build all components from configuration.

        Args:
            config: Validated configuration
        """
        self.config = config

        self.embedding_generator = EmbeddingGenerator(
            model=config.embedding.model,
            batch_size=config.embedding.batch_size,
            dimension=config.embedding.dimension,
            max_workers=config.embedding.max_workers,
            api_key=config.embedding.api_key,
            timeout=config.embedding.timeout,
            max_retries=config.embedding.max_retries,
        )

        self.vector_store = VectorStore(
            backend=config.vector_store.backend,
            url=config.vector_store.url,
            token=config.vector_store.token,
            index_name=config.vector_store.index_name,
            metric=config.vector_store.metric,
            namespace=config.vector_store.namespace,
        )

        self.generator = StreamingGenerator(
            model=config.llm.model,
            temperature=config.llm.temperature,
            max_tokens=config.llm.max_tokens,
            api_key=config.embedding.api_key,
            timeout=config.llm.timeout,
        )

        self.query_processor = RAGQueryProcessor(
            retriever=VectorRetriever(self.vector_store, self.embedding_generator),
            generator=self.generator,
            top_k=config.retrieval.top_k,
            context_assembler=ContextAssembler(max_chars=config.retrieval.max_context_chars),
            prompt_builder=PromptBuilder(
                persona=config.prompt.persona,
                fallback_answer=config.prompt.fallback_answer,
            ),
        )

    def verify(self) -> None:
        """
        Startup checks against the live index.

        Raises:
            ConfigurationError: If the index dimension differs from the embedder's
        """
        self.vector_store.verify_dimension(self.config.embedding.dimension)
        logger.info("Vector index dimension verified")

    async def health_check(self) -> Dict[str, Any]:
        """
        Health check of the vector index.

        Returns:
            Dictionary with health status and service details
        """
        healthy = await run_in_threadpool(self.vector_store.ping)
        return {
            "healthy": healthy,
            "services": {
                "vector_store": {"healthy": healthy, "backend": self.vector_store.backend},
            },
            "timestamp": time.time(),
        }


def init_chat_service(config: Optional[RAGConfig] = None) -> RAGChatService:
    """Create the global service if needed and return it."""
    global _chat_service
    if _chat_service is None:
        with _chat_service_lock:
            if _chat_service is None:
                logger.info("Initializing RAG chat service components...")
                _chat_service = RAGChatService(config or get_config())
    return _chat_service


def get_chat_service() -> RAGChatService:
    """FastAPI dependency returning the shared chat service."""
    return init_chat_service()


def reset_chat_service() -> None:
    """Drop the global service (used on shutdown)."""
    global _chat_service
    with _chat_service_lock:
        _chat_service = None
