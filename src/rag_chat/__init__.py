"""
RAG Chat - Retrieval-grounded streaming chat over a text corpus

Ingestion pipeline (offline batch):
- Document loading and overlap-aware chunking
- Embedding generation
- Idempotent vector index upserts

Query pipeline (per request):
- Question embedding and nearest-neighbour retrieval
- Context assembly and grounded prompt building
- Streaming answer generation

License: MIT
"""

__version__ = "1.0.0"

from .errors import (
    RAGError,
    ConfigurationError,
    LoadError,
    EmbeddingError,
    VectorIndexError,
    GenerationError,
)
from .core import (
    Document,
    Chunk,
    IndexEntry,
    ScoredChunk,
    Prompt,
    DocumentLoader,
    Chunker,
    chunk,
    EmbeddingGenerator,
    VectorStore,
    VectorStoreBase,
    IndexWriter,
    IngestionPipeline,
    ContextAssembler,
    PromptBuilder,
    StreamingGenerator,
)
from .core.query import RAGQueryProcessor, QueryPlan, extract_question
from .retrieval import BaseRetriever, VectorRetriever
from .config import RAGConfig, ConfigManager, get_config, get_config_manager

__all__ = [
    # Errors
    "RAGError",
    "ConfigurationError",
    "LoadError",
    "EmbeddingError",
    "VectorIndexError",
    "GenerationError",
    # Core
    "Document",
    "Chunk",
    "IndexEntry",
    "ScoredChunk",
    "Prompt",
    "DocumentLoader",
    "Chunker",
    "chunk",
    "EmbeddingGenerator",
    "VectorStore",
    "VectorStoreBase",
    "IndexWriter",
    "IngestionPipeline",
    "ContextAssembler",
    "PromptBuilder",
    "StreamingGenerator",
    "RAGQueryProcessor",
    "QueryPlan",
    "extract_question",
    # Retrieval
    "BaseRetriever",
    "VectorRetriever",
    # Configuration
    "RAGConfig",
    "ConfigManager",
    "get_config",
    "get_config_manager",
]
