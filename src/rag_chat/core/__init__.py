"""
Core RAG Components - Building blocks of both pipelines

Ingestion: document loading, chunking, embedding, index writing.
Query: context assembly, prompt building, streaming generation.

License: MIT
"""

from .models import Document, Chunk, IndexEntry, ScoredChunk, Prompt
from .document_loader import DocumentLoader
from .chunker import Chunker, chunk
from .embedding_generator import EmbeddingGenerator
from .vector_store import VectorStore, VectorStoreBase
from .index_writer import IndexWriter, UpsertResult, build_entries
from .ingestion import IngestionPipeline, IngestionReport
from .prompt import ContextAssembler, PromptBuilder
from .generator import StreamingGenerator

__all__ = [
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
    "UpsertResult",
    "build_entries",
    "IngestionPipeline",
    "IngestionReport",
    "ContextAssembler",
    "PromptBuilder",
    "StreamingGenerator",
]
