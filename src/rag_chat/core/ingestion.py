"""
Ingestion Pipeline - Load, chunk, embed and index a document corpus

Part of the RAG chat service.

License: MIT
"""

from dataclasses import dataclass
from pathlib import Path
import logging

from ..utils.helpers import Timer
from .chunker import Chunker
from .document_loader import DocumentLoader
from .embedding_generator import EmbeddingGenerator
from .index_writer import IndexWriter, build_entries

logger = logging.getLogger(__name__)


@dataclass
class IngestionReport:
    """Counts from one ingestion run."""

    documents: int = 0
    chunks: int = 0
    upserted: int = 0
    duration: float = 0.0


class IngestionPipeline:
    """
    One-shot batch ingestion.

    All chunk embeddings are computed before the first upsert, so an
    embedding failure leaves the index untouched. Re-running over an
    unchanged corpus overwrites the same ids and changes nothing.
    """

    def __init__(
        self,
        loader: DocumentLoader,
        chunker: Chunker,
        embedding_generator: EmbeddingGenerator,
        index_writer: IndexWriter,
    ):
        self.loader = loader
        self.chunker = chunker
        self.embedding_generator = embedding_generator
        self.index_writer = index_writer

    def run(self, source_dir: Path) -> IngestionReport:
        """
        Ingest every document under ``source_dir``.

        Args:
            source_dir: Directory holding the corpus

        Returns:
            IngestionReport; all zeros when no documents are found

        Raises:
            LoadError: If the corpus cannot be read
            EmbeddingError: If embedding fails (nothing is written)
            VectorIndexError: If some entries could not be written
        """
        with Timer("ingestion") as timer:
            logger.info(f"Loading documents from {source_dir}")
            documents = self.loader.load_directory(Path(source_dir))

            if not documents:
                logger.info(f"No documents found in {source_dir}; nothing to ingest")
                return IngestionReport()

            chunks = self.chunker.chunk_documents(documents)
            logger.info(f"Split {len(documents)} documents into {len(chunks)} chunks")

            if not chunks:
                return IngestionReport(documents=len(documents))

            vectors = self.embedding_generator.embed([chunk.text for chunk in chunks])
            entries = build_entries(chunks, vectors)
            result = self.index_writer.upsert(entries)

        report = IngestionReport(
            documents=len(documents),
            chunks=len(chunks),
            upserted=result.upserted,
            duration=timer.elapsed_time,
        )
        logger.info(
            "Ingestion completed",
            extra={
                "documents": report.documents,
                "chunks": report.chunks,
                "upserted": report.upserted,
                "processing_time": report.duration,
            },
        )
        return report
