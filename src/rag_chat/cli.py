"""
Ingestion CLI - Index a directory of text documents (``rag-ingest``)

Exit codes: 0 success (including an empty corpus), 1 ingestion failure,
2 configuration error.

License: MIT
"""

import argparse
import logging
import sys
from typing import List, Optional

from .config import RAGConfig, get_config_manager
from .core.chunker import Chunker
from .core.document_loader import DocumentLoader
from .core.embedding_generator import EmbeddingGenerator
from .core.index_writer import IndexWriter
from .core.ingestion import IngestionPipeline
from .core.vector_store import VectorStore
from .errors import ConfigurationError, RAGError
from .infrastructure.logging_config import setup_logging
from .utils.helpers import format_duration

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2


def build_pipeline(config: RAGConfig) -> IngestionPipeline:
    """Wire the ingestion components from configuration."""
    vector_store = VectorStore(
        backend=config.vector_store.backend,
        url=config.vector_store.url,
        token=config.vector_store.token,
        index_name=config.vector_store.index_name,
        metric=config.vector_store.metric,
        namespace=config.vector_store.namespace,
    )
    vector_store.verify_dimension(config.embedding.dimension)

    return IngestionPipeline(
        loader=DocumentLoader(extensions=config.chunking.extensions),
        chunker=Chunker(
            chunk_size=config.chunking.chunk_size,
            chunk_overlap=config.chunking.chunk_overlap,
        ),
        embedding_generator=EmbeddingGenerator(
            model=config.embedding.model,
            batch_size=config.embedding.batch_size,
            dimension=config.embedding.dimension,
            max_workers=config.embedding.max_workers,
            api_key=config.embedding.api_key,
            timeout=config.embedding.timeout,
            max_retries=config.embedding.max_retries,
        ),
        index_writer=IndexWriter(vector_store, batch_size=config.vector_store.upsert_batch_size),
    )


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="rag-ingest", description="Chunk, embed and index a directory of documents."
    )
    parser.add_argument("--source-dir", help="Directory with the documents to index")
    parser.add_argument("--chunk-size", type=int, help="Maximum characters per chunk")
    parser.add_argument("--chunk-overlap", type=int, help="Characters shared by adjacent chunks")
    parser.add_argument("--config", help="Optional YAML configuration file")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Run one ingestion pass and return the process exit code."""
    args = parse_args(argv)

    try:
        config = get_config_manager(args.config).load_config()
        if args.chunk_size is not None:
            config.chunking.chunk_size = args.chunk_size
        if args.chunk_overlap is not None:
            config.chunking.chunk_overlap = args.chunk_overlap
        if args.source_dir:
            config.chunking.source_dir = args.source_dir

        setup_logging(
            level=config.logging.level,
            format_type=config.logging.format_type,
            log_file=config.logging.log_file,
            environment=config.environment,
        )
        pipeline = build_pipeline(config)
    except (ConfigurationError, ValueError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG
    except Exception as e:
        print(f"Could not reach the vector index: {e}", file=sys.stderr)
        return EXIT_FAILED

    try:
        report = pipeline.run(config.chunking.source_dir)
    except RAGError as e:
        logger.error(f"Ingestion failed: {str(e)}", exc_info=True)
        failed_ids = getattr(e, "failed_ids", None)
        if failed_ids:
            logger.error(f"Entries not written: {', '.join(failed_ids)}")
        return EXIT_FAILED
    except Exception as e:
        logger.error(f"Unexpected ingestion failure: {str(e)}", exc_info=True)
        return EXIT_FAILED

    if report.documents == 0:
        logger.info("No documents found; nothing was indexed")
    else:
        logger.info(
            f"Indexed {report.upserted} chunks from {report.documents} documents "
            f"in {format_duration(report.duration)}"
        )
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
