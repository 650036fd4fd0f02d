"""
Document Loader - Read raw text documents for ingestion

Part of the RAG chat service.
Ingestion pipeline, step 1: source directory -> Documents

License: MIT
"""

from typing import List, Sequence
from pathlib import Path
import logging

from ..errors import LoadError
from .models import Document

logger = logging.getLogger(__name__)

DEFAULT_EXTENSIONS = (".txt", ".md")


class DocumentLoader:
    """
    Loads plain-text documents from a directory tree.

    Files are visited in sorted path order so repeated runs see the corpus
    in the same order.
    """

    def __init__(self, extensions: Sequence[str] = DEFAULT_EXTENSIONS, encoding: str = "utf-8"):
        """
        Initialize the document loader.

        Args:
            extensions: File suffixes to load (case-insensitive)
            encoding: Text encoding of the source files
        """
        self.extensions = tuple(ext.lower() for ext in extensions)
        self.encoding = encoding

    def load_file(self, file_path: Path) -> Document:
        """
        Read a single document.

        Args:
            file_path: Path to the document file

        Returns:
            Document with ``source`` set to the file path

        Raises:
            LoadError: If the file is missing, unsupported or unreadable
        """
        file_path = Path(file_path)
        if not file_path.is_file():
            raise LoadError(f"File not found: {file_path}", source=str(file_path))

        file_ext = file_path.suffix.lower()
        if file_ext not in self.extensions:
            raise LoadError(f"Unsupported file format: {file_ext}", source=str(file_path))

        try:
            text = file_path.read_text(encoding=self.encoding)
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Error reading file {file_path}: {str(e)}")
            raise LoadError(f"Could not read {file_path}: {e}", source=str(file_path)) from e

        logger.debug(f"Loaded {file_path}, {len(text)} characters")
        return Document(
            text=text,
            source=str(file_path),
            metadata={"source": str(file_path), "file_name": file_path.name},
        )

    def load_directory(self, directory: Path) -> List[Document]:
        """
        Read every supported document under a directory.

        Args:
            directory: Root directory of the corpus

        Returns:
            Documents in sorted path order; empty if none match

        Raises:
            LoadError: If the directory does not exist or a file is unreadable
        """
        directory = Path(directory)
        if not directory.is_dir():
            raise LoadError(f"Source directory not found: {directory}", source=str(directory))

        paths = sorted(
            path
            for path in directory.rglob("*")
            if path.is_file() and path.suffix.lower() in self.extensions
        )

        documents = [self.load_file(path) for path in paths]
        logger.info(f"Loaded {len(documents)} documents from {directory}")
        return documents
