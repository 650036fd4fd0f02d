"""
Unit Tests for DocumentLoader
"""

import pytest

from rag_chat.core import DocumentLoader
from rag_chat.errors import LoadError


class TestDocumentLoader:
    """Test cases for DocumentLoader class."""

    def test_load_file(self, corpus_dir):
        """Test loading one text file."""
        path = corpus_dir / "chords.txt"

        document = DocumentLoader().load_file(path)

        assert document.text.startswith("A triad is a chord")
        assert document.source == str(path)
        assert document.metadata == {"source": str(path), "file_name": "chords.txt"}

    def test_load_file_unsupported_format(self, corpus_dir):
        """Test that unsupported suffixes are rejected."""
        with pytest.raises(LoadError, match="Unsupported file format"):
            DocumentLoader().load_file(corpus_dir / "notes.bin")

    def test_load_file_missing(self, tmp_path):
        """Test that a missing file raises LoadError with its source."""
        missing = tmp_path / "missing.txt"

        with pytest.raises(LoadError) as exc_info:
            DocumentLoader().load_file(missing)

        assert exc_info.value.source == str(missing)

    def test_load_file_bad_encoding(self, tmp_path):
        """Test that undecodable files raise LoadError."""
        path = tmp_path / "latin.txt"
        path.write_bytes("Clé de sol".encode("latin-1"))

        with pytest.raises(LoadError, match="Could not read"):
            DocumentLoader().load_file(path)

    def test_load_directory_sorted_and_filtered(self, corpus_dir):
        """Test that only supported files are loaded, in path order."""
        nested = corpus_dir / "rhythm"
        nested.mkdir()
        (nested / "meter.md").write_text("Meter groups beats.", encoding="utf-8")

        documents = DocumentLoader().load_directory(corpus_dir)

        names = [document.metadata["file_name"] for document in documents]
        assert names == ["chords.txt", "meter.md", "scales.txt"]

    def test_load_directory_custom_extensions(self, corpus_dir):
        """Test restricting the loader to one suffix."""
        (corpus_dir / "readme.md").write_text("Not part of the corpus.", encoding="utf-8")

        documents = DocumentLoader(extensions=[".TXT"]).load_directory(corpus_dir)

        assert len(documents) == 2

    def test_load_directory_empty(self, tmp_path):
        """Test that an empty directory yields no documents."""
        assert DocumentLoader().load_directory(tmp_path) == []

    def test_load_directory_missing(self, tmp_path):
        """Test that a missing directory raises LoadError."""
        with pytest.raises(LoadError, match="Source directory not found"):
            DocumentLoader().load_directory(tmp_path / "dados_musicais")
