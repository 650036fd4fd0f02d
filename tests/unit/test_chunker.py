"""
Unit Tests for Chunker

Tests overlap-aware splitting including:
- Boundary preference (paragraph, line, word, hard cut)
- Exact overlap between neighbouring chunks
- Lossless reconstruction of the trimmed text
- Parameter validation
"""

import pytest

from rag_chat.core import Chunker, chunk
from rag_chat.core.models import Document

MUSIC_TEXT = (
    "Harmony is the study of how notes sound together.\n\n"
    "A chord is three or more notes played at once. Triads stack thirds on a root.\n"
    "Seventh chords add one more third on top of the triad.\n\n"
    "Voice leading describes how individual parts move from one chord to the next, "
    "preferring small steps and avoiding parallel fifths and octaves between voices."
)


def reconstruct(chunks, overlap):
    text = chunks[0].text
    for piece in chunks[1:]:
        text += piece.text[overlap:]
    return text


class TestChunker:
    """Test cases for Chunker class."""

    def test_init_defaults(self):
        """Test the default window and overlap."""
        chunker = Chunker()

        assert chunker.chunk_size == 1000
        assert chunker.chunk_overlap == 100

    @pytest.mark.parametrize(
        "size,overlap",
        [(0, 0), (10, -1), (10, 10), (10, 25)],
    )
    def test_init_invalid_parameters(self, size, overlap):
        """Test that impossible size/overlap pairs are rejected."""
        with pytest.raises(ValueError):
            Chunker(chunk_size=size, chunk_overlap=overlap)

    def test_short_text_single_chunk(self):
        """Test that text within the window is one trimmed chunk."""
        document = Document(text="  A scale is a set of notes.\n", source="scales.txt")

        chunks = Chunker(chunk_size=100, chunk_overlap=10).chunk(document)

        assert len(chunks) == 1
        assert chunks[0].text == "A scale is a set of notes."
        assert chunks[0].char_start == 0
        assert chunks[0].char_end == len(chunks[0].text)

    def test_blank_document(self):
        """Test that whitespace-only documents produce no chunks."""
        document = Document(text=" \n\t ", source="empty.txt")

        assert Chunker(chunk_size=10, chunk_overlap=2).chunk(document) == []

    def test_word_boundaries_without_overlap(self):
        """Test splitting at the latest space inside the window."""
        document = Document(text="A B. C D.", source="doc.txt")

        chunks = chunk(document, chunk_size=4, chunk_overlap=0)

        assert [c.text for c in chunks] == ["A B.", " C", " D."]
        assert reconstruct(chunks, 0) == "A B. C D."

    def test_paragraph_boundary_preferred(self):
        """Test that a paragraph break wins over later spaces."""
        text = "First paragraph here.\n\nSecond one, a bit longer."
        document = Document(text=text, source="doc.txt")

        chunks = Chunker(chunk_size=30, chunk_overlap=0).chunk(document)

        assert [c.text for c in chunks] == [
            "First paragraph here.",
            "\n\nSecond one, a bit longer.",
        ]

    def test_hard_cut_with_overlap(self):
        """Test hard cuts when no separator is available."""
        document = Document(text="abcdefghij", source="doc.txt")

        chunks = Chunker(chunk_size=4, chunk_overlap=1).chunk(document)

        assert [c.text for c in chunks] == ["abcd", "defg", "ghij"]
        assert [(c.char_start, c.char_end) for c in chunks] == [(0, 4), (3, 7), (6, 10)]

    @pytest.mark.parametrize("size,overlap", [(40, 0), (40, 10), (60, 15), (25, 24), (7, 3)])
    def test_window_invariants(self, size, overlap):
        """Test size bound, exact overlap and lossless reconstruction."""
        document = Document(text=MUSIC_TEXT, source="harmony.txt")

        chunks = Chunker(chunk_size=size, chunk_overlap=overlap).chunk(document)

        assert len(chunks) > 1
        for previous, current in zip(chunks, chunks[1:]):
            assert current.char_start == previous.char_end - overlap
            assert current.text[:overlap] == previous.text[len(previous.text) - overlap :]
        for piece in chunks:
            assert 0 < len(piece.text) <= size
            assert MUSIC_TEXT[piece.char_start : piece.char_end] == piece.text
        assert reconstruct(chunks, overlap) == MUSIC_TEXT

    def test_chunk_metadata(self):
        """Test that chunks carry source, position and document metadata."""
        document = Document(
            text=MUSIC_TEXT, source="harmony.txt", metadata={"file_name": "harmony.txt"}
        )

        chunks = Chunker(chunk_size=80, chunk_overlap=10).chunk(document)

        assert [c.chunk_index for c in chunks] == list(range(len(chunks)))
        assert all(c.source == "harmony.txt" for c in chunks)
        assert all(c.metadata == {"file_name": "harmony.txt"} for c in chunks)

    def test_deterministic(self):
        """Test that identical input yields identical chunks."""
        document = Document(text=MUSIC_TEXT, source="harmony.txt")
        chunker = Chunker(chunk_size=50, chunk_overlap=5)

        assert chunker.chunk(document) == chunker.chunk(document)

    def test_chunk_documents_keeps_order(self):
        """Test that several documents are chunked in order."""
        documents = [
            Document(text="First document.", source="a.txt"),
            Document(text="   ", source="blank.txt"),
            Document(text="Second document.", source="b.txt"),
        ]

        chunks = Chunker(chunk_size=100, chunk_overlap=0).chunk_documents(documents)

        assert [c.source for c in chunks] == ["a.txt", "b.txt"]
