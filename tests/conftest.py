"""
Test Configuration - Shared test fixtures and fakes

Provides in-process stand-ins for the three external services: the
embedding provider, the vector index and the streaming chat model.
"""

import asyncio
import math
import re
import sys
from pathlib import Path
from types import SimpleNamespace
from typing import Dict, List, Optional

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from rag_chat.core import (
    Chunker,
    ContextAssembler,
    DocumentLoader,
    EmbeddingGenerator,
    IndexWriter,
    IngestionPipeline,
    PromptBuilder,
    StreamingGenerator,
    VectorStoreBase,
)
from rag_chat.core.models import IndexEntry, ScoredChunk
from rag_chat.core.query import RAGQueryProcessor
from rag_chat.retrieval import VectorRetriever

TEST_DIMENSION = 16


def text_vector(text: str, dimension: int = TEST_DIMENSION) -> List[float]:
    """Deterministic bag-of-words vector; shared words mean higher cosine."""
    vector = [0.0] * dimension
    for word in re.findall(r"[a-z0-9]+", text.lower()):
        vector[sum(ord(c) for c in word) % dimension] += 1.0
    if not any(vector):
        vector[0] = 1.0
    return vector


class FakeEmbeddingsAPI:
    """Mimics ``client.embeddings`` of the OpenAI SDK."""

    def __init__(self, dimension: int = TEST_DIMENSION):
        self.dimension = dimension
        self.calls: List[List[str]] = []
        self.fail_on_call: Optional[int] = None
        self.reverse_order = False

    def create(self, input, model):
        self.calls.append(list(input))
        if self.fail_on_call is not None and len(self.calls) >= self.fail_on_call:
            raise RuntimeError("embedding provider unavailable")

        data = [
            SimpleNamespace(index=i, embedding=text_vector(text, self.dimension))
            for i, text in enumerate(input)
        ]
        if self.reverse_order:
            data.reverse()
        return SimpleNamespace(data=data)


class FakeEmbeddingClient:
    def __init__(self, dimension: int = TEST_DIMENSION):
        self.embeddings = FakeEmbeddingsAPI(dimension)


class InMemoryVectorStore(VectorStoreBase):
    """Cosine-similarity index keyed by entry id."""

    def __init__(self, dimension: int = TEST_DIMENSION):
        self._dimension = dimension
        self.entries: Dict[str, IndexEntry] = {}
        self.upsert_calls = 0
        self.fail_upsert_batches: List[int] = []
        self.fail_query = False

    def upsert(self, entries):
        self.upsert_calls += 1
        if self.upsert_calls in self.fail_upsert_batches:
            raise RuntimeError("index write rejected")
        ids = [entry.id for entry in entries]
        if len(set(ids)) != len(ids):
            raise ValueError("Expected IDs to be unique")
        for entry in entries:
            self.entries[entry.id] = entry

    def query(self, vector, top_k):
        if self.fail_query:
            raise RuntimeError("index unreachable")

        def cosine(a, b):
            norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
            return sum(x * y for x, y in zip(a, b)) / norm if norm else 0.0

        scored = [
            ScoredChunk(chunk=entry.chunk, score=cosine(vector, entry.vector), id=entry.id)
            for entry in self.entries.values()
        ]
        best = sorted(scored, key=lambda s: s.score, reverse=True)[:top_k]
        # Worst first, so callers must rank.
        return list(reversed(best))

    def count(self):
        return len(self.entries)

    def dimension(self):
        return self._dimension


class FakeStream:
    """Mimics the OpenAI ``AsyncStream`` of chat completion chunks."""

    def __init__(self, fragments, fail_after: Optional[int] = None, delay: float = 0.0):
        self.fragments = list(fragments)
        self.fail_after = fail_after
        self.delay = delay
        self.closed = False

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        # An empty-choices event like the usage chunk the API can send
        yield SimpleNamespace(choices=[])
        for i, fragment in enumerate(self.fragments):
            if self.fail_after is not None and i >= self.fail_after:
                raise ConnectionError("model connection reset")
            if self.delay:
                await asyncio.sleep(self.delay)
            yield SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=fragment))])

    async def close(self):
        self.closed = True


class FakeCompletionsAPI:
    def __init__(self):
        self.fragments = ["A major scale ", "has seven notes."]
        self.fail_after: Optional[int] = None
        self.fail_on_create = False
        self.delay = 0.0
        self.requests: List[dict] = []
        self.streams: List[FakeStream] = []

    async def create(self, **kwargs):
        self.requests.append(kwargs)
        if self.fail_on_create:
            raise ConnectionError("model provider unavailable")
        stream = FakeStream(self.fragments, fail_after=self.fail_after, delay=self.delay)
        self.streams.append(stream)
        return stream


class FakeChatClient:
    def __init__(self):
        self.chat = SimpleNamespace(completions=FakeCompletionsAPI())

    @property
    def completions(self) -> FakeCompletionsAPI:
        return self.chat.completions


@pytest.fixture
def embedding_client():
    return FakeEmbeddingClient()


@pytest.fixture
def embedding_generator(embedding_client):
    return EmbeddingGenerator(
        model="test-embedding", batch_size=2, dimension=TEST_DIMENSION, client=embedding_client
    )


@pytest.fixture
def vector_store():
    return InMemoryVectorStore()


@pytest.fixture
def chat_client():
    return FakeChatClient()


@pytest.fixture
def streaming_generator(chat_client):
    return StreamingGenerator(model="test-model", temperature=0.2, client=chat_client)


@pytest.fixture
def ingestion_pipeline(embedding_generator, vector_store):
    return IngestionPipeline(
        loader=DocumentLoader(),
        chunker=Chunker(chunk_size=200, chunk_overlap=20),
        embedding_generator=embedding_generator,
        index_writer=IndexWriter(vector_store, batch_size=2),
    )


@pytest.fixture
def query_processor(embedding_generator, vector_store, streaming_generator):
    return RAGQueryProcessor(
        retriever=VectorRetriever(vector_store, embedding_generator),
        generator=streaming_generator,
        top_k=4,
        context_assembler=ContextAssembler(max_chars=8000),
        prompt_builder=PromptBuilder(),
    )


@pytest.fixture
def corpus_dir(tmp_path):
    """A small music theory corpus on disk."""
    (tmp_path / "scales.txt").write_text(
        "A major scale has seven notes arranged in whole and half steps.\n\n"
        "The pattern is whole, whole, half, whole, whole, whole, half.",
        encoding="utf-8",
    )
    (tmp_path / "chords.txt").write_text(
        "A triad is a chord built from a root, a third and a fifth.",
        encoding="utf-8",
    )
    (tmp_path / "notes.bin").write_bytes(b"\x00\x01")
    return tmp_path


CONFIG_ENV_VARS = [
    "OPENAI_API_KEY",
    "VECTOR_INDEX_URL",
    "VECTOR_INDEX_TOKEN",
    "VECTOR_STORE_BACKEND",
    "VECTOR_INDEX_METRIC",
    "EMBEDDING_DIMENSION",
    "CHUNK_SIZE",
    "CHUNK_OVERLAP",
    "SOURCE_DIR",
    "RETRIEVAL_TOP_K",
    "LLM_MODEL",
    "LLM_TEMPERATURE",
    "LOG_LEVEL",
    "LOG_FORMAT",
    "LOG_FILE",
    "ENVIRONMENT",
]


@pytest.fixture
def config_env(monkeypatch):
    """Minimal valid environment, isolated from the host's variables."""
    for name in CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("VECTOR_INDEX_URL", "https://music-index.svc.pinecone.io")
    monkeypatch.setenv("VECTOR_INDEX_TOKEN", "pc-test")
    return monkeypatch
