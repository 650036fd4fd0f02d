"""
Unit Tests for the HTTP API

Tests the streaming chat endpoint, its single error shape, and the
health and metrics endpoints. The service's external clients are replaced
by the in-process fakes from conftest.
"""

from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from rag_chat.api import main as api_main
from rag_chat.api.dependencies import get_chat_service
from rag_chat.core.prompt import DEFAULT_FALLBACK_ANSWER


@pytest.fixture
def client(query_processor):
    service = SimpleNamespace(query_processor=query_processor)
    api_main.app.dependency_overrides[get_chat_service] = lambda: service
    # No context manager: lifespan (config and real clients) is not run.
    yield TestClient(api_main.app)
    api_main.app.dependency_overrides.clear()


@pytest.fixture
def indexed(ingestion_pipeline, corpus_dir):
    ingestion_pipeline.run(corpus_dir)


def chat(client, content, **extra):
    return client.post("/api/chat", json={"messages": [{"role": "user", "content": content, **extra}]})


class TestChatEndpoint:
    """Test cases for POST /api/chat."""

    def test_streams_answer(self, client, indexed):
        """Test a grounded streamed answer."""
        response = chat(client, "What is a major scale?")

        assert response.status_code == 200
        assert response.headers["content-type"] == "text/plain; charset=utf-8"
        assert response.text == "A major scale has seven notes."

    def test_extra_message_fields_ignored(self, client, indexed):
        """Test that unknown message fields are accepted."""
        response = chat(client, "What is a major scale?", id="m-1", createdAt="2024-01-01")

        assert response.status_code == 200

    def test_uses_last_user_message(self, client, chat_client, indexed):
        """Test that only the latest user turn reaches the model."""
        response = client.post(
            "/api/chat",
            json={
                "messages": [
                    {"role": "user", "content": "What is a triad?"},
                    {"role": "assistant", "content": "Three notes."},
                    {"role": "user", "content": "What is a major scale?"},
                ]
            },
        )

        assert response.status_code == 200
        [request] = chat_client.completions.requests
        assert request["messages"][1] == {"role": "user", "content": "What is a major scale?"}

    def test_empty_index_returns_fallback(self, client, chat_client):
        """Test that an empty index streams the fallback sentence."""
        response = chat(client, "Who invented the piano?")

        assert response.status_code == 200
        assert response.text == DEFAULT_FALLBACK_ANSWER
        assert chat_client.completions.requests == []

    def test_invalid_body(self, client):
        """Test that malformed payloads use the error shape."""
        response = client.post("/api/chat", json={"messages": []})

        assert response.status_code == 500
        assert response.json()["error"].startswith("Invalid request")

    def test_no_user_message(self, client):
        """Test that a transcript without user turns fails with the error shape."""
        response = client.post(
            "/api/chat", json={"messages": [{"role": "assistant", "content": "Hi"}]}
        )

        assert response.status_code == 500
        assert response.json() == {"error": "No user message found in request"}

    def test_index_failure(self, client, vector_store):
        """Test that a retrieval failure returns 500 before any output."""
        vector_store.fail_query = True

        response = chat(client, "What is a major scale?")

        assert response.status_code == 500
        assert "Vector index query failed" in response.json()["error"]

    def test_embedding_failure(self, client, embedding_client):
        """Test that an embedding failure returns 500 before any output."""
        embedding_client.embeddings.fail_on_call = 1

        response = chat(client, "What is a major scale?")

        assert response.status_code == 500
        assert "Embedding request failed" in response.json()["error"]

    def test_generation_failure_before_output(self, client, chat_client, indexed):
        """Test that a model failure before the first fragment returns 500."""
        chat_client.completions.fail_on_create = True

        response = chat(client, "What is a major scale?")

        assert response.status_code == 500
        assert "Generation failed" in response.json()["error"]

    def test_generation_failure_mid_stream(self, client, chat_client, indexed):
        """Test that a failure after the first fragment aborts the response body."""
        chat_client.completions.fragments = ["A major ", "scale ", "has"]
        chat_client.completions.fail_after = 1

        with pytest.raises(Exception):
            chat(client, "What is a major scale?")

        assert chat_client.completions.streams[0].closed


class TestServiceEndpoints:
    """Test cases for /health and /metrics."""

    def test_health(self, client, monkeypatch):
        """Test a healthy vector index."""

        async def health_check():
            return {"healthy": True, "services": {"vector_store": {"healthy": True}}}

        monkeypatch.setattr(
            api_main, "get_chat_service", lambda: SimpleNamespace(health_check=health_check)
        )

        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_health_unreachable(self, client, monkeypatch):
        """Test that an unreachable index reports 503."""

        async def health_check():
            return {"healthy": False, "services": {"vector_store": {"healthy": False}}}

        monkeypatch.setattr(
            api_main, "get_chat_service", lambda: SimpleNamespace(health_check=health_check)
        )

        assert client.get("/health").status_code == 503

    def test_metrics(self, client):
        """Test that the metrics endpoint serves the Prometheus format."""
        response = client.get("/metrics")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
