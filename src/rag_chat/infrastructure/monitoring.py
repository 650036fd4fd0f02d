"""
Monitoring - Prometheus metrics and duration tracking

Metrics are created once per process by ``setup_prometheus_metrics``; the
trackers below are no-ops until then, so library code and tests can use
them freely.

License: MIT
"""

import time
import logging
import threading
from contextlib import contextmanager

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST

logger = logging.getLogger(__name__)

_metrics_lock = threading.Lock()
_metrics_initialized = False
REQUEST_COUNT = None
REQUEST_DURATION = None
EMBEDDING_DURATION = None
VECTOR_SEARCH_DURATION = None
INDEX_UPSERT_DURATION = None
LLM_GENERATION_DURATION = None
ERROR_COUNT = None


def setup_prometheus_metrics() -> None:
    """Initialize Prometheus metrics for the RAG chat service."""
    global _metrics_initialized
    global REQUEST_COUNT, REQUEST_DURATION
    global EMBEDDING_DURATION, VECTOR_SEARCH_DURATION, INDEX_UPSERT_DURATION
    global LLM_GENERATION_DURATION, ERROR_COUNT

    with _metrics_lock:
        if _metrics_initialized:
            return

        REQUEST_COUNT = Counter(
            "rag_http_requests_total", "Total HTTP requests", ["method", "endpoint", "status_code"]
        )

        REQUEST_DURATION = Histogram(
            "rag_http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method", "endpoint"],
        )

        EMBEDDING_DURATION = Histogram(
            "rag_embedding_duration_seconds", "Embedding generation duration in seconds"
        )

        VECTOR_SEARCH_DURATION = Histogram(
            "rag_vector_search_duration_seconds", "Vector search duration in seconds"
        )

        INDEX_UPSERT_DURATION = Histogram(
            "rag_index_upsert_duration_seconds", "Vector index upsert duration in seconds"
        )

        LLM_GENERATION_DURATION = Histogram(
            "rag_llm_generation_duration_seconds", "LLM generation duration in seconds", ["model"]
        )

        ERROR_COUNT = Counter("rag_errors_total", "Total errors", ["error_type", "component"])

        _metrics_initialized = True
        logger.info("Prometheus metrics initialized")


def metrics_payload():
    """Return the Prometheus exposition body and its content type."""
    return generate_latest(), CONTENT_TYPE_LATEST


def observe_request(method: str, endpoint: str, status_code: int, duration: float) -> None:
    """Record one finished HTTP request."""
    if REQUEST_COUNT:
        REQUEST_COUNT.labels(method=method, endpoint=endpoint, status_code=status_code).inc()
    if REQUEST_DURATION:
        REQUEST_DURATION.labels(method=method, endpoint=endpoint).observe(duration)


@contextmanager
def embedding_duration_tracker():
    """Context manager to track embedding generation duration."""
    start_time = time.time()
    try:
        yield
    finally:
        if EMBEDDING_DURATION:
            EMBEDDING_DURATION.observe(time.time() - start_time)


@contextmanager
def vector_search_duration_tracker():
    """Context manager to track vector search duration."""
    start_time = time.time()
    try:
        yield
    finally:
        if VECTOR_SEARCH_DURATION:
            VECTOR_SEARCH_DURATION.observe(time.time() - start_time)


@contextmanager
def index_upsert_duration_tracker():
    """Context manager to track vector index writes."""
    start_time = time.time()
    try:
        yield
    finally:
        if INDEX_UPSERT_DURATION:
            INDEX_UPSERT_DURATION.observe(time.time() - start_time)


def observe_generation(model: str, duration: float) -> None:
    """Record the wall time of one streamed generation."""
    if LLM_GENERATION_DURATION:
        LLM_GENERATION_DURATION.labels(model=model).observe(duration)


def record_error(error_type: str, component: str) -> None:
    """
    Record an error occurrence.

    Args:
        error_type: Type of error (e.g., 'malformed_response', 'APIError')
        component: Component where error occurred (e.g., 'embedding', 'vector_store')
    """
    if ERROR_COUNT:
        ERROR_COUNT.labels(error_type=error_type, component=component).inc()
