"""
Infrastructure Components - Logging and monitoring

License: MIT
"""

from .monitoring import (
    setup_prometheus_metrics,
    embedding_duration_tracker,
    vector_search_duration_tracker,
    index_upsert_duration_tracker,
    observe_generation,
    observe_request,
    record_error,
)
from .logging_config import (
    setup_logging,
    setup_production_logging,
    setup_standard_logging,
    JSONFormatter,
)

__all__ = [
    "setup_prometheus_metrics",
    "embedding_duration_tracker",
    "vector_search_duration_tracker",
    "index_upsert_duration_tracker",
    "observe_generation",
    "observe_request",
    "record_error",
    "setup_logging",
    "setup_production_logging",
    "setup_standard_logging",
    "JSONFormatter",
]
