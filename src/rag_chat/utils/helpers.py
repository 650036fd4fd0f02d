"""
Utility Helper Functions - Ids, batching and timing for the pipelines

License: MIT
"""

import hashlib
import time
from typing import List, Any, Sequence
import logging

logger = logging.getLogger(__name__)


def chunk_id(source: str, text: str) -> str:
    """
    Stable index id for a chunk, derived from its source and content.

    Re-ingesting the same text from the same source always yields the same
    id; the NUL separator keeps ``("ab", "c")`` and ``("a", "bc")`` apart.

    Returns:
        Hex SHA-256 digest
    """
    return hashlib.sha256(f"{source}\x00{text}".encode("utf-8")).hexdigest()


def chunk_list(items: Sequence[Any], size: int) -> List[List[Any]]:
    """
    Split a sequence into consecutive batches of at most ``size`` items.

    Raises:
        ValueError: If size is less than 1
    """
    if size < 1:
        raise ValueError("Batch size must be at least 1")

    return [list(items[i : i + size]) for i in range(0, len(items), size)]


def format_duration(seconds: float) -> str:
    """Human-readable duration for log lines (``850ms``, ``4.2s``, ``3m 5s``)."""
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    if seconds < 60:
        return f"{seconds:.1f}s"

    minutes, remainder = divmod(seconds, 60)
    if minutes < 60:
        return f"{int(minutes)}m {remainder:.0f}s"

    hours, minutes = divmod(minutes, 60)
    return f"{int(hours)}h {int(minutes)}m"


class Timer:
    """Context manager measuring wall time of a pipeline stage."""

    def __init__(self, name: str = "Timer"):
        self.name = name
        self.start_time = None
        self.end_time = None

    def __enter__(self):
        self.start_time = time.time()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.end_time = time.time()
        logger.debug(f"{self.name} completed in {format_duration(self.elapsed_time)}")

    @property
    def elapsed_time(self) -> float:
        """Seconds elapsed so far, or in total once the block has exited."""
        if self.start_time is None:
            return 0.0

        end_time = self.end_time if self.end_time is not None else time.time()
        return end_time - self.start_time
