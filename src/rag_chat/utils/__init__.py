"""
Utility Functions - Common helper functions and utilities

License: MIT
"""

from .helpers import (
    chunk_id,
    chunk_list,
    format_duration,
    Timer,
)

__all__ = [
    "chunk_id",
    "chunk_list",
    "format_duration",
    "Timer",
]
