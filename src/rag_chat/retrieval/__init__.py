"""
Retrieval Components - Query-time search over the vector index

License: MIT
"""

from .base import BaseRetriever, VectorRetriever

__all__ = [
    "BaseRetriever",
    "VectorRetriever",
]
