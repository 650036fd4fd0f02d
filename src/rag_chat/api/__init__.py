"""
API Components - FastAPI server and streaming chat endpoint

License: MIT
"""

from .main import app
from .dependencies import RAGChatService, get_chat_service

__all__ = [
    "app",
    "RAGChatService",
    "get_chat_service",
]
