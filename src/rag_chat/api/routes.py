"""
API Routes - Streaming chat endpoint

Part of the RAG chat service.

License: MIT
"""

from typing import AsyncIterator, List, Optional
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel, ConfigDict, Field

from ..core.query import extract_question
from ..errors import GenerationError
from .dependencies import RAGChatService, get_chat_service

logger = logging.getLogger(__name__)

router = APIRouter()


class ChatMessage(BaseModel):
    """One chat message. Only ``content`` is required."""

    model_config = ConfigDict(extra="allow")

    role: str = "user"
    content: str


class ChatRequest(BaseModel):
    """Request model for chat completions."""

    messages: List[ChatMessage] = Field(..., min_length=1)


def error_response(message: str) -> JSONResponse:
    """The single failure shape of the chat endpoint."""
    return JSONResponse(status_code=500, content={"error": message})


async def _forward(first: Optional[str], fragments: AsyncIterator[str]) -> AsyncIterator[str]:
    """Re-attach the pre-fetched first fragment and relay the rest."""
    try:
        if first is not None:
            yield first
        async for fragment in fragments:
            yield fragment
    except GenerationError as e:
        # Headers are already sent; aborting the body marks the answer as truncated.
        logger.error(f"Answer stream truncated after {e.emitted} fragments: {str(e)}")
        raise
    finally:
        await fragments.aclose()


@router.post("/chat", tags=["Chat"])
async def chat_endpoint(
    request: ChatRequest,
    chat_service: RAGChatService = Depends(get_chat_service),
):
    """
    Answer the last user message, grounded in the indexed corpus.

    The first fragment is fetched before the response starts, so a model
    call that fails up front still produces a JSON error.

    Returns:
        Streamed ``text/plain`` answer, or ``500 {"error": ...}``
    """
    processor = chat_service.query_processor

    try:
        question = extract_question([message.model_dump() for message in request.messages])
        plan = await processor.aprepare(question)

        fragments = processor.stream_answer(plan)
        try:
            first = await fragments.__anext__()
        except StopAsyncIteration:
            first = None

    except Exception as e:
        logger.error(f"Chat request failed: {str(e)}", exc_info=True)
        return error_response(str(e) or type(e).__name__)

    logger.info(f"Streaming answer for question: {question[:100]}")
    return StreamingResponse(
        _forward(first, fragments),
        media_type="text/plain; charset=utf-8",
    )
