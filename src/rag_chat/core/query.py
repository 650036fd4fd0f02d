"""
Query Processing - End-to-end grounded chat query

Part of the RAG chat service.
Query pipeline: question -> retrieve -> assemble -> build -> stream

License: MIT
"""

from dataclasses import dataclass, field
from typing import Any, AsyncIterator, List, Mapping, Sequence
import asyncio
import logging
import time

from ..retrieval.base import BaseRetriever
from .generator import StreamingGenerator
from .models import Prompt, ScoredChunk
from .prompt import ContextAssembler, PromptBuilder

logger = logging.getLogger(__name__)


@dataclass
class QueryPlan:
    """Everything computed for a request before generation starts."""

    question: str
    results: List[ScoredChunk]
    context: str
    prompt: Prompt
    timings: dict = field(default_factory=dict)


def extract_question(messages: Sequence[Mapping[str, Any]]) -> str:
    """
    Pick the question from a chat transcript.

    Only the most recent user turn is used; earlier turns are ignored.
    Messages without a role count as user messages.

    Raises:
        ValueError: If there is no usable user message
    """
    for message in reversed(list(messages)):
        if message.get("role", "user") != "user":
            continue
        content = message.get("content")
        if not isinstance(content, str) or not content.strip():
            raise ValueError("The last user message has no content")
        return content

    raise ValueError("No user message found in request")


class RAGQueryProcessor:
    """
    Runs one request through the query pipeline.

    ``prepare`` does the bounded, blocking steps (embedding, index query,
    context and prompt assembly); ``stream_answer`` is the long-running part.
    Instances hold no per-request state and can serve concurrent requests.
    """

    def __init__(
        self,
        retriever: BaseRetriever,
        generator: StreamingGenerator,
        top_k: int,
        context_assembler: ContextAssembler = None,
        prompt_builder: PromptBuilder = None,
    ):
        """
        Initialize the RAG query processor.

        Args:
            retriever: Retriever sharing the ingestion embedder
            generator: Streaming generator
            top_k: Number of chunks to retrieve per question
            context_assembler: Context assembler (default bound)
            prompt_builder: Prompt builder (default persona and fallback)
        """
        self.retriever = retriever
        self.generator = generator
        self.top_k = top_k
        self.context_assembler = context_assembler or ContextAssembler()
        self.prompt_builder = prompt_builder or PromptBuilder()

    @property
    def fallback_answer(self) -> str:
        return self.prompt_builder.fallback_answer

    def prepare(self, question: str) -> QueryPlan:
        """
        Retrieve context and build the prompt for ``question``.

        Raises:
            ValueError: If the question is empty
            EmbeddingError: If the question cannot be embedded
            VectorIndexError: If the index query fails
        """
        if not question.strip():
            raise ValueError("Question cannot be empty")

        logger.info(f"Processing query: {question[:100]}...")

        search_start = time.time()
        results = self.retriever.retrieve(question, self.top_k)
        search_time = time.time() - search_start

        context = self.context_assembler.assemble(results)
        prompt = self.prompt_builder.build(context, question)

        if not results:
            logger.warning("No relevant documents found for query")

        return QueryPlan(
            question=question,
            results=results,
            context=context,
            prompt=prompt,
            timings={"search_time": search_time},
        )

    async def aprepare(self, question: str) -> QueryPlan:
        """``prepare`` on a worker thread, for use inside the event loop."""
        return await asyncio.to_thread(self.prepare, question)

    async def stream_answer(self, plan: QueryPlan) -> AsyncIterator[str]:
        """
        Stream the answer for a prepared plan.

        With no retrieved context the fallback sentence is returned directly
        and the model is not called.
        """
        if not plan.context:
            yield self.fallback_answer
            return

        fragments = self.generator.generate(plan.prompt)
        try:
            async for fragment in fragments:
                yield fragment
        finally:
            await fragments.aclose()
