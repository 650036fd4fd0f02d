"""
Streaming Generator - Incremental answer generation from the language model

Part of the RAG chat service.
Query pipeline, step 5: Prompt -> stream of text fragments

License: MIT
"""

from typing import AsyncIterator, Optional
import logging
import threading
import time

import openai

from ..errors import GenerationError
from ..infrastructure.monitoring import observe_generation, record_error
from .models import Prompt

logger = logging.getLogger(__name__)


class StreamingGenerator:
    """
    Streams chat-completion output fragments as the model produces them.

    Model and temperature are fixed at construction time. Each call to
    ``generate`` opens one provider stream; the stream is closed when the
    iterator finishes, fails, or is closed/cancelled by the consumer.
    """

    def __init__(
        self,
        model: str = "gpt-4o-mini",
        temperature: float = 0.2,
        max_tokens: Optional[int] = 1000,
        api_key: Optional[str] = None,
        timeout: float = 60.0,
        client=None,
    ):
        """
        Initialize the generator.

        Args:
            model: Chat model identifier
            temperature: Sampling temperature
            max_tokens: Completion length cap
            api_key: OpenAI API key (falls back to OPENAI_API_KEY)
            client: Preconfigured async OpenAI-compatible client
        """
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.api_key = api_key
        self.timeout = timeout
        self._client = client
        self._client_lock = threading.Lock()

    @property
    def client(self):
        """Lazy, thread-safe initialization of the async OpenAI client."""
        if self._client is None:
            with self._client_lock:
                if self._client is None:
                    # No SDK retries: a failed generation is terminal for the request.
                    self._client = openai.AsyncOpenAI(
                        api_key=self.api_key, timeout=self.timeout, max_retries=0
                    )
        return self._client

    async def generate(self, prompt: Prompt) -> AsyncIterator[str]:
        """
        Stream the model's answer to ``prompt``.

        Args:
            prompt: Grounded prompt

        Yields:
            Non-empty text fragments in model order

        Raises:
            GenerationError: If the call fails before or during streaming.
                Fragments already yielded stay with the consumer.
        """
        start_time = time.time()
        request = {
            "model": self.model,
            "messages": prompt.to_messages(),
            "temperature": self.temperature,
            "stream": True,
        }
        if self.max_tokens:
            request["max_tokens"] = self.max_tokens

        try:
            stream = await self.client.chat.completions.create(**request)
        except Exception as e:
            logger.error(f"Error starting generation with {self.model}: {str(e)}")
            record_error(type(e).__name__, "generation")
            raise GenerationError(f"Generation failed: {e}") from e

        emitted = 0
        try:
            async for event in stream:
                if not event.choices:
                    continue
                fragment = event.choices[0].delta.content
                if fragment:
                    emitted += 1
                    yield fragment
        except Exception as e:
            logger.error(f"Generation stream failed after {emitted} fragments: {str(e)}")
            record_error(type(e).__name__, "generation")
            raise GenerationError(f"Generation interrupted: {e}", emitted=emitted) from e
        finally:
            await stream.close()
            duration = time.time() - start_time
            observe_generation(self.model, duration)
            logger.info(f"Generation stream closed after {emitted} fragments in {duration:.2f}s")
