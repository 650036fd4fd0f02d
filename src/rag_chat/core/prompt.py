"""
Prompt Construction - Context assembly and grounded prompt building

Part of the RAG chat service.
Query pipeline, steps 3 and 4: ranked chunks -> context -> Prompt

License: MIT
"""

from typing import Optional, Sequence
import logging

from .models import Prompt, ScoredChunk

logger = logging.getLogger(__name__)

DEFAULT_PERSONA = "You are an expert music theory assistant named Sebastian."
DEFAULT_FALLBACK_ANSWER = "Based on my current knowledge, I found no information about this."

CONTEXT_SEPARATOR = "\n\n"


class ContextAssembler:
    """
    Joins retrieved chunk texts into one context string.

    Rank order is preserved and overlapping text from neighbouring chunks is
    left as is.
    """

    def __init__(self, max_chars: Optional[int] = 8000):
        """
        Args:
            max_chars: Upper bound on the context length; ``None`` disables it
        """
        if max_chars is not None and max_chars < 1:
            raise ValueError("Context bound must be at least 1 character")
        self.max_chars = max_chars

    def assemble(self, results: Sequence[ScoredChunk]) -> str:
        """
        Build the context string.

        Args:
            results: Retrieval results, best match first

        Returns:
            Chunk texts separated by blank lines; ``""`` when empty
        """
        parts = []
        current_length = 0

        for result in results:
            text = result.chunk.text
            addition = len(text) + (len(CONTEXT_SEPARATOR) if parts else 0)

            if self.max_chars is not None and current_length + addition > self.max_chars:
                room = self.max_chars - current_length - (len(CONTEXT_SEPARATOR) if parts else 0)
                if room > 0:
                    parts.append(text[:room])
                logger.debug(f"Context bound of {self.max_chars} characters reached")
                break

            parts.append(text)
            current_length += addition

        return CONTEXT_SEPARATOR.join(parts)


class PromptBuilder:
    """
    Builds the grounded prompt.

    The instruction channel holds the persona, the grounding rule with the
    fallback sentence, and the context as inert text. The question travels
    on its own in the user channel.
    """

    def __init__(
        self,
        persona: str = DEFAULT_PERSONA,
        fallback_answer: str = DEFAULT_FALLBACK_ANSWER,
    ):
        self.persona = persona
        self.fallback_answer = fallback_answer

    @property
    def instructions(self) -> str:
        return (
            f"{self.persona} Your mission is to answer the user's question clearly and "
            "precisely, relying ONLY on the context provided below.\n"
            "If the information is not in the context, reply with exactly this sentence: "
            f'"{self.fallback_answer}" Do not make up answers. Always be courteous.'
        )

    def build(self, context: str, question: str) -> Prompt:
        """
        Build a prompt from context and question.

        Args:
            context: Assembled context, inserted verbatim
            question: User question, passed verbatim

        Returns:
            Prompt ready for the generator
        """
        # Concatenation, not str.format: context may contain braces.
        system = self.instructions + "\n\nContext:\n" + context
        return Prompt(system=system, question=question)
