"""Summarizer - short natural-language description of a fragment."""

import logging

from ..models.document import Fragment
from ..protocols.llm import LLMProtocol

logger = logging.getLogger(__name__)

SUMMARY_PROMPT = """You are an intelligent senior software engineer who specializes in onboarding junior software engineers onto projects.
You are onboarding a junior software engineer and explaining to them the purpose of the {path} file.
Here is the code:
---
{code}
---
Please provide a summary of the code above in no more than 100 words."""


class Summarizer:
    """Summarizes fragments via the LLM with a deterministic fallback."""

    def __init__(
        self,
        llm: LLMProtocol,
        max_input_chars: int = 10000,
        max_tokens: int | None = 256,
    ):
        """Initialize summarizer.

        Args:
            llm: Generative text client.
            max_input_chars: Cap on code characters sent to the LLM.
            max_tokens: Output budget per summary.
        """
        self._llm = llm
        self._max_input_chars = max_input_chars
        self._max_tokens = max_tokens

    @staticmethod
    def chunk_prefix(fragment: Fragment) -> str:
        """Position note for fragments of multi-chunk files."""
        if fragment.total_chunks <= 1:
            return ""
        return (
            f"This is chunk {fragment.chunk_index + 1} of {fragment.total_chunks} "
            f"from {fragment.source_file}. "
        )

    @staticmethod
    def fallback(fragment: Fragment) -> str:
        return f"Code section from {fragment.source_file}"

    def build_prompt(self, fragment: Fragment) -> str:
        return SUMMARY_PROMPT.format(
            path=fragment.source_file,
            code=fragment.content[: self._max_input_chars],
        )

    async def summarize(self, fragment: Fragment) -> str:
        """Summarize a fragment. Never raises on LLM failure.

        Args:
            fragment: Fragment to describe.

        Returns:
            Summary, prefixed with the chunk position for multi-chunk files.
        """
        prefix = self.chunk_prefix(fragment)

        try:
            summary = await self._llm.generate(
                self.build_prompt(fragment), max_tokens=self._max_tokens
            )
        except Exception as e:
            logger.warning(
                f"Summary failed for {fragment.source_file}#{fragment.chunk_index}: {e}"
            )
            return prefix + self.fallback(fragment)

        summary = (summary or "").strip()
        if not summary:
            logger.warning(
                f"Empty summary for {fragment.source_file}#{fragment.chunk_index}"
            )
            return prefix + self.fallback(fragment)

        return prefix + summary
