"""Answer service - coordinates retrieval and LLM streaming."""

import logging
from typing import AsyncIterator

from ...exceptions import GenerationError
from ..models.answer import AnswerResult
from ..models.document import SearchResult
from ..protocols.llm import LLMProtocol
from .retrieval_service import RetrievalService

logger = logging.getLogger(__name__)

NO_CONTEXT_NOTE = (
    "No indexed code matched this question. Say that the available context is "
    "insufficient and describe what would be needed to answer it."
)

ANSWER_PROMPT = """You are an expert senior software engineer helping developers understand this codebase.

## YOUR TASK
Analyze the provided code context and answer the question accurately and comprehensively.

## GUIDELINES
1. Reference specific files when explaining (e.g., "In src/lib/github.ts, the function...")
2. Provide code examples when helpful
3. Explain clearly for developers who may be new to the codebase
4. If the context doesn't fully answer the question, explain what's missing
5. Suggest related files or areas to explore
6. Be specific and actionable

{context}

## QUESTION
{question}

## YOUR ANSWER
Provide a detailed, accurate answer based on the code context above:"""


def format_context(results: list[SearchResult], max_code_chars: int = 3000) -> str:
    """Format results as a directory-grouped context document."""
    parts = ["# CODEBASE CONTEXT\n\n"]

    if not results:
        parts.append(f"{NO_CONTEXT_NOTE}\n")
        return "".join(parts)

    grouped: dict[str, list[SearchResult]] = {}
    for r in results:
        grouped.setdefault(r.directory, []).append(r)

    for directory, files in grouped.items():
        parts.append(f"## Directory: {directory}\n\n")

        for r in files:
            code = r.source_code
            if len(code) > max_code_chars:
                code = code[:max_code_chars] + "\n... [truncated]"

            parts.append(f"### File: {r.file_name}\n")
            parts.append(f"**Summary:** {r.summary}\n")
            parts.append(f"**Relevance:** {r.similarity * 100:.1f}%\n\n")
            parts.append(f"```\n{code}\n```\n\n")

    return "".join(parts)


def build_prompt(question: str, context: str) -> str:
    return ANSWER_PROMPT.format(context=context, question=question)


class AnswerService:
    """Answers questions about an indexed project."""

    def __init__(
        self,
        llm: LLMProtocol,
        retrieval: RetrievalService,
        max_tokens: int = 2000,
        max_code_chars: int = 3000,
    ):
        """Initialize answer service.

        Args:
            llm: LLM client.
            retrieval: Retrieval service.
            max_tokens: Output budget for the answer.
            max_code_chars: Per-fragment source cap in the context.
        """
        self._llm = llm
        self._retrieval = retrieval
        self._max_tokens = max_tokens
        self._max_code_chars = max_code_chars

    async def answer(self, question: str, project_id: str) -> AnswerResult:
        """Retrieve context and start streaming an answer.

        Generation starts when the caller iterates the stream. Generation
        failures surface as GenerationError from the stream; cited
        fragments stay valid.

        Args:
            question: User question.
            project_id: Project scope.

        Returns:
            Answer stream with cited fragments and the context used.
        """
        cited = await self._retrieval.retrieve(question, project_id)
        context = format_context(cited, self._max_code_chars)

        if not cited:
            logger.info(f"No context for '{question[:50]}...', answering without code")
        else:
            logger.info(f"Using {len(cited)} documents for context")

        prompt = build_prompt(question, context)
        return AnswerResult(
            stream=self._stream(prompt),
            cited_fragments=cited,
            context=context,
        )

    async def _stream(self, prompt: str) -> AsyncIterator[str]:
        stream = self._llm.generate_stream(prompt, max_tokens=self._max_tokens)
        try:
            async for token in stream:
                yield token
        except GenerationError:
            raise
        except Exception as e:
            logger.error(f"Answer stream error: {e}")
            raise GenerationError(f"Failed to generate answer: {e}") from e
        finally:
            # Runs on consumer cancellation too (GeneratorExit)
            aclose = getattr(stream, "aclose", None)
            if aclose is not None:
                await aclose()
