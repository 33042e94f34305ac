"""Tests for answer orchestration and context assembly."""

import pytest

from repolens.core.services.answer_service import (
    NO_CONTEXT_NOTE,
    AnswerService,
    build_prompt,
    format_context,
)
from repolens.core.services.retrieval_service import RetrievalService
from repolens.exceptions import GenerationError

from .conftest import FakeLLM, StubStore, make_result


def answer_service(embeddings, llm, results):
    retrieval = RetrievalService(embeddings, StubStore(results))
    return AnswerService(llm, retrieval)


class TestFormatContext:

    def test_groups_by_directory(self):
        results = [
            make_result("src/auth/login.ts", 0.8, summary="Logs users in", code="login()"),
            make_result("README.md", 0.5, summary="Readme", code="# Repo"),
            make_result("src/auth/logout.ts", 0.6, summary="Logs users out", code="logout()"),
        ]

        context = format_context(results)

        assert context.startswith("# CODEBASE CONTEXT\n\n")
        assert context.count("## Directory: src/auth") == 1
        assert context.count("## Directory: root") == 1
        assert context.index("login.ts") < context.index("logout.ts") < context.index("README.md")
        assert "### File: src/auth/login.ts\n**Summary:** Logs users in\n" in context
        assert "**Relevance:** 80.0%" in context
        assert "```\nlogin()\n```" in context

    def test_truncates_long_code(self):
        result = make_result("a/big.ts", 0.5, code="y" * 5000)

        context = format_context([result], max_code_chars=3000)

        assert "y" * 3000 + "\n... [truncated]" in context
        assert "y" * 3001 not in context

    def test_empty_results_note(self):
        context = format_context([])

        assert context == f"# CODEBASE CONTEXT\n\n{NO_CONTEXT_NOTE}\n"

    def test_prompt_contains_context_and_question(self):
        prompt = build_prompt("Where is auth?", "# CODEBASE CONTEXT\n\nstuff")

        assert "# CODEBASE CONTEXT\n\nstuff" in prompt
        assert "## QUESTION\nWhere is auth?" in prompt


class TestAnswer:

    @pytest.mark.asyncio
    async def test_streams_answer_with_citations(self, embeddings, fake_llm):
        service = answer_service(
            embeddings, fake_llm, [make_result("src/auth/login.ts", 0.7, code="login()")]
        )

        result = await service.answer("how does auth work", "proj")
        tokens = [t async for t in result.stream]

        assert "".join(tokens) == "The answer is here."
        assert [r.file_name for r in result.cited_fragments] == ["src/auth/login.ts"]
        assert result.sources == ["src/auth/login.ts"]
        assert "login()" in fake_llm.stream_prompts[0]
        assert "how does auth work" in fake_llm.stream_prompts[0]

    @pytest.mark.asyncio
    async def test_no_context_still_answers(self, embeddings, fake_llm):
        service = answer_service(embeddings, fake_llm, [make_result("a/x.ts", 0.1)])

        result = await service.answer("anything", "proj")
        tokens = [t async for t in result.stream]

        assert tokens
        assert result.cited_fragments == []
        assert NO_CONTEXT_NOTE in fake_llm.stream_prompts[0]

    @pytest.mark.asyncio
    async def test_generation_starts_on_iteration(self, embeddings, fake_llm):
        service = answer_service(embeddings, fake_llm, [])

        await service.answer("q", "proj")

        assert fake_llm.stream_prompts == []

    @pytest.mark.asyncio
    async def test_stream_failure_keeps_citations(self, embeddings):
        llm = FakeLLM(fail_stream_after=2)
        service = answer_service(embeddings, llm, [make_result("src/db/client.ts", 0.6)])

        result = await service.answer("database setup", "proj")
        received = []
        with pytest.raises(GenerationError):
            async for token in result.stream:
                received.append(token)

        assert received == ["The ", "answer "]
        assert [r.file_name for r in result.cited_fragments] == ["src/db/client.ts"]

    @pytest.mark.asyncio
    async def test_consumer_cancellation_closes_generation(self, embeddings):
        llm = FakeLLM(tokens=[f"t{i} " for i in range(50)])
        service = answer_service(embeddings, llm, [])

        result = await service.answer("q", "proj")
        async for token in result.stream:
            if token == "t1 ":
                break
        await result.stream.aclose()

        assert llm.stream_closed
        assert llm.tokens_sent == 2
