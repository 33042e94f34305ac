"""Shared pytest fixtures and test doubles."""
from __future__ import annotations

from typing import AsyncIterator, Optional

import numpy as np
import pytest

from repolens.core.models.document import IndexedChunk, RawFile, SearchResult
from repolens.core.services.chunker import CodeChunker
from repolens.core.services.embedding_service import EmbeddingService
from repolens.core.services.index_service import IndexService
from repolens.core.services.summarizer import Summarizer
from repolens.exceptions import GenerationError, VectorStoreError
from repolens.infrastructure.vector_stores.memory_store import InMemoryVectorStore

VOCAB = ["auth", "login", "api", "database", "component", "render", "token", "query"]


class FakeEmbedder:
    """Bag-of-words embedder over a small vocabulary, plus a bias term."""

    def __init__(self, fail_marker: str = "FAIL_EMBED"):
        self.fail_marker = fail_marker
        self.calls: list[str] = []

    def encode(self, texts):
        self.calls.append(texts)
        if self.fail_marker in texts:
            raise RuntimeError("embedding backend down")
        lower = texts.lower()
        return np.array([float(lower.count(w)) for w in VOCAB] + [1.0])

    def warmup(self) -> None:
        pass


class FakeLLM:
    """Summaries echo the code; streams replay canned tokens."""

    def __init__(
        self,
        tokens: Optional[list[str]] = None,
        fail_marker: str = "FAIL_SUMMARY",
        fail_stream_after: Optional[int] = None,
    ):
        self.tokens = tokens or ["The ", "answer ", "is ", "here."]
        self.fail_marker = fail_marker
        self.fail_stream_after = fail_stream_after
        self.prompts: list[str] = []
        self.stream_prompts: list[str] = []
        self.stream_closed = False
        self.tokens_sent = 0

    async def generate(self, prompt: str, max_tokens: int | None = None) -> str:
        self.prompts.append(prompt)
        if self.fail_marker in prompt:
            raise GenerationError("model overloaded")
        code = prompt.split("---\n")[1] if "---\n" in prompt else prompt
        return f"Summary: {code.strip()[:200]}"

    async def generate_stream(
        self, prompt: str, max_tokens: int | None = None
    ) -> AsyncIterator[str]:
        self.stream_prompts.append(prompt)
        try:
            for i, token in enumerate(self.tokens):
                if self.fail_stream_after is not None and i >= self.fail_stream_after:
                    raise ConnectionError("stream dropped")
                self.tokens_sent += 1
                yield token
        finally:
            self.stream_closed = True


class FakeFetcher:
    def __init__(self, files: Optional[list[RawFile]] = None, error: Optional[Exception] = None):
        self.files = files or []
        self.error = error
        self.calls: list[tuple[str, Optional[str]]] = []

    def fetch_files(self, ref: str, credentials: Optional[str] = None) -> list[RawFile]:
        self.calls.append((ref, credentials))
        if self.error is not None:
            raise self.error
        return list(self.files)


class FlakyStore(InMemoryVectorStore):
    """In-memory store that rejects inserts for chosen file names."""

    def __init__(self, fail_files: set[str] | None = None):
        super().__init__()
        self.fail_files = fail_files or set()

    def insert(self, chunk: IndexedChunk) -> str:
        if chunk.file_name in self.fail_files:
            raise VectorStoreError(f"insert rejected for {chunk.file_name}")
        return super().insert(chunk)


class StubStore:
    """Returns canned candidates and records the query."""

    def __init__(self, results: list[SearchResult]):
        self.results = results
        self.queries: list[tuple] = []

    def similarity_search(self, project_id, vector, threshold=0.3, limit=30):
        self.queries.append((project_id, vector, threshold, limit))
        return [
            SearchResult(r.file_name, r.source_code, r.summary, r.vector_score)
            for r in self.results
        ][:limit]


def make_result(file_name: str, score: float, summary: str = "", code: str = "code") -> SearchResult:
    return SearchResult(
        file_name=file_name, source_code=code, summary=summary, vector_score=score
    )


@pytest.fixture
def fake_embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def fake_llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture
def embeddings(fake_embedder) -> EmbeddingService:
    return EmbeddingService(fake_embedder)


@pytest.fixture
def memory_store() -> InMemoryVectorStore:
    return InMemoryVectorStore()


@pytest.fixture
def make_index_service(fake_llm, embeddings):
    def _make(files=None, store=None, fetch_error=None, batch_size=10):
        fetcher = FakeFetcher(files=files, error=fetch_error)
        service = IndexService(
            fetcher=fetcher,
            chunker=CodeChunker(max_chunk_size=2000),
            summarizer=Summarizer(fake_llm),
            embeddings=embeddings,
            vector_store=store if store is not None else InMemoryVectorStore(),
            batch_size=batch_size,
        )
        return service, fetcher

    return _make
