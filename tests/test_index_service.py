"""Tests for repository indexing."""

import pytest

from repolens.core.models.document import RawFile
from repolens.exceptions import AuthenticationError, RepositoryFetchError

from .conftest import FlakyStore


def small_files(n: int, marker: dict[int, str] | None = None) -> list[RawFile]:
    marker = marker or {}
    return [
        RawFile(
            path=f"src/f{i}.ts",
            content=f"export function f{i}() {{\n  return {i}; // {marker.get(i, '')}\n}}\n",
        )
        for i in range(n)
    ]


class TestIndex:

    @pytest.mark.asyncio
    async def test_indexes_every_fragment(self, make_index_service, memory_store):
        service, _ = make_index_service(files=small_files(3), store=memory_store)

        report = await service.index("proj", "owner/repo")

        assert (report.success_count, report.error_count) == (3, 0)
        assert (report.fragment_count, report.file_count) == (3, 3)
        assert memory_store.count("proj") == 3
        results = memory_store.similarity_search("proj", [0.0] * 8 + [1.0], threshold=0.0)
        assert sorted(r.file_name for r in results) == ["src/f0.ts", "src/f1.ts", "src/f2.ts"]

    @pytest.mark.asyncio
    async def test_partial_failures_are_tallied(self, make_index_service):
        files = small_files(
            10, marker={0: "FAIL_SUMMARY", 1: "FAIL_SUMMARY", 2: "FAIL_EMBED"}
        )
        store = FlakyStore(fail_files={"src/f3.ts", "src/f4.ts"})
        service, _ = make_index_service(files=files, store=store)

        report = await service.index("proj", "owner/repo")

        # summary failures fall back and still index; embedding and storage failures count
        assert report.success_count == 7
        assert report.error_count == 3
        assert store.count("proj") == 7

    @pytest.mark.asyncio
    async def test_summary_fallback_is_stored(self, make_index_service, memory_store):
        files = small_files(1, marker={0: "FAIL_SUMMARY"})
        service, _ = make_index_service(files=files, store=memory_store)

        await service.index("proj", "owner/repo")

        [result] = memory_store.similarity_search("proj", [0.0] * 8 + [1.0], threshold=0.0)
        assert result.summary == "Code section from src/f0.ts"

    @pytest.mark.asyncio
    async def test_failures_isolated_across_batches(self, make_index_service):
        store = FlakyStore(fail_files={"src/f1.ts"})
        service, _ = make_index_service(files=small_files(5), store=store, batch_size=2)

        report = await service.index("proj", "owner/repo")

        assert (report.success_count, report.error_count) == (4, 1)

    @pytest.mark.asyncio
    async def test_credentials_forwarded(self, make_index_service):
        service, fetcher = make_index_service(files=small_files(1))

        await service.index("proj", "owner/repo", credentials="tok")

        assert fetcher.calls == [("owner/repo", "tok")]

    @pytest.mark.asyncio
    async def test_empty_repository(self, make_index_service):
        service, _ = make_index_service(files=[])

        report = await service.index("proj", "owner/repo")

        assert (report.success_count, report.error_count, report.fragment_count) == (0, 0, 0)


class TestReindex:

    @pytest.mark.asyncio
    async def test_appends_by_default(self, make_index_service, memory_store):
        service, fetcher = make_index_service(files=small_files(2), store=memory_store)
        await service.index("proj", "owner/repo")

        fetcher.files = small_files(1)
        await service.index("proj", "owner/repo")

        assert memory_store.count("proj") == 3

    @pytest.mark.asyncio
    async def test_replace_drops_previous_chunks(self, make_index_service, memory_store):
        service, fetcher = make_index_service(files=small_files(2), store=memory_store)
        await service.index("proj", "owner/repo")
        await service.index("other", "owner/repo")

        fetcher.files = small_files(1)
        await service.index("proj", "owner/repo", replace=True)

        assert memory_store.count("proj") == 1
        assert memory_store.count("other") == 2


class TestFetchFailure:

    @pytest.mark.asyncio
    async def test_unexpected_error_wrapped(self, make_index_service, memory_store):
        service, _ = make_index_service(
            store=memory_store, fetch_error=RuntimeError("connection reset")
        )

        with pytest.raises(RepositoryFetchError, match="connection reset"):
            await service.index("proj", "owner/repo")
        assert memory_store.count() == 0

    @pytest.mark.asyncio
    async def test_fetch_errors_propagate_unchanged(self, make_index_service):
        service, _ = make_index_service(fetch_error=AuthenticationError("bad token"))

        with pytest.raises(AuthenticationError):
            await service.index("proj", "owner/repo")

    @pytest.mark.asyncio
    async def test_replace_keeps_data_when_fetch_fails(self, make_index_service, memory_store):
        service, fetcher = make_index_service(files=small_files(2), store=memory_store)
        await service.index("proj", "owner/repo")

        fetcher.error = RuntimeError("offline")
        with pytest.raises(RepositoryFetchError):
            await service.index("proj", "owner/repo", replace=True)

        assert memory_store.count("proj") == 2


class TestEstimateCost:

    @pytest.mark.asyncio
    async def test_counts_fragments(self, make_index_service, fake_embedder, fake_llm):
        big = RawFile(path="src/big.txt", content="\n".join("x" * 99 for _ in range(100)))
        service, _ = make_index_service(files=small_files(1) + [big])

        assert await service.estimate_cost("owner/repo") == 6
        assert fake_llm.prompts == []
        assert fake_embedder.calls == []

    @pytest.mark.asyncio
    async def test_fetch_failure(self, make_index_service):
        service, _ = make_index_service(fetch_error=RuntimeError("nope"))

        with pytest.raises(RepositoryFetchError):
            await service.estimate_cost("owner/repo")
