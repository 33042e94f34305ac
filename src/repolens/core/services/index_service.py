"""Index service - repository indexing."""

import asyncio
import dataclasses
import logging
from typing import Optional

from ...exceptions import RepositoryFetchError
from ..models.document import Fragment, IndexedChunk, RawFile
from ..models.indexing import IndexReport
from ..protocols.repo_fetcher import RepoFetcherProtocol
from ..protocols.vector_store import VectorStoreProtocol
from .chunker import CodeChunker
from .embedding_service import EmbeddingService
from .summarizer import Summarizer

logger = logging.getLogger(__name__)


class IndexService:
    """Service for indexing repositories into the vector store."""

    def __init__(
        self,
        fetcher: RepoFetcherProtocol,
        chunker: CodeChunker,
        summarizer: Summarizer,
        embeddings: EmbeddingService,
        vector_store: VectorStoreProtocol,
        batch_size: int = 10,
        concurrency: int = 5,
    ):
        """Initialize index service.

        Args:
            fetcher: Repository fetcher.
            chunker: Fragment chunker.
            summarizer: Fragment summarizer.
            embeddings: Embedding service.
            vector_store: Vector store.
            batch_size: Items persisted per batch.
            concurrency: Fragments summarized/embedded at once.
        """
        self._fetcher = fetcher
        self._chunker = chunker
        self._summarizer = summarizer
        self._embeddings = embeddings
        self._vector_store = vector_store
        self._batch_size = batch_size
        self._concurrency = concurrency

    async def _fetch(self, repo_ref: str, credentials: Optional[str]) -> list[RawFile]:
        try:
            return await asyncio.to_thread(
                self._fetcher.fetch_files, repo_ref, credentials
            )
        except RepositoryFetchError:
            raise
        except Exception as e:
            raise RepositoryFetchError(f"Failed to fetch {repo_ref}: {e}") from e

    def _chunk_files(self, files: list[RawFile]) -> list[Fragment]:
        fragments: list[Fragment] = []
        for file in files:
            fragments.extend(self._chunker.chunk(file))
        return fragments

    async def _prepare(
        self,
        project_id: str,
        fragment: Fragment,
        semaphore: asyncio.Semaphore,
    ) -> Optional[IndexedChunk]:
        """Summarize and embed one fragment. None if it cannot be embedded."""
        async with semaphore:
            summary = await self._summarizer.summarize(fragment)
            try:
                embedding = await asyncio.to_thread(self._embeddings.embed, summary)
            except Exception as e:
                logger.warning(
                    f"Dropping {fragment.source_file}#{fragment.chunk_index}: {e}"
                )
                return None

        return IndexedChunk(
            project_id=project_id,
            file_name=fragment.source_file,
            source_code=fragment.content,
            summary=summary,
            embedding=embedding,
        )

    async def _persist(self, chunk: IndexedChunk) -> str:
        """Insert the row, then attach its vector."""
        row = dataclasses.replace(chunk, embedding=None)
        chunk_id = await asyncio.to_thread(self._vector_store.insert, row)
        await asyncio.to_thread(self._vector_store.set_vector, chunk_id, chunk.embedding)
        return chunk_id

    async def index(
        self,
        project_id: str,
        repo_ref: str,
        credentials: Optional[str] = None,
        replace: bool = False,
    ) -> IndexReport:
        """Index a repository into a project.

        Args:
            project_id: Owning project.
            repo_ref: Repository reference for the fetcher.
            credentials: Repository access token.
            replace: Delete the project's existing chunks before storing.

        Returns:
            Success/error tally.

        Raises:
            RepositoryFetchError: If the repository cannot be fetched.
        """
        logger.info(f"Starting indexing for project {project_id}")

        files = await self._fetch(repo_ref, credentials)
        logger.info(f"Loaded {len(files)} files from repository")

        fragments = self._chunk_files(files)
        logger.info(f"Created {len(fragments)} chunks from {len(files)} files")

        report = IndexReport(fragment_count=len(fragments), file_count=len(files))

        semaphore = asyncio.Semaphore(self._concurrency)
        prepared = await asyncio.gather(
            *(self._prepare(project_id, f, semaphore) for f in fragments)
        )
        chunks = [c for c in prepared if c is not None]
        report.error_count += len(prepared) - len(chunks)
        logger.info(f"Generated {len(chunks)} embeddings")

        if replace:
            deleted = await asyncio.to_thread(self._vector_store.delete_project, project_id)
            logger.info(f"Replaced {deleted} existing chunks of project {project_id}")

        for i in range(0, len(chunks), self._batch_size):
            batch = chunks[i : i + self._batch_size]
            results = await asyncio.gather(
                *(self._persist(c) for c in batch), return_exceptions=True
            )

            for chunk, result in zip(batch, results):
                if isinstance(result, Exception):
                    report.error_count += 1
                    logger.error(f"Failed to store chunk of {chunk.file_name}: {result}")
                elif isinstance(result, BaseException):
                    raise result
                else:
                    report.success_count += 1

            logger.info(
                f"Processed batch {i // self._batch_size + 1}: "
                f"{report.success_count} success, {report.error_count} errors"
            )

        logger.info(
            f"Indexing complete: {report.success_count} embeddings created, "
            f"{report.error_count} errors"
        )
        return report

    async def estimate_cost(
        self, repo_ref: str, credentials: Optional[str] = None
    ) -> int:
        """Count the fragments a full index would create (one credit each).

        Raises:
            RepositoryFetchError: If the repository cannot be fetched.
        """
        files = await self._fetch(repo_ref, credentials)
        total = len(self._chunk_files(files))
        logger.info(
            f"Repository will require approximately {total} credits ({len(files)} files)"
        )
        return total
