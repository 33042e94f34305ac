"""Retrieval service - similarity search with keyword boost and diversity."""

import asyncio
import logging
from typing import Optional

from ..models.document import SearchResult
from ..protocols.vector_store import VectorStoreProtocol
from ..strategies.scoring import (
    DirectoryDiversityStrategy,
    KeywordBoostStrategy,
    ScoringStrategy,
)
from .embedding_service import EmbeddingService

logger = logging.getLogger(__name__)


class RetrievalService:
    """Retrieves a project's most relevant fragments for a question."""

    def __init__(
        self,
        embeddings: EmbeddingService,
        vector_store: VectorStoreProtocol,
        top_k: int = 15,
        fetch_k: int = 30,
        vector_threshold: float = 0.3,
        per_directory: int = 3,
        strategies: list[ScoringStrategy] | None = None,
    ):
        """Initialize retrieval service.

        Args:
            embeddings: Embedding service.
            vector_store: Vector store.
            top_k: Number of results to return.
            fetch_k: Number of candidates to fetch for reranking.
            vector_threshold: Minimum raw similarity (exclusive).
            per_directory: Maximum results from one directory.
            strategies: Custom rerank strategies, applied before diversity.
        """
        self._embeddings = embeddings
        self._vector_store = vector_store
        self._top_k = top_k
        self._fetch_k = fetch_k
        self._vector_threshold = vector_threshold
        self._per_directory = per_directory

        self._strategies = strategies or [KeywordBoostStrategy()]

    async def retrieve(
        self, question: str, project_id: str, limit: Optional[int] = None
    ) -> list[SearchResult]:
        """Retrieve fragments for a question.

        Args:
            question: Natural-language question.
            project_id: Project scope.
            limit: Override number of results.

        Returns:
            Results in boosted-similarity order. Empty if nothing clears the
            threshold.
        """
        limit = limit or self._top_k

        query_vector = await asyncio.to_thread(self._embeddings.embed_query, question)

        candidates = await asyncio.to_thread(
            self._vector_store.similarity_search,
            project_id,
            query_vector,
            self._vector_threshold,
            self._fetch_k,
        )
        # Stores may be lenient at the boundary; the gate is strict
        results = [r for r in candidates if r.vector_score > self._vector_threshold]
        logger.info(f"Found {len(results)} candidate documents")

        for strategy in self._strategies:
            results = strategy.apply(question, results)

        diversity = DirectoryDiversityStrategy(limit, self._per_directory)
        results = diversity.apply(question, results)

        logger.info(
            f"Retrieve: returned {len(results)}/{limit} docs for '{question[:50]}...'"
        )
        return results
