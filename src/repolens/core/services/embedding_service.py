"""Embedding service - text to vector with validation."""

import logging

import numpy as np

from ...exceptions import EmbeddingError
from ..protocols.embedder import EmbedderProtocol

logger = logging.getLogger(__name__)


class EmbeddingService:
    """Thin wrapper over the embedder that rejects unusable vectors."""

    def __init__(
        self,
        embedder: EmbedderProtocol,
        passage_prefix: str = "passage: ",
        query_prefix: str = "query: ",
    ):
        """Initialize embedding service.

        Args:
            embedder: Embedding model.
            passage_prefix: Prefix for indexed text (E5-style models).
            query_prefix: Prefix for questions.
        """
        self._embedder = embedder
        self._passage_prefix = passage_prefix
        self._query_prefix = query_prefix

    def embed(self, text: str) -> list[float]:
        """Embed indexed text (a fragment summary).

        Raises:
            EmbeddingError: If the embedder fails or the vector is degenerate.
        """
        return self._encode(f"{self._passage_prefix}{text}")

    def embed_query(self, text: str) -> list[float]:
        """Embed a question.

        Raises:
            EmbeddingError: If the embedder fails or the vector is degenerate.
        """
        return self._encode(f"{self._query_prefix}{text}")

    def _encode(self, text: str) -> list[float]:
        try:
            vector = self._embedder.encode(text)
        except Exception as e:
            raise EmbeddingError(f"Embedding failed: {e}") from e

        values = np.asarray(vector, dtype=float).ravel()
        if values.size == 0:
            raise EmbeddingError("Embedding is empty")
        if not np.isfinite(values).all():
            raise EmbeddingError("Embedding contains NaN or inf")
        if not values.any():
            raise EmbeddingError("Embedding is all zeros")
        return values.tolist()
