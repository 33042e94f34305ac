import logging
import threading
import uuid
from typing import Optional

import numpy as np

from ...core.models.document import IndexedChunk, SearchResult
from ...exceptions import VectorStoreError

logger = logging.getLogger(__name__)


class InMemoryVectorStore:
    """Process-local vector store with exact cosine search."""

    def __init__(self):
        self._chunks: dict[str, IndexedChunk] = {}
        self._lock = threading.Lock()

    def insert(self, chunk: IndexedChunk) -> str:
        chunk_id = chunk.id or uuid.uuid4().hex
        chunk.id = chunk_id
        with self._lock:
            self._chunks[chunk_id] = chunk
        return chunk_id

    def set_vector(self, chunk_id: str, vector: list[float]) -> None:
        with self._lock:
            if chunk_id not in self._chunks:
                raise VectorStoreError(f"Unknown chunk: {chunk_id}")
            self._chunks[chunk_id].embedding = list(vector)

    def similarity_search(
        self,
        project_id: str,
        vector: list[float],
        threshold: float = 0.3,
        limit: int = 30,
    ) -> list[SearchResult]:
        with self._lock:
            candidates = [
                c for c in self._chunks.values()
                if c.project_id == project_id and c.embedding is not None
            ]
        if not candidates:
            return []

        query = np.asarray(vector, dtype=float)
        matrix = np.asarray([c.embedding for c in candidates], dtype=float)
        if matrix.shape[1] != query.shape[0]:
            raise VectorStoreError(
                f"Dimension mismatch: query {query.shape[0]}, stored {matrix.shape[1]}"
            )

        norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
        scores = np.divide(
            matrix @ query, norms, out=np.zeros(len(candidates)), where=norms > 0
        )

        order = np.argsort(-scores, kind="stable")
        results = []
        for idx in order:
            score = float(scores[idx])
            if score <= threshold or len(results) >= limit:
                break
            chunk = candidates[idx]
            results.append(
                SearchResult(
                    file_name=chunk.file_name,
                    source_code=chunk.source_code,
                    summary=chunk.summary,
                    vector_score=score,
                )
            )
        return results

    def delete_project(self, project_id: str) -> int:
        with self._lock:
            ids = [k for k, c in self._chunks.items() if c.project_id == project_id]
            for chunk_id in ids:
                del self._chunks[chunk_id]
        return len(ids)

    def count(self, project_id: Optional[str] = None) -> int:
        with self._lock:
            if project_id is None:
                return len(self._chunks)
            return sum(1 for c in self._chunks.values() if c.project_id == project_id)
