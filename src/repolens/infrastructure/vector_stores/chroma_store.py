import logging
import threading
import uuid
from typing import Optional

import requests

from ...core.models.document import IndexedChunk, SearchResult
from ...exceptions import VectorStoreError

logger = logging.getLogger(__name__)


class ChromaVectorStore:
    """Vector store using ChromaDB HTTP API.

    Chroma cannot hold a row without an embedding, so inserted chunks stay
    pending in memory until ``set_vector`` adds them. A pending chunk is never
    a similarity match, the same as a row with a NULL vector.
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 8001,
        collection_name: str = "repolens_chunks",
        tenant: str = "default_tenant",
        database: str = "default_database",
        timeout: float = 30.0,
    ):
        """Initialize ChromaDB client.

        Args:
            host: ChromaDB host.
            port: ChromaDB port.
            collection_name: Collection name.
            tenant: Tenant name.
            database: Database name.
            timeout: HTTP timeout in seconds.
        """
        self._base_url = f"http://{host}:{port}/api/v2"
        self._tenant = tenant
        self._database = database
        self._collection_name = collection_name
        self._collection_id: Optional[str] = None
        self._timeout = timeout
        self._pending: dict[str, IndexedChunk] = {}
        self._lock = threading.Lock()
        self._collection_lock = threading.Lock()

    @property
    def _collections_url(self) -> str:
        return f"{self._base_url}/tenants/{self._tenant}/databases/{self._database}/collections"

    def _request(self, method: str, path: str = "", **kwargs) -> requests.Response:
        url = f"{self._collections_url}{path}"
        try:
            resp = requests.request(method, url, timeout=self._timeout, **kwargs)
            resp.raise_for_status()
        except requests.RequestException as e:
            raise VectorStoreError(f"Chroma {method} {path or '/'} failed: {e}") from e
        return resp

    def _ensure_collection(self) -> str:
        """Get or create collection, return ID."""
        if self._collection_id:
            return self._collection_id

        # set_vector runs from worker threads; create the collection once
        with self._collection_lock:
            if not self._collection_id:
                self._collection_id = self._find_collection() or self._create_collection()
        return self._collection_id

    def _find_collection(self) -> Optional[str]:
        for col in self._request("GET").json():
            if col["name"] == self._collection_name:
                return col["id"]
        return None

    def _create_collection(self) -> str:
        try:
            resp = self._request(
                "POST",
                json={"name": self._collection_name, "metadata": {"hnsw:space": "cosine"}},
            )
        except VectorStoreError as e:
            # 409: another client created it since we listed
            response = getattr(e.__cause__, "response", None)
            if response is not None and response.status_code == 409:
                col_id = self._find_collection()
                if col_id:
                    return col_id
            raise

        logger.info(f"Created collection: {self._collection_name}")
        return resp.json()["id"]

    def insert(self, chunk: IndexedChunk) -> str:
        """Stage a chunk until its vector arrives."""
        chunk_id = chunk.id or uuid.uuid4().hex
        chunk.id = chunk_id
        with self._lock:
            self._pending[chunk_id] = chunk
        return chunk_id

    def set_vector(self, chunk_id: str, vector: list[float]) -> None:
        """Add a staged chunk to the collection with its vector."""
        with self._lock:
            chunk = self._pending.pop(chunk_id, None)
        if chunk is None:
            raise VectorStoreError(f"Unknown or already stored chunk: {chunk_id}")

        col_id = self._ensure_collection()
        try:
            self._request(
                "POST",
                f"/{col_id}/add",
                json={
                    "ids": [chunk_id],
                    "embeddings": [vector],
                    "documents": [chunk.source_code],
                    "metadatas": [
                        {
                            "project_id": chunk.project_id,
                            "file_name": chunk.file_name,
                            "summary": chunk.summary,
                            "created_at": chunk.created_at.isoformat(),
                        }
                    ],
                },
            )
        except VectorStoreError:
            with self._lock:
                self._pending[chunk_id] = chunk
            raise

    def similarity_search(
        self,
        project_id: str,
        vector: list[float],
        threshold: float = 0.3,
        limit: int = 30,
    ) -> list[SearchResult]:
        """Search a project's chunks by embedding."""
        col_id = self._ensure_collection()
        data = self._request(
            "POST",
            f"/{col_id}/query",
            json={
                "query_embeddings": [vector],
                "n_results": limit,
                "where": {"project_id": project_id},
                "include": ["documents", "metadatas", "distances"],
            },
        ).json()

        results = []

        if data.get("ids") and data["ids"][0]:
            for i in range(len(data["ids"][0])):
                similarity = 1.0 - data["distances"][0][i]
                if similarity <= threshold:
                    continue

                meta = data["metadatas"][0][i] or {}
                results.append(
                    SearchResult(
                        file_name=meta.get("file_name", "Unknown"),
                        source_code=data["documents"][0][i] or "",
                        summary=meta.get("summary", ""),
                        vector_score=similarity,
                    )
                )

        results.sort(key=lambda r: r.vector_score, reverse=True)
        return results

    def _project_ids(self, col_id: str, project_id: str) -> list[str]:
        resp = self._request(
            "POST",
            f"/{col_id}/get",
            json={"where": {"project_id": project_id}, "include": []},
        )
        return resp.json().get("ids", [])

    def delete_project(self, project_id: str) -> int:
        """Delete all chunks of a project."""
        with self._lock:
            for chunk_id in [k for k, c in self._pending.items() if c.project_id == project_id]:
                del self._pending[chunk_id]

        col_id = self._ensure_collection()
        ids = self._project_ids(col_id, project_id)
        if ids:
            self._request("POST", f"/{col_id}/delete", json={"ids": ids})
            logger.info(f"Deleted {len(ids)} chunks of project {project_id}")
        return len(ids)

    def count(self, project_id: Optional[str] = None) -> int:
        """Get stored chunk count."""
        col_id = self._ensure_collection()
        if project_id is not None:
            return len(self._project_ids(col_id, project_id))
        return int(self._request("GET", f"/{col_id}/count").json())
