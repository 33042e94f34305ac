import logging
import threading
from typing import Optional

import numpy as np
from sentence_transformers import SentenceTransformer

logger = logging.getLogger(__name__)


class SentenceTransformerEmbedder:
    def __init__(
        self,
        model_name: str = "intfloat/e5-base-v2",
        normalize: bool = True,
    ):
        self._model_name = model_name
        self._normalize = normalize
        self._model: Optional[SentenceTransformer] = None
        self._lock = threading.Lock()

    @property
    def model(self) -> SentenceTransformer:
        # encode is called from several worker threads; load once
        if self._model is None:
            with self._lock:
                if self._model is None:
                    logger.info(f"Loading embedding model: {self._model_name}")
                    self._model = SentenceTransformer(self._model_name)
        return self._model

    def warmup(self) -> None:
        _ = self.model
        logger.info("Embedding model warmed up")

    def encode(self, texts: str | list[str]) -> np.ndarray:
        return self.model.encode(
            texts,
            convert_to_numpy=True,
            normalize_embeddings=self._normalize,
        )
