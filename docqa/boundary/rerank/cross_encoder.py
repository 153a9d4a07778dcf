"""
Cross-encoder reranker.

Scores query/passage pairs with a sentence-transformers cross-encoder. Raw
logits are squashed through a sigmoid so downstream blending never depends on
a particular model's output range.

Dependencies: sentence_transformers, numpy
System role: Optional reranking stage of hybrid retrieval
"""

import asyncio
import logging
import threading
from collections.abc import Sequence

import numpy as np

from docqa.core.exceptions import RerankUnavailableError

logger = logging.getLogger(__name__)


class CrossEncoderReranker:
    """Lazy-loaded sentence-transformers cross-encoder."""

    def __init__(self, model_name: str = "cross-encoder/ms-marco-MiniLM-L-6-v2", model=None) -> None:
        """
        Initialize reranker.

        Args:
            model_name: Hugging Face cross-encoder identifier
            model: Preloaded model exposing ``predict(pairs)`` (skips loading)
        """
        self.model_name = model_name
        self._model = model
        self._load_error: str | None = None
        self._lock = threading.Lock()

    def _load(self):
        with self._lock:
            if self._model is not None:
                return self._model
            if self._load_error is not None:
                raise RerankUnavailableError(self._load_error, {"model": self.model_name})
            try:
                # Lazy import to avoid loading torch at startup
                from sentence_transformers import CrossEncoder

                self._model = CrossEncoder(self.model_name)
                logger.info(f"{__name__}:_load - loaded model={self.model_name}")
                return self._model
            except Exception as e:
                self._load_error = f"Cross-encoder unavailable: {type(e).__name__}: {e}"
                logger.error(f"{__name__}:_load - FAILED model={self.model_name}: {e}")
                raise RerankUnavailableError(self._load_error, {"model": self.model_name}) from e

    def _predict(self, query: str, texts: Sequence[str]) -> list[float]:
        model = self._load()
        try:
            raw = model.predict([(query, text) for text in texts])
        except Exception as e:
            raise RerankUnavailableError(f"Cross-encoder predict failed: {e}", {"model": self.model_name}) from e
        logits = np.asarray(raw, dtype=np.float64).reshape(-1)
        if logits.shape[0] != len(texts):
            raise RerankUnavailableError(
                "Cross-encoder returned wrong score count",
                {"expected": len(texts), "actual": int(logits.shape[0])},
            )
        return (1.0 / (1.0 + np.exp(-logits))).tolist()

    async def score(self, query: str, texts: Sequence[str]) -> list[float]:
        """
        Score passages against a query.

        Args:
            query: Query text
            texts: Candidate passages

        Returns:
            list[float]: One score in [0, 1] per passage, same order

        Raises:
            RerankUnavailableError: Model cannot be loaded or fails to score
        """
        if not texts:
            return []
        return await asyncio.to_thread(self._predict, query, list(texts))
