"""Local ONNX-based embedding provider using fastembed.

Implements :class:`IEmbeddingProvider` on ONNX Runtime, so small deployments
can embed without installing PyTorch.  fastembed ships
``sentence-transformers/all-MiniLM-L6-v2``, which produces the same 384-dim
space as the default sentence-transformers provider.
"""

from __future__ import annotations

import asyncio

import structlog

from docassist.interfaces.embedding_provider import IEmbeddingProvider
from docassist.utils.errors import RetrievalError

logger = structlog.get_logger(logger_name=__name__)

_MODEL_DIMENSIONS: dict[str, int] = {
    "sentence-transformers/all-MiniLM-L6-v2": 384,
    "BAAI/bge-small-en-v1.5": 384,
    "BAAI/bge-base-en-v1.5": 768,
}

_DEFAULT_MODEL = "sentence-transformers/all-MiniLM-L6-v2"
_BATCH_LIMIT = 64


class FastEmbedEmbeddingProvider(IEmbeddingProvider):
    """Embedding provider backed by fastembed (ONNX Runtime).

    Model weights are downloaded on first use and cached locally.
    """

    def __init__(self, model_name: str | None = None, dimension: int | None = None) -> None:
        self._model_name = model_name or _DEFAULT_MODEL
        self._dimension = dimension or _MODEL_DIMENSIONS.get(self._model_name, 384)
        self._model = None

    def _load_model(self) -> None:
        if self._model is not None:
            return
        try:
            from fastembed import TextEmbedding

            logger.info("loading_fastembed_model", model=self._model_name)
            self._model = TextEmbedding(model_name=self._model_name)
        except Exception as exc:
            raise RetrievalError(
                message=f"Failed to load fastembed model '{self._model_name}': {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    def _embed_sync(self, texts: list[str]) -> list[list[float]]:
        self._load_model()
        # fastembed yields one numpy array per input text.
        return [vector.tolist() for vector in self._model.embed(texts, batch_size=_BATCH_LIMIT)]

    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Generate embedding vectors for a batch of texts."""
        if not texts:
            return []
        try:
            return await asyncio.to_thread(self._embed_sync, texts)
        except RetrievalError:
            raise
        except Exception as exc:
            raise RetrievalError(
                message=f"Fastembed embedding error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    async def embed_single(self, text: str) -> list[float]:
        result = await self.embed([text])
        return result[0]

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return "fastembed"

    def is_available(self) -> bool:
        """Return ``True`` if fastembed is installed."""
        try:
            import fastembed  # noqa: F401

            return True
        except ImportError:
            return False
