"""Local sentence-transformers embedding provider adapter.

Wraps the ``sentence-transformers`` library to implement
:class:`IEmbeddingProvider` with any HuggingFace embedding model, on CPU or
GPU, without an API key.

Default model: ``sentence-transformers/all-MiniLM-L6-v2`` (384 dimensions).
"""

from __future__ import annotations

import asyncio

import structlog

from docassist.interfaces.embedding_provider import IEmbeddingProvider
from docassist.utils.errors import RetrievalError

logger = structlog.get_logger(logger_name=__name__)

_MODEL_DIMENSIONS: dict[str, int] = {
    "sentence-transformers/all-MiniLM-L6-v2": 384,
    "sentence-transformers/all-MiniLM-L12-v2": 384,
    "sentence-transformers/all-mpnet-base-v2": 768,
    "BAAI/bge-small-en-v1.5": 384,
    "BAAI/bge-base-en-v1.5": 768,
}

_DEFAULT_MODEL = "sentence-transformers/all-MiniLM-L6-v2"
_BATCH_LIMIT = 64


class SentenceTransformerEmbeddingProvider(IEmbeddingProvider):
    """Embedding provider backed by a local sentence-transformers model.

    The model is loaded on first use; encoding runs in a worker thread so
    the event loop stays responsive while a batch is being embedded.
    """

    def __init__(self, model_name: str | None = None, dimension: int | None = None) -> None:
        self._model_name = model_name or _DEFAULT_MODEL
        self._dimension = dimension or _MODEL_DIMENSIONS.get(self._model_name, 384)
        self._model = None

    def _load_model(self) -> None:
        if self._model is not None:
            return
        try:
            from sentence_transformers import SentenceTransformer

            logger.info("loading_sentence_transformer", model=self._model_name)
            self._model = SentenceTransformer(self._model_name)
            logger.info(
                "sentence_transformer_loaded",
                model=self._model_name,
                dimension=self._dimension,
            )
        except Exception as exc:
            raise RetrievalError(
                message=f"Failed to load sentence-transformers model '{self._model_name}': {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    def _encode_sync(self, texts: list[str]) -> list[list[float]]:
        self._load_model()
        vectors: list[list[float]] = []
        for start in range(0, len(texts), _BATCH_LIMIT):
            batch = texts[start : start + _BATCH_LIMIT]
            encoded = self._model.encode(
                batch,
                normalize_embeddings=True,
                show_progress_bar=False,
            )
            vectors.extend(encoded.tolist())
        return vectors

    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Generate embedding vectors for a batch of texts."""
        if not texts:
            return []
        try:
            vectors = await asyncio.to_thread(self._encode_sync, texts)
        except RetrievalError:
            raise
        except Exception as exc:
            raise RetrievalError(
                message=f"Sentence-transformers embedding error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.debug("sentence_transformer_embedded", model=self._model_name, count=len(texts))
        return vectors

    async def embed_single(self, text: str) -> list[float]:
        result = await self.embed([text])
        return result[0]

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return "sentence-transformers"

    def is_available(self) -> bool:
        """Return ``True`` if sentence-transformers is installed."""
        try:
            import sentence_transformers  # noqa: F401

            return True
        except ImportError:
            return False
