"""Abstract base class for text-embedding service providers.

Defines the contract for turning text into fixed-dimension vectors.  The
default deployment runs ``sentence-transformers/all-MiniLM-L6-v2`` locally
(384 dimensions); any backend that honours this contract can replace it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementations:
#   SentenceTransformerEmbeddingProvider - PyTorch, default
#   FastEmbedEmbeddingProvider           - ONNX runtime, no PyTorch
# Located in: docassist/providers/embedding/
class IEmbeddingProvider(ABC):
    """Contract for text-embedding services used by ingestion and retrieval.

    The same provider must embed both the corpus and the queries, otherwise
    cosine distances between them are meaningless.
    """

    @abstractmethod
    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Generate embedding vectors for a batch of texts.

        Parameters
        ----------
        texts:
            One or more text strings to embed.  Implementations batch
            internally if the backend has a per-call limit.

        Returns
        -------
        list[list[float]]
            Embedding vectors corresponding positionally to *texts*, each of
            length :meth:`get_dimension`.

        Raises
        ------
        docassist.utils.errors.RetrievalError
            If the embedding backend fails.
        """

    @abstractmethod
    async def embed_single(self, text: str) -> list[float]:
        """Generate an embedding vector for a single text (e.g. a query)."""

    @abstractmethod
    def get_dimension(self) -> int:
        """Return the dimensionality of the embedding vectors.

        Constant for the lifetime of the provider and equal to the dimension
        of the vectors already stored in the collection.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"sentence-transformers"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the backing library and model can be loaded."""
