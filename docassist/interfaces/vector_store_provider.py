"""Abstract base class for vector-store service providers.

Defines the contract for storing, querying and deleting embedded document
chunks.  The only implementation today wraps a persistent ChromaDB
collection configured for cosine distance.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from docassist.models.rag import DocumentChunk, RetrievalStrategy, RetrievedChunk


# Concrete implementation: ChromaDBProvider (docassist/providers/vector_store/)
class IVectorStoreProvider(ABC):
    """Contract for vector-store services used by ingestion and retrieval.

    All query and mutation methods are async so a network-backed store can
    be swapped in without blocking the event loop.

    Two retrieval strategies are supported:

    * ``similarity`` - the ``top_k`` nearest chunks by cosine distance.
    * ``mmr`` - maximal marginal relevance: fetch ``fetch_k`` nearest
      candidates, then greedily pick ``top_k`` of them trading relevance to
      the query against similarity to the chunks already picked.

    Both must be deterministic for identical store contents and query.
    """

    @abstractmethod
    async def query(
        self,
        query_embedding: list[float],
        top_k: int = 4,
        strategy: RetrievalStrategy = RetrievalStrategy.SIMILARITY,
        fetch_k: int | None = None,
        diversity: float = 0.0,
    ) -> list[RetrievedChunk]:
        """Return the chunks best matching *query_embedding*.

        Parameters
        ----------
        query_embedding:
            The embedded query vector.
        top_k:
            Maximum number of results to return.
        strategy:
            :class:`~docassist.models.rag.RetrievalStrategy` to apply.
        fetch_k:
            Size of the MMR candidate pool.  Defaults to ``top_k * 3``.
            Ignored for similarity search.
        diversity:
            MMR weight in [0, 1]; 0 is pure relevance, 1 is pure diversity.

        Returns
        -------
        list[RetrievedChunk]
            Results in rank order (best first).

        Raises
        ------
        docassist.utils.errors.RetrievalError
            If the vector store query fails.
        """

    @abstractmethod
    async def add_chunks(
        self,
        chunks: list[DocumentChunk],
        embeddings: list[list[float]],
    ) -> int:
        """Upsert pre-embedded chunks, keyed by ``chunk_id``.

        Raises
        ------
        ValueError
            If ``len(chunks) != len(embeddings)``.
        docassist.utils.errors.RetrievalError
            If the store operation fails.
        """

    @abstractmethod
    async def delete_by_source(self, source_filename: str) -> int:
        """Delete every chunk whose ``source`` metadata equals *source_filename*.

        Returns the number of chunks deleted.
        """

    @abstractmethod
    async def count(self) -> int:
        """Return the number of chunks in the collection."""

    @abstractmethod
    async def reset(self) -> None:
        """Drop every chunk in the collection."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"chromadb"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the store is initialised and reachable."""
