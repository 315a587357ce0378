"""ChromaDB vector store provider adapter.

Wraps ``chromadb.PersistentClient`` to implement :class:`IVectorStoreProvider`.
The collection is created in cosine space; similarity scores are reported
as ``1 - cosine distance`` clamped to [0, 1].  Fully local, no external
service required.
"""

from __future__ import annotations

import os
from datetime import datetime
from typing import Any

# ChromaDB ships a PostHog telemetry client; switch it off before import.
os.environ["ANONYMIZED_TELEMETRY"] = "False"

import posthog

posthog.disabled = True

import chromadb
import structlog

from docassist.interfaces.vector_store_provider import IVectorStoreProvider
from docassist.models.rag import DocumentChunk, RetrievalStrategy, RetrievedChunk
from docassist.providers.vector_store.mmr import maximal_marginal_relevance
from docassist.utils.errors import RetrievalError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_FETCH_MULTIPLIER = 3


class _NoopEmbeddingFunction(chromadb.EmbeddingFunction[list[str]]):
    """Embedding function that refuses to run.

    docassist always passes pre-computed embeddings, so this only keeps
    ChromaDB from downloading its own default model on collection creation.
    """

    def __call__(self, input: list[str]) -> list[list[float]]:
        raise NotImplementedError(
            "docassist uses pre-computed embeddings; "
            "ChromaDB's built-in embedding should never be called."
        )

    def name(self) -> str:
        return "noop_precomputed"


class ChromaDBProvider(IVectorStoreProvider):
    """Vector store provider backed by ChromaDB with local persistence.

    Parameters
    ----------
    persist_directory:
        Directory ChromaDB writes its SQLite + HNSW files to.
    collection_name:
        Collection holding every chunk of the corpus.
    expected_dimension:
        When given, a non-empty collection whose vectors have a different
        dimension fails fast at construction.
    """

    def __init__(
        self,
        persist_directory: str = "./data/chromadb",
        collection_name: str = "document_collection",
        expected_dimension: int | None = None,
    ) -> None:
        self._persist_directory = persist_directory
        self._collection_name = collection_name
        self._client = chromadb.PersistentClient(
            path=persist_directory,
            settings=chromadb.config.Settings(anonymized_telemetry=False, allow_reset=True),
        )
        self._collection = self._open_collection()
        if expected_dimension is not None:
            self._validate_embedding_dimension(expected_dimension)

    def _open_collection(self) -> Any:
        try:
            return self._client.get_or_create_collection(
                name=self._collection_name,
                metadata={"hnsw:space": "cosine"},
                embedding_function=_NoopEmbeddingFunction(),
            )
        except ValueError:
            # Collections persisted with another embedding function reject ours.
            return self._client.get_or_create_collection(
                name=self._collection_name,
                metadata={"hnsw:space": "cosine"},
            )

    def _validate_embedding_dimension(self, expected_dim: int) -> None:
        if self._collection.count() == 0:
            return
        sample = self._collection.peek(limit=1)
        embeddings = sample.get("embeddings") if sample else None
        if embeddings is None or len(embeddings) == 0:
            return
        stored_dim = len(embeddings[0])
        if stored_dim != expected_dim:
            logger.error(
                "embedding_dimension_mismatch",
                stored_dim=stored_dim,
                expected_dim=expected_dim,
                collection=self._collection_name,
            )
            raise RetrievalError(
                message=(
                    f"Embedding dimension mismatch: collection '{self._collection_name}' "
                    f"holds {stored_dim}-dim vectors but the embedding provider "
                    f"produces {expected_dim}-dim vectors"
                ),
                provider_name=self.get_provider_name(),
            )

    # ------------------------------------------------------------------
    # IVectorStoreProvider implementation
    # ------------------------------------------------------------------

    async def query(
        self,
        query_embedding: list[float],
        top_k: int = 4,
        strategy: RetrievalStrategy = RetrievalStrategy.SIMILARITY,
        fetch_k: int | None = None,
        diversity: float = 0.0,
    ) -> list[RetrievedChunk]:
        """Return the best *top_k* chunks for *query_embedding*.

        Similarity search asks ChromaDB for exactly ``top_k`` neighbours.
        MMR asks for ``fetch_k`` neighbours with their embeddings and
        re-ranks them with :func:`maximal_marginal_relevance`.
        """
        strategy = RetrievalStrategy(strategy)
        if top_k <= 0:
            return []
        try:
            available = self._collection.count()
            if available == 0:
                return []

            use_mmr = strategy == RetrievalStrategy.MMR
            pool_size = top_k
            include = ["documents", "metadatas", "distances"]
            if use_mmr:
                pool_size = max(fetch_k or top_k * _DEFAULT_FETCH_MULTIPLIER, top_k)
                include.append("embeddings")

            results = self._collection.query(
                query_embeddings=[query_embedding],
                n_results=min(pool_size, available),
                include=include,
            )

            documents = (results.get("documents") or [[]])[0]
            if not documents:
                return []
            metadatas = (results.get("metadatas") or [[{}] * len(documents)])[0]
            distances = (results.get("distances") or [[1.0] * len(documents)])[0]

            similarities = [max(0.0, min(1.0, 1.0 - float(d))) for d in distances]
            # Equal scores rank by chunk id.
            order = sorted(
                range(len(documents)),
                key=lambda i: (-similarities[i], str((metadatas[i] or {}).get("chunk_id", ""))),
            )

            if use_mmr:
                candidate_embeddings = results["embeddings"][0]
                picked = maximal_marginal_relevance(
                    [similarities[i] for i in order],
                    [candidate_embeddings[i] for i in order],
                    k=top_k,
                    diversity=diversity,
                )
                order = [order[j] for j in picked]

            retrieved = [
                RetrievedChunk(
                    chunk=self._metadata_to_chunk(metadatas[i], documents[i]),
                    similarity_score=similarities[i],
                )
                for i in order[:top_k]
            ]

            logger.info(
                "chromadb_query",
                strategy=strategy.value,
                candidates=len(documents),
                results_count=len(retrieved),
                top_score=retrieved[0].similarity_score if retrieved else 0.0,
            )
            return retrieved

        except RetrievalError:
            raise
        except Exception as exc:
            raise RetrievalError(
                message=f"ChromaDB query failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    async def add_chunks(
        self,
        chunks: list[DocumentChunk],
        embeddings: list[list[float]],
        batch_size: int = 500,
    ) -> int:
        """Upsert pre-embedded chunks in batches of *batch_size*."""
        if len(chunks) != len(embeddings):
            raise ValueError(
                f"chunks and embeddings length mismatch: {len(chunks)} != {len(embeddings)}"
            )
        if not chunks:
            return 0

        try:
            total_stored = 0
            for start in range(0, len(chunks), batch_size):
                batch_chunks = chunks[start : start + batch_size]
                self._collection.upsert(
                    ids=[c.chunk_id for c in batch_chunks],
                    embeddings=embeddings[start : start + batch_size],
                    documents=[c.text for c in batch_chunks],
                    metadatas=[self._chunk_to_metadata(c) for c in batch_chunks],
                )
                total_stored += len(batch_chunks)

            logger.info(
                "chromadb_add_chunks",
                count=total_stored,
                batches=(len(chunks) + batch_size - 1) // batch_size,
            )
            return total_stored

        except Exception as exc:
            raise RetrievalError(
                message=f"ChromaDB add_chunks failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    async def delete_by_source(self, source_filename: str) -> int:
        try:
            existing = self._collection.get(where={"source": source_filename}, include=[])
            count = len(existing["ids"]) if existing["ids"] else 0
            if count > 0:
                self._collection.delete(where={"source": source_filename})

            logger.info(
                "chromadb_delete_by_source",
                source=source_filename,
                deleted_count=count,
            )
            return count

        except Exception as exc:
            raise RetrievalError(
                message=f"ChromaDB delete_by_source failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    async def count(self) -> int:
        try:
            return self._collection.count()
        except Exception as exc:
            raise RetrievalError(
                message=f"ChromaDB count failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    async def reset(self) -> None:
        """Drop and recreate the collection."""
        try:
            self._client.delete_collection(self._collection_name)
        except Exception as exc:
            # Missing collection: nothing to drop.
            logger.debug("chromadb_reset_missing_collection", error=str(exc))
        self._collection = self._open_collection()
        logger.info("chromadb_collection_reset", collection=self._collection_name)

    def get_provider_name(self) -> str:
        return "chromadb"

    def is_available(self) -> bool:
        """Return ``True`` if the ChromaDB collection is accessible."""
        try:
            self._collection.count()
            return True
        except Exception:
            return False

    @property
    def collection_name(self) -> str:
        return self._collection_name

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _chunk_to_metadata(chunk: DocumentChunk) -> dict[str, str | int | float | bool]:
        """Convert a DocumentChunk to a ChromaDB-compatible metadata dict.

        ChromaDB metadata values must be str, int, float, or bool; ``None``
        values are left out.
        """
        meta: dict[str, str | int | float | bool] = {
            "chunk_id": chunk.chunk_id,
            "source": chunk.source_filename,
            "chunk_index": chunk.chunk_index,
            "file_path": chunk.file_path,
        }
        if chunk.page_number is not None:
            meta["page_number"] = chunk.page_number
        if chunk.ingested_at is not None:
            meta["ingested_at"] = chunk.ingested_at.isoformat()
        return meta

    @staticmethod
    def _metadata_to_chunk(meta: dict[str, Any] | None, text: str) -> DocumentChunk:
        """Reverse :meth:`_chunk_to_metadata`."""
        meta = meta or {}
        ingested_at = meta.get("ingested_at")
        page_number = meta.get("page_number")
        return DocumentChunk(
            chunk_id=meta.get("chunk_id", ""),
            text=text or "",
            source_filename=meta.get("source", ""),
            chunk_index=int(meta.get("chunk_index", 0)),
            page_number=int(page_number) if page_number is not None else None,
            file_path=meta.get("file_path", ""),
            ingested_at=datetime.fromisoformat(ingested_at) if ingested_at else None,
        )
