"""In-process fakes for the embedding, vector store and inference interfaces."""

from __future__ import annotations

import hashlib
import math
import re
from collections.abc import Callable

from docassist.interfaces.embedding_provider import IEmbeddingProvider
from docassist.interfaces.llm_provider import GenerationParams, ILLMProvider
from docassist.interfaces.vector_store_provider import IVectorStoreProvider
from docassist.models.rag import DocumentChunk, RetrievalStrategy, RetrievedChunk
from docassist.providers.vector_store.mmr import maximal_marginal_relevance

_WORD_RE = re.compile(r"[a-z0-9]+")


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class HashingEmbeddingProvider(IEmbeddingProvider):
    """Bag-of-words embeddings: every word hashes to one dimension.

    Texts sharing words get a positive cosine similarity, which is enough
    for retrieval tests without downloading a model.
    """

    def __init__(self, dimension: int = 64) -> None:
        self._dimension = dimension
        self.calls: list[list[str]] = []

    def _vector(self, text: str) -> list[float]:
        vec = [0.0] * self._dimension
        for word in _WORD_RE.findall(text.lower()):
            digest = hashlib.md5(word.encode("utf-8")).digest()
            vec[int.from_bytes(digest[:4], "big") % self._dimension] += 1.0
        norm = math.sqrt(sum(v * v for v in vec))
        if norm == 0.0:
            vec[0] = 1.0
            return vec
        return [v / norm for v in vec]

    async def embed(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        return [self._vector(t) for t in texts]

    async def embed_single(self, text: str) -> list[float]:
        return self._vector(text)

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return "hashing"

    def is_available(self) -> bool:
        return True


class InMemoryVectorStore(IVectorStoreProvider):
    """Dict-backed vector store with the same ranking rules as ChromaDB."""

    def __init__(self) -> None:
        self.records: dict[str, tuple[DocumentChunk, list[float]]] = {}

    async def query(
        self,
        query_embedding: list[float],
        top_k: int = 4,
        strategy: RetrievalStrategy = RetrievalStrategy.SIMILARITY,
        fetch_k: int | None = None,
        diversity: float = 0.0,
    ) -> list[RetrievedChunk]:
        scored = []
        for chunk, embedding in self.records.values():
            dot = sum(a * b for a, b in zip(query_embedding, embedding))
            scored.append((max(0.0, min(1.0, dot)), chunk, embedding))
        scored.sort(key=lambda item: (-item[0], item[1].chunk_id))

        if RetrievalStrategy(strategy) == RetrievalStrategy.MMR:
            pool = scored[: max(fetch_k or top_k * 3, top_k)]
            order = maximal_marginal_relevance(
                [s for s, _, _ in pool], [e for _, _, e in pool], k=top_k, diversity=diversity
            )
            picked = [pool[i] for i in order]
        else:
            picked = scored[:top_k]
        return [RetrievedChunk(chunk=c, similarity_score=s) for s, c, _ in picked]

    async def add_chunks(
        self,
        chunks: list[DocumentChunk],
        embeddings: list[list[float]],
    ) -> int:
        if len(chunks) != len(embeddings):
            raise ValueError("chunks and embeddings length mismatch")
        for chunk, embedding in zip(chunks, embeddings):
            self.records[chunk.chunk_id] = (chunk, embedding)
        return len(chunks)

    async def delete_by_source(self, source_filename: str) -> int:
        doomed = [
            cid for cid, (chunk, _) in self.records.items() if chunk.source_filename == source_filename
        ]
        for cid in doomed:
            del self.records[cid]
        return len(doomed)

    async def count(self) -> int:
        return len(self.records)

    async def reset(self) -> None:
        self.records.clear()

    def get_provider_name(self) -> str:
        return "memory"

    def is_available(self) -> bool:
        return True

    def chunks_for(self, source_filename: str) -> list[DocumentChunk]:
        return sorted(
            (c for c, _ in self.records.values() if c.source_filename == source_filename),
            key=lambda c: c.chunk_index,
        )


class RecordingLLMProvider(ILLMProvider):
    """Returns canned completions and records every prompt it receives.

    *responder* maps a prompt to the completion text; raise from it to
    simulate an inference failure.
    """

    def __init__(self, responder: Callable[[str], str] | str = "The answer.") -> None:
        if isinstance(responder, str):
            text = responder
            self._responder: Callable[[str], str] = lambda _prompt: text
        else:
            self._responder = responder
        self.prompts: list[str] = []
        self.available = True

    async def complete(self, prompt: str, params: GenerationParams) -> str:
        self.prompts.append(prompt)
        return self._responder(prompt)

    def get_provider_name(self) -> str:
        return "recording"

    async def is_available(self) -> bool:
        return self.available

