"""Unit tests for IngestionService and ManifestStore.

Uses the in-memory vector store and hashing embeddings from ``tests.fakes``
with real files under ``tmp_path``.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

from docassist.models.rag import ManifestEntry
from docassist.services.ingestion import IngestionService, ManifestStore, TextChunker
from docassist.utils.errors import DocumentNotFoundError, RetrievalError, UnsupportedFormatError
from tests.fakes import HashingEmbeddingProvider, InMemoryVectorStore


@pytest.fixture()
def manifest(tmp_path: Path) -> ManifestStore:
    return ManifestStore(tmp_path / "processed")


@pytest.fixture()
def service(embedding_provider, vector_store, manifest) -> IngestionService:
    return IngestionService(
        chunker=TextChunker(chunk_size=100, chunk_overlap=20),
        embedding_provider=embedding_provider,
        vector_store=vector_store,
        manifest_store=manifest,
    )


def _write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


_LONG = "Refunds are accepted within thirty days of purchase. " * 10


class TestIngest:
    @pytest.mark.asyncio
    async def test_ingest_writes_vectors_and_manifest(
        self, service, vector_store: InMemoryVectorStore, manifest, tmp_path
    ) -> None:
        path = _write(tmp_path / "raw" / "policy.txt", _LONG)

        entry = await service.ingest(path)

        stored = vector_store.chunks_for("policy.txt")
        assert entry.id == "policy"
        assert entry.filename == "policy.txt"
        assert entry.file_type == "txt"
        assert entry.status == "processed"
        assert entry.chunk_count == len(stored) > 1
        assert [c.chunk_index for c in stored] == list(range(len(stored)))
        assert all(c.file_path == str(path) for c in stored)
        assert manifest.read("policy") is not None

    @pytest.mark.asyncio
    async def test_reingest_replaces_previous_chunks(
        self, service, vector_store: InMemoryVectorStore, tmp_path
    ) -> None:
        path = _write(tmp_path / "raw" / "policy.md", _LONG * 3)
        first = await service.ingest(path)

        _write(path, "Short replacement text.")
        second = await service.ingest(path)

        assert first.chunk_count > 1
        assert second.chunk_count == 1
        stored = vector_store.chunks_for("policy.md")
        assert [c.text for c in stored] == ["Short replacement text."]

    @pytest.mark.asyncio
    async def test_empty_file_records_zero_chunks(self, service, vector_store, tmp_path) -> None:
        path = _write(tmp_path / "raw" / "empty.txt", "   \n")

        entry = await service.ingest(path)

        assert entry.chunk_count == 0
        assert await vector_store.count() == 0

    @pytest.mark.asyncio
    async def test_unsupported_extension(self, service, manifest, tmp_path) -> None:
        path = _write(tmp_path / "raw" / "sheet.xlsx", "data")

        with pytest.raises(UnsupportedFormatError):
            await service.ingest(path)
        assert manifest.list() == []

    @pytest.mark.asyncio
    async def test_missing_file(self, service, tmp_path) -> None:
        with pytest.raises(DocumentNotFoundError):
            await service.ingest(tmp_path / "raw" / "ghost.txt")

    @pytest.mark.asyncio
    async def test_embedding_failure_writes_no_manifest(
        self, vector_store, manifest, tmp_path
    ) -> None:
        class FailingEmbeddings(HashingEmbeddingProvider):
            async def embed(self, texts: list[str]) -> list[list[float]]:
                raise RetrievalError("model crashed", "hashing")

        service = IngestionService(
            chunker=TextChunker(chunk_size=100, chunk_overlap=20),
            embedding_provider=FailingEmbeddings(),
            vector_store=vector_store,
            manifest_store=manifest,
        )
        path = _write(tmp_path / "raw" / "policy.txt", _LONG)

        with pytest.raises(RetrievalError):
            await service.ingest(path)
        assert manifest.list() == []

    @pytest.mark.asyncio
    async def test_failed_reingest_drops_previous_manifest_entry(
        self, service, vector_store: InMemoryVectorStore, manifest, tmp_path
    ) -> None:
        class FailingEmbeddings(HashingEmbeddingProvider):
            async def embed(self, texts: list[str]) -> list[list[float]]:
                raise RetrievalError("model crashed", "hashing")

        path = _write(tmp_path / "raw" / "policy.txt", _LONG)
        await service.ingest(path)
        other = _write(tmp_path / "raw" / "other.txt", "Unrelated text.")
        await service.ingest(other)
        failing = IngestionService(
            chunker=TextChunker(chunk_size=100, chunk_overlap=20),
            embedding_provider=FailingEmbeddings(),
            vector_store=vector_store,
            manifest_store=manifest,
        )

        with pytest.raises(RetrievalError):
            await failing.ingest(path)

        assert manifest.read("policy") is None
        assert vector_store.chunks_for("policy.txt") == []
        assert [e.id for e in manifest.list()] == ["other"]

    @pytest.mark.asyncio
    async def test_failed_ingest_keeps_same_stem_entry_of_other_file(
        self, service, vector_store, manifest, tmp_path
    ) -> None:
        class FailingEmbeddings(HashingEmbeddingProvider):
            async def embed(self, texts: list[str]) -> list[list[float]]:
                raise RetrievalError("model crashed", "hashing")

        await service.ingest(_write(tmp_path / "raw" / "guide.md", "Markdown guide."))
        failing = IngestionService(
            chunker=TextChunker(chunk_size=100, chunk_overlap=20),
            embedding_provider=FailingEmbeddings(),
            vector_store=vector_store,
            manifest_store=manifest,
        )

        with pytest.raises(RetrievalError):
            await failing.ingest(_write(tmp_path / "raw" / "guide.txt", "Text guide."))

        assert manifest.read("guide").filename == "guide.md"

    @pytest.mark.asyncio
    async def test_stored_chunks_carry_their_embedding(
        self, service, vector_store: InMemoryVectorStore, embedding_provider, tmp_path
    ) -> None:
        path = _write(tmp_path / "raw" / "policy.txt", _LONG)

        await service.ingest(path)

        for chunk in vector_store.chunks_for("policy.txt"):
            assert chunk.embedding == await embedding_provider.embed_single(chunk.text)

    @pytest.mark.asyncio
    async def test_large_documents_are_embedded_in_batches(
        self, vector_store, manifest, tmp_path
    ) -> None:
        embeddings = HashingEmbeddingProvider()
        service = IngestionService(
            chunker=TextChunker(chunk_size=30, chunk_overlap=5),
            embedding_provider=embeddings,
            vector_store=vector_store,
            manifest_store=manifest,
        )
        service._EMBED_STORE_BATCH = 4
        path = _write(tmp_path / "raw" / "big.txt", "word " * 60)

        entry = await service.ingest(path)

        assert all(len(batch) <= 4 for batch in embeddings.calls)
        assert sum(len(batch) for batch in embeddings.calls) == entry.chunk_count

    @pytest.mark.asyncio
    async def test_ingest_directory_skips_failures(self, service, tmp_path) -> None:
        raw = tmp_path / "raw"
        _write(raw / "a.txt", "Alpha document.")
        _write(raw / "b.md", "# Beta\n\nBeta document.")
        _write(raw / "broken.pdf", "this is not a pdf")
        _write(raw / "ignored.csv", "x,y")

        entries = await service.ingest_directory(raw)

        assert [e.filename for e in entries] == ["a.txt", "b.md"]

    @pytest.mark.asyncio
    async def test_ingest_directory_missing(self, service, tmp_path) -> None:
        with pytest.raises(DocumentNotFoundError):
            await service.ingest_directory(tmp_path / "nowhere")


class TestDocumentManagement:
    @pytest.mark.asyncio
    async def test_list_get_delete(self, service, vector_store, tmp_path) -> None:
        await service.ingest(_write(tmp_path / "raw" / "b.txt", "Bravo."))
        await service.ingest(_write(tmp_path / "raw" / "a.txt", "Alpha."))

        assert [e.id for e in service.list_documents()] == ["a", "b"]
        assert service.get_document("a").filename == "a.txt"

        deleted = await service.delete_document("a")

        assert deleted == 1
        assert [e.id for e in service.list_documents()] == ["b"]
        assert vector_store.chunks_for("a.txt") == []
        with pytest.raises(DocumentNotFoundError):
            service.get_document("a")

    @pytest.mark.asyncio
    async def test_delete_unknown_document(self, service) -> None:
        with pytest.raises(DocumentNotFoundError):
            await service.delete_document("ghost")

    @pytest.mark.asyncio
    async def test_reset_keeps_manifest(self, service, vector_store, tmp_path) -> None:
        await service.ingest(_write(tmp_path / "raw" / "a.txt", "Alpha."))

        await service.reset()

        assert await vector_store.count() == 0
        assert len(service.list_documents()) == 1


class TestManifestStore:
    def _entry(self, doc_id: str = "guide") -> ManifestEntry:
        return ManifestEntry(
            id=doc_id,
            original_path=f"data/raw/{doc_id}.pdf",
            filename=f"{doc_id}.pdf",
            chunk_count=7,
            processed_at=datetime(2024, 6, 1, tzinfo=timezone.utc),
            file_type="pdf",
        )

    def test_write_and_read(self, manifest: ManifestStore) -> None:
        path = manifest.write(self._entry())

        stored = json.loads(path.read_text(encoding="utf-8"))
        assert stored["id"] == "guide"
        assert "updated_at" not in stored

        entry = manifest.read("guide")
        assert entry is not None
        assert entry.chunk_count == 7
        assert entry.updated_at is not None

    def test_read_missing_and_invalid_ids(self, manifest: ManifestStore) -> None:
        assert manifest.read("missing") is None
        assert manifest.read("../etc/passwd") is None
        assert manifest.delete("../etc/passwd") is False

    def test_corrupt_file_is_skipped(self, manifest: ManifestStore) -> None:
        manifest.write(self._entry("good"))
        (manifest.directory / "bad.json").write_text("{not json", encoding="utf-8")

        assert [e.id for e in manifest.list()] == ["good"]

    def test_list_on_missing_directory(self, tmp_path: Path) -> None:
        assert ManifestStore(tmp_path / "absent").list() == []

    def test_delete(self, manifest: ManifestStore) -> None:
        manifest.write(self._entry())

        assert manifest.delete("guide") is True
        assert manifest.delete("guide") is False
