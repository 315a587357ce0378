"""Orchestrator for the document ingestion pipeline.

Pipeline stages: **load -> chunk -> embed -> store -> record**.

The :class:`IngestionService` coordinates four collaborators (source
processors, chunker, embedding provider, vector store) plus the manifest
store, none of which know about each other:

    1. Source processor -- reads the raw format into text sections
    2. TextChunker -- splits sections into overlapping windows
    3. IEmbeddingProvider -- embeds chunk texts in batches
    4. IVectorStoreProvider -- upserts the embedded chunks
    5. ManifestStore -- records the processed document

Re-ingesting a filename first deletes every vector whose ``source`` is that
filename, so a shorter new version never leaves stale chunks behind.  The
pipeline is not atomic: a crash between the store and record steps leaves
vectors without a manifest entry, which the next ingest of the same file
cleans up.  A failed re-ingest also removes the file's old manifest entry,
since its previous vectors may already be gone.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Iterable
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from docassist.models.rag import DocumentChunk, ManifestEntry
from docassist.services.ingestion.chunker import TextChunker
from docassist.services.ingestion.manifest import ManifestStore
from docassist.services.ingestion.source_processors import get_processor, is_supported
from docassist.utils.errors import DocAssistError, DocumentNotFoundError

if TYPE_CHECKING:
    from docassist.interfaces.embedding_provider import IEmbeddingProvider
    from docassist.interfaces.vector_store_provider import IVectorStoreProvider

logger = structlog.get_logger(logger_name=__name__)


class IngestionService:
    """Loads documents into the vector store and tracks them in the manifest.

    Parameters
    ----------
    chunker:
        Configured :class:`TextChunker`.
    embedding_provider:
        Provider used for every chunk text.  Must match the one used at
        query time.
    vector_store:
        Destination collection.
    manifest_store:
        Where processing records are written.
    """

    _EMBED_STORE_BATCH = 500

    def __init__(
        self,
        chunker: TextChunker,
        embedding_provider: IEmbeddingProvider,
        vector_store: IVectorStoreProvider,
        manifest_store: ManifestStore,
    ) -> None:
        self._chunker = chunker
        self._embedding_provider = embedding_provider
        self._vector_store = vector_store
        self._manifest_store = manifest_store

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    async def ingest(self, file_path: str | Path) -> ManifestEntry:
        """Ingest one file and return its manifest entry.

        Raises
        ------
        UnsupportedFormatError
            If the extension has no source processor.
        DocumentNotFoundError
            If *file_path* does not exist.
        RetrievalError
            If embedding or the vector store fails.  No manifest is written and
            any previous entry for this file is removed.
        """
        path = Path(file_path)
        processor = get_processor(path)
        if not path.is_file():
            raise DocumentNotFoundError(f"File not found: {path}")

        start = time.monotonic()
        filename = path.name
        ingested_at = datetime.now(tz=timezone.utc)
        logger.info("ingestion_started", source=filename, file_path=str(path))

        sections = await asyncio.to_thread(processor.process, str(path))

        try:
            removed = await self._vector_store.delete_by_source(filename)
            if removed:
                logger.info(
                    "ingestion_replaced_previous_chunks", source=filename, removed=removed
                )

            chunk_stream = self._chunker.iter_document_chunks(
                sections,
                source_filename=filename,
                file_path=str(path),
                ingested_at=ingested_at,
            )
            stored = await self._embed_and_store(chunk_stream)
        except Exception:
            # A failed re-ingest leaves no manifest entry for this file.
            self._drop_stale_manifest(path)
            raise

        entry = ManifestEntry(
            id=path.stem,
            original_path=str(path),
            filename=filename,
            chunk_count=stored,
            processed_at=datetime.now(tz=timezone.utc),
            file_type=path.suffix.lower().lstrip("."),
        )
        self._manifest_store.write(entry)

        logger.info(
            "ingestion_complete",
            source=filename,
            chunks=stored,
            time_s=round(time.monotonic() - start, 2),
        )
        return entry

    async def ingest_directory(self, directory: str | Path) -> list[ManifestEntry]:
        """Ingest every supported file directly inside *directory*.

        Files are processed in name order.  A file that fails is logged and
        skipped so one corrupt document does not block the rest.
        """
        root = Path(directory)
        if not root.is_dir():
            raise DocumentNotFoundError(f"Directory not found: {root}")

        files = sorted(p for p in root.iterdir() if p.is_file() and is_supported(p))
        logger.info("directory_ingestion_started", directory=str(root), files=len(files))

        entries: list[ManifestEntry] = []
        for file in files:
            try:
                entries.append(await self.ingest(file))
            except DocAssistError as exc:
                logger.error("file_ingestion_failed", file_path=str(file), error=str(exc))

        logger.info(
            "directory_ingestion_complete",
            directory=str(root),
            succeeded=len(entries),
            failed=len(files) - len(entries),
        )
        return entries

    def _drop_stale_manifest(self, path: Path) -> None:
        previous = self._manifest_store.read(path.stem)
        if previous is not None and previous.filename == path.name:
            self._manifest_store.delete(path.stem)
            logger.warning("ingestion_failed_manifest_dropped", document_id=path.stem)

    async def _embed_and_store(self, chunks: Iterable[DocumentChunk]) -> int:
        """Embed and upsert *chunks* in slices of ``_EMBED_STORE_BATCH``.

        *chunks* may be a lazy iterator; only one slice is held in memory.
        Each stored chunk carries its embedding.
        """
        total_stored = 0
        pending: list[DocumentChunk] = []

        async def flush() -> int:
            embeddings = await self._embedding_provider.embed([c.text for c in pending])
            embedded = [
                c.model_copy(update={"embedding": e}) for c, e in zip(pending, embeddings)
            ]
            return await self._vector_store.add_chunks(embedded, embeddings)

        for chunk in chunks:
            pending.append(chunk)
            if len(pending) >= self._EMBED_STORE_BATCH:
                total_stored += await flush()
                pending = []
        if pending:
            total_stored += await flush()
        return total_stored

    # ------------------------------------------------------------------
    # Document management
    # ------------------------------------------------------------------

    def list_documents(self) -> list[ManifestEntry]:
        return self._manifest_store.list()

    def get_document(self, document_id: str) -> ManifestEntry:
        """Return the manifest entry for *document_id*.

        Raises
        ------
        DocumentNotFoundError
            If no document with that id has been processed.
        """
        entry = self._manifest_store.read(document_id)
        if entry is None:
            raise DocumentNotFoundError(f"Document '{document_id}' not found")
        return entry

    async def delete_document(self, document_id: str) -> int:
        """Delete a document's vectors and manifest entry.

        Returns the number of chunks removed from the vector store.
        """
        entry = self.get_document(document_id)
        deleted = await self._vector_store.delete_by_source(entry.filename)
        self._manifest_store.delete(document_id)
        logger.info("document_deleted", document_id=document_id, chunks_deleted=deleted)
        return deleted

    async def reset(self) -> None:
        """Drop every vector in the collection.  Manifest files are kept."""
        await self._vector_store.reset()
        logger.warning("vector_store_reset")
