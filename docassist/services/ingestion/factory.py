"""Ingestion-side wiring shared by the web app and the corpus CLI."""

from __future__ import annotations

from typing import TYPE_CHECKING

from docassist.providers.factory import build_embedding_provider, build_vector_store
from docassist.services.ingestion.chunker import TextChunker
from docassist.services.ingestion.ingestion_service import IngestionService
from docassist.services.ingestion.manifest import ManifestStore

if TYPE_CHECKING:
    from docassist.config.settings import Settings
    from docassist.interfaces.embedding_provider import IEmbeddingProvider
    from docassist.interfaces.vector_store_provider import IVectorStoreProvider


def build_ingestion(
    app_settings: Settings,
) -> tuple[IngestionService, IEmbeddingProvider, IVectorStoreProvider]:
    """Build the ingestion service with its embedding provider and vector store.

    The provider and store are returned as well so the query side can share
    them.  Raises :class:`ConfigurationError` for an unknown embedding
    provider before any collection is opened.
    """
    embedding_provider = build_embedding_provider(app_settings)
    vector_store = build_vector_store(app_settings, embedding_provider.get_dimension())
    ingestion_service = IngestionService(
        chunker=TextChunker(app_settings.chunk_size, app_settings.chunk_overlap),
        embedding_provider=embedding_provider,
        vector_store=vector_store,
        manifest_store=ManifestStore(app_settings.processed_data_dir),
    )
    return ingestion_service, embedding_provider, vector_store
