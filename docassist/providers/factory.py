"""Provider selection from :class:`Settings`.

Shared by the web app (``docassist.main``) and the corpus CLI so both
write and query vectors in the same embedding space.  Nothing here runs at
import time; provider modules are imported only for the backend selected.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from docassist.utils.errors import ConfigurationError

if TYPE_CHECKING:
    from docassist.config.settings import Settings
    from docassist.interfaces.embedding_provider import IEmbeddingProvider
    from docassist.interfaces.llm_provider import ILLMProvider
    from docassist.providers.vector_store.chromadb_provider import ChromaDBProvider


def build_embedding_provider(app_settings: Settings) -> IEmbeddingProvider:
    """Return the embedding provider named by ``EMBEDDING_PROVIDER``.

    Both backends load their model lazily on the first ``embed`` call, so
    building one costs nothing up front.

    Raises
    ------
    ConfigurationError
        If the name is neither ``sentence_transformers`` nor ``fastembed``.
    """
    name = app_settings.embedding_provider.strip().lower().replace("-", "_")
    if name == "sentence_transformers":
        from docassist.providers.embedding.sentence_transformer_embedding_provider import (
            SentenceTransformerEmbeddingProvider,
        )

        return SentenceTransformerEmbeddingProvider(
            model_name=app_settings.embedding_model,
            dimension=app_settings.embedding_dimension,
        )
    if name == "fastembed":
        from docassist.providers.embedding.fastembed_embedding_provider import (
            FastEmbedEmbeddingProvider,
        )

        return FastEmbedEmbeddingProvider(
            model_name=app_settings.embedding_model,
            dimension=app_settings.embedding_dimension,
        )
    raise ConfigurationError(
        f"Unknown EMBEDDING_PROVIDER {app_settings.embedding_provider!r}; "
        "expected 'sentence_transformers' or 'fastembed'"
    )


def build_llm_provider(app_settings: Settings) -> ILLMProvider:
    """Return the inference server client named by ``LLM_PROVIDER``."""
    name = app_settings.llm_provider.strip().lower()
    if name == "llamacpp":
        from docassist.providers.llm.llamacpp_provider import LlamaCppLLMProvider

        return LlamaCppLLMProvider(
            base_url=app_settings.llm_base_url,
            timeout_seconds=app_settings.llm_timeout_seconds,
        )
    if name == "ollama":
        from docassist.providers.llm.ollama_provider import OllamaLLMProvider

        return OllamaLLMProvider(
            base_url=app_settings.ollama_base_url,
            model=app_settings.ollama_model,
            timeout_seconds=app_settings.llm_timeout_seconds,
        )
    raise ConfigurationError(
        f"Unknown LLM_PROVIDER {app_settings.llm_provider!r}; expected 'llamacpp' or 'ollama'"
    )


def build_vector_store(app_settings: Settings, embedding_dimension: int) -> ChromaDBProvider:
    """Open the persistent ChromaDB collection, checking its vector size."""
    from docassist.providers.vector_store.chromadb_provider import ChromaDBProvider

    return ChromaDBProvider(
        persist_directory=app_settings.chromadb_persist_dir,
        collection_name=app_settings.chromadb_collection,
        expected_dimension=embedding_dimension,
    )
