"""Unit tests for provider selection from Settings."""

from __future__ import annotations

import pytest

from docassist.config.settings import Settings
from docassist.providers.factory import build_embedding_provider, build_llm_provider
from docassist.providers.llm.llamacpp_provider import LlamaCppLLMProvider
from docassist.providers.llm.ollama_provider import OllamaLLMProvider
from docassist.utils.errors import ConfigurationError


def _settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


class TestBuildEmbeddingProvider:
    def test_unknown_name_is_rejected(self) -> None:
        with pytest.raises(ConfigurationError, match="Unknown EMBEDDING_PROVIDER"):
            build_embedding_provider(_settings(embedding_provider="openai"))

    def test_name_is_normalised(self) -> None:
        provider = build_embedding_provider(_settings(embedding_provider="Sentence-Transformers"))

        assert provider.get_provider_name() == "sentence-transformers"
        assert provider.get_dimension() == 384


class TestBuildLLMProvider:
    def test_llamacpp(self) -> None:
        provider = build_llm_provider(_settings(llm_provider="llamacpp"))

        assert isinstance(provider, LlamaCppLLMProvider)

    def test_ollama(self) -> None:
        provider = build_llm_provider(_settings(llm_provider="ollama"))

        assert isinstance(provider, OllamaLLMProvider)

    def test_unknown_name_is_rejected(self) -> None:
        with pytest.raises(ConfigurationError, match="Unknown LLM_PROVIDER"):
            build_llm_provider(_settings(llm_provider="vllm"))
