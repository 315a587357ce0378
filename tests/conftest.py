"""Shared pytest fixtures for the docassist test suite."""

from __future__ import annotations

from pathlib import Path

import pytest

from docassist.config.settings import Settings
from tests.fakes import HashingEmbeddingProvider, InMemoryVectorStore, RecordingLLMProvider


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def embedding_provider() -> HashingEmbeddingProvider:
    return HashingEmbeddingProvider()


@pytest.fixture
def vector_store() -> InMemoryVectorStore:
    return InMemoryVectorStore()


@pytest.fixture
def llm_provider() -> RecordingLLMProvider:
    return RecordingLLMProvider()


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Settings pointing every data directory into ``tmp_path``."""
    return Settings(
        _env_file=None,
        raw_data_dir=str(tmp_path / "raw"),
        processed_data_dir=str(tmp_path / "processed"),
        chromadb_persist_dir=str(tmp_path / "chroma"),
        max_upload_bytes=1024 * 1024,
    )
