"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK (Junior Developer Guide) ───────────────────────
#
# pydantic-settings reads configuration from two sources, in priority order:
#
#   1. **Environment variables** - e.g. LLM_BASE_URL=http://gpu-box:8080
#   2. **.env file** - key=value lines in the project root .env file
#
# Field `llm_base_url` maps to env var `LLM_BASE_URL` automatically.
# Defaults below are used when neither source sets a value.
# ──────────────────────────────────────────────────────────────────────
"""

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from docassist.utils.errors import InvalidConfigurationError


class Settings(BaseSettings):
    """docassist application settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Application ===
    app_host: str = "0.0.0.0"
    app_port: int = 3001
    app_env: str = "development"
    log_level: str = "INFO"
    # Comma-separated list of allowed browser origins.
    cors_origins: str = "http://localhost:3000"
    config_path: str = "config/config.yaml"

    # === Data directories ===
    raw_data_dir: str = "data/raw"
    processed_data_dir: str = "data/processed"
    max_upload_bytes: int = 50 * 1024 * 1024

    # === Chunking ===
    chunk_size: int = 1000
    chunk_overlap: int = 200

    # === Embeddings ===
    # "sentence_transformers" (PyTorch) or "fastembed" (ONNX, no PyTorch).
    embedding_provider: str = "sentence_transformers"
    embedding_model: str = "sentence-transformers/all-MiniLM-L6-v2"
    embedding_dimension: int = 384

    # === Vector store ===
    chromadb_persist_dir: str = "./data/chromadb"
    chromadb_collection: str = "document_collection"

    # === Inference server ===
    # "llamacpp" talks to a llama.cpp server's /completion endpoint;
    # "ollama" uses Ollama's OpenAI-compatible API.
    llm_provider: str = "llamacpp"
    llm_base_url: str = "http://localhost:8080"
    ollama_base_url: str = "http://localhost:11434"
    ollama_model: str = "llama3.2"
    llm_temperature: float = 0.2
    llm_top_p: float = 0.9
    llm_max_new_tokens: int = 1024
    llm_repeat_penalty: float = 1.1
    llm_context_window: int = 4096
    llm_timeout_seconds: float = 30.0

    # === Retrieval ===
    rag_top_k: int = 4
    rag_strategy: str = "mmr"
    rag_fetch_k_multiplier: int = 3
    rag_diversity: float = 0.3

    # === Escalation ===
    admin_email: str = "admin@example.com"
    escalation_notifications_enabled: bool = True

    @field_validator("rag_strategy")
    @classmethod
    def _check_strategy(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in {"similarity", "mmr"}:
            raise ValueError(f"rag_strategy must be 'similarity' or 'mmr', got {value!r}")
        return normalized

    @field_validator("rag_diversity")
    @classmethod
    def _check_diversity(cls, value: float) -> float:
        if not 0.0 <= value <= 1.0:
            raise ValueError("rag_diversity must be within [0, 1]")
        return value

    @model_validator(mode="after")
    def _check_chunking(self) -> "Settings":
        if self.chunk_overlap >= self.chunk_size:
            raise InvalidConfigurationError(
                f"chunk_overlap ({self.chunk_overlap}) must be smaller than "
                f"chunk_size ({self.chunk_size})"
            )
        return self

    def get_cors_origins(self) -> list[str]:
        """Return the configured CORS origins as a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]
