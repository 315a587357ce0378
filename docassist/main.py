"""docassist FastAPI application entry point.

Wires together all providers, services, and routes via dependency injection.
Loads configuration from ``.env`` and ``config/config.yaml``, configures
structured logging, and exposes the chat, document and admin endpoints.

# ─── OBJECT GRAPH (Junior Developer Guide) ────────────────────────────
#
#   embedding provider ─┬─> IngestionService <── TextChunker, ManifestStore
#   ChromaDBProvider  ──┤
#                       └─> QueryOrchestrator <── LLM provider, classifier
#                                   │
#   ConversationStore ──> ChatService <── EscalationService
#
# Both the ingestion and the query side must share one embedding
# provider, otherwise query vectors and stored vectors live in different
# spaces and retrieval returns noise.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import structlog
import uvicorn
from fastapi import FastAPI

from docassist import __version__
from docassist.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from docassist.api.routes import router as api_router
from docassist.config.loader import load_config
from docassist.config.settings import Settings
from docassist.interfaces.llm_provider import GenerationParams
from docassist.models.rag import RetrievalStrategy
from docassist.providers.factory import build_llm_provider
from docassist.services.chat_service import AUTO_ESCALATION_REASON, ChatService
from docassist.services.confidence_classifier import PhraseConfidenceClassifier
from docassist.services.conversation_store import ConversationStore
from docassist.services.escalation_service import EscalationService
from docassist.services.ingestion.factory import build_ingestion
from docassist.services.query_orchestrator import QueryOrchestrator, RetrievalSettings
from docassist.utils.logging import configure_logging, get_logger

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()
config = load_config(settings.config_path, settings)

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Full DI assembly
# ---------------------------------------------------------------------------


def _build_all(app_settings: Settings, app_config: dict[str, Any]) -> dict[str, Any]:
    """Construct every provider and service instance for the application.

    Returns a flat dict of named components to be stored on ``app.state``.
    """
    Path(app_settings.raw_data_dir).mkdir(parents=True, exist_ok=True)
    Path(app_settings.processed_data_dir).mkdir(parents=True, exist_ok=True)

    # -- Ingestion side --
    ingestion_service, embedding_provider, vector_store = build_ingestion(app_settings)

    # -- Query side --
    llm_provider = build_llm_provider(app_settings)
    escalation_cfg = app_config.get("escalation", {})
    classifier = PhraseConfidenceClassifier(escalation_cfg.get("low_confidence_phrases"))

    orchestrator = QueryOrchestrator(
        embedding_provider=embedding_provider,
        vector_store=vector_store,
        llm_provider=llm_provider,
        confidence_classifier=classifier,
        retrieval=RetrievalSettings(
            top_k=app_settings.rag_top_k,
            strategy=RetrievalStrategy(app_settings.rag_strategy),
            fetch_k_multiplier=app_settings.rag_fetch_k_multiplier,
            diversity=app_settings.rag_diversity,
        ),
        generation=GenerationParams(
            temperature=app_settings.llm_temperature,
            top_p=app_settings.llm_top_p,
            max_new_tokens=app_settings.llm_max_new_tokens,
            repeat_penalty=app_settings.llm_repeat_penalty,
        ),
        context_window=app_settings.llm_context_window,
    )

    # -- Conversation state --
    conversation_store = ConversationStore()
    escalation_service = EscalationService(
        conversation_store=conversation_store,
        admin_email=escalation_cfg.get("admin_email", app_settings.admin_email),
        notifications_enabled=escalation_cfg.get(
            "notifications_enabled", app_settings.escalation_notifications_enabled
        ),
    )
    chat_service = ChatService(
        conversation_store=conversation_store,
        orchestrator=orchestrator,
        escalation_service=escalation_service,
        auto_escalation_reason=escalation_cfg.get("auto_escalation_reason")
        or AUTO_ESCALATION_REASON,
    )

    return {
        "settings": app_settings,
        "embedding_provider": embedding_provider,
        "vector_store": vector_store,
        "llm_provider": llm_provider,
        "ingestion_service": ingestion_service,
        "orchestrator": orchestrator,
        "conversation_store": conversation_store,
        "escalation_service": escalation_service,
        "chat_service": chat_service,
    }


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Initialise all providers and services on startup."""
    components = _build_all(settings, config)

    for key, value in components.items():
        setattr(application.state, key, value)

    _logger.info(
        "app_startup",
        version=__version__,
        environment=settings.app_env,
        llm_provider=components["llm_provider"].get_provider_name(),
        embedding_provider=components["embedding_provider"].get_provider_name(),
        collection=settings.chromadb_collection,
    )

    yield

    _logger.info(
        "app_shutdown",
        conversations=len(components["conversation_store"]),
        escalations=len(components["escalation_service"].list()),
    )


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="docassist API",
        version=__version__,
        description=(
            "Ask questions about an ingested document collection. Answers are "
            "generated by a local model from retrieved passages, cite their "
            "sources, and can be escalated to a human operator."
        ),
        lifespan=_lifespan,
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application, allowed_origins=settings.get_cors_origins())

    # -- API routes --
    application.include_router(api_router)

    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "docassist.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
