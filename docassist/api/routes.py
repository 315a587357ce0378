"""FastAPI route definitions for the docassist REST API.

Every endpoint lives under ``/api`` and pulls its collaborators from
``request.app.state`` (populated once by the lifespan hook in
``docassist/main.py``) through ``Annotated[..., Depends(...)]`` aliases.

# ─── ENDPOINTS ────────────────────────────────────────────────────────
#
#   POST   /api/chat/message            ask a question
#   GET    /api/chat/history/{id}       conversation history
#   POST   /api/chat/escalate           hand a conversation to a human
#   GET    /api/documents               processed documents
#   POST   /api/documents/ingest        ingest a file from the raw dir
#   GET    /api/documents/{id}          one processed document
#   DELETE /api/documents/{id}          remove vectors + manifest
#   POST   /api/upload                  upload and ingest a file
#   GET    /api/admin/escalations       list tickets
#   PUT    /api/admin/escalations/{id}  update a ticket
#   GET    /api/admin/system/status     component liveness
#   GET    /api/health                  process liveness
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import re
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile

from docassist import __version__
from docassist.api.schemas import (
    ChatMessageRequest,
    ChatMessageResponse,
    ConversationResponse,
    DeleteDocumentResponse,
    DocumentResponse,
    EscalateRequest,
    EscalationResponse,
    HealthResponse,
    IngestDocumentRequest,
    IngestDocumentResponse,
    SystemStatusResponse,
    UpdateEscalationRequest,
)
from docassist.config.settings import Settings
from docassist.interfaces.embedding_provider import IEmbeddingProvider
from docassist.interfaces.llm_provider import ILLMProvider
from docassist.interfaces.vector_store_provider import IVectorStoreProvider
from docassist.models.escalation import EscalationStatus
from docassist.services.chat_service import ChatService
from docassist.services.conversation_store import ConversationStore
from docassist.services.escalation_service import EscalationService
from docassist.services.ingestion.ingestion_service import IngestionService
from docassist.services.ingestion.source_processors import SUPPORTED_EXTENSIONS, is_supported
from docassist.services.query_orchestrator import QueryOrchestrator
from docassist.utils.errors import (
    DocumentNotFoundError,
    UnknownConversationError,
    UnknownEscalationError,
    UnsupportedFormatError,
)
from docassist.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api")

_UPLOAD_READ_CHUNK = 1024 * 1024
_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]")


# ---------------------------------------------------------------------------
# Dependency injection helpers
# ---------------------------------------------------------------------------


def _get_settings(request: Request) -> Settings:
    return request.app.state.settings


def _get_chat_service(request: Request) -> ChatService:
    return request.app.state.chat_service


def _get_conversation_store(request: Request) -> ConversationStore:
    return request.app.state.conversation_store


def _get_escalation_service(request: Request) -> EscalationService:
    return request.app.state.escalation_service


def _get_ingestion_service(request: Request) -> IngestionService:
    return request.app.state.ingestion_service


def _get_vector_store(request: Request) -> IVectorStoreProvider:
    return request.app.state.vector_store


def _get_llm_provider(request: Request) -> ILLMProvider:
    return request.app.state.llm_provider


def _get_embedding_provider(request: Request) -> IEmbeddingProvider:
    return request.app.state.embedding_provider


def _get_orchestrator(request: Request) -> QueryOrchestrator:
    return request.app.state.orchestrator


SettingsDep = Annotated[Settings, Depends(_get_settings)]
ChatServiceDep = Annotated[ChatService, Depends(_get_chat_service)]
ConversationStoreDep = Annotated[ConversationStore, Depends(_get_conversation_store)]
EscalationServiceDep = Annotated[EscalationService, Depends(_get_escalation_service)]
IngestionServiceDep = Annotated[IngestionService, Depends(_get_ingestion_service)]
VectorStoreDep = Annotated[IVectorStoreProvider, Depends(_get_vector_store)]
LLMProviderDep = Annotated[ILLMProvider, Depends(_get_llm_provider)]
EmbeddingProviderDep = Annotated[IEmbeddingProvider, Depends(_get_embedding_provider)]
OrchestratorDep = Annotated[QueryOrchestrator, Depends(_get_orchestrator)]


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------


@router.post(
    "/chat/message",
    response_model=ChatMessageResponse,
    summary="Ask a question about the document corpus",
)
async def send_message(body: ChatMessageRequest, chat: ChatServiceDep) -> ChatMessageResponse:
    """Answer one message.  Omit ``conversationId`` to start a new conversation."""
    reply = await chat.process_message(body.message, body.conversation_id)
    return ChatMessageResponse.from_reply(reply)


@router.get(
    "/chat/history/{conversation_id}",
    response_model=ConversationResponse,
    summary="Get the message history of a conversation",
)
async def get_history(conversation_id: str, chat: ChatServiceDep) -> ConversationResponse:
    try:
        conversation = chat.history(conversation_id)
    except UnknownConversationError as exc:
        raise HTTPException(status_code=404, detail=exc.message) from exc
    return ConversationResponse.from_conversation(conversation)


@router.post(
    "/chat/escalate",
    response_model=EscalationResponse,
    summary="Escalate a conversation to a human operator",
)
async def escalate_conversation(
    body: EscalateRequest,
    chat: ChatServiceDep,
) -> EscalationResponse:
    try:
        ticket = chat.escalate(body.conversation_id, body.reason)
    except UnknownConversationError as exc:
        raise HTTPException(status_code=404, detail=exc.message) from exc
    return EscalationResponse.from_ticket(ticket)


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


@router.get(
    "/documents",
    response_model=list[DocumentResponse],
    summary="List processed documents",
)
async def list_documents(ingestion: IngestionServiceDep) -> list[DocumentResponse]:
    return [DocumentResponse.from_entry(e) for e in ingestion.list_documents()]


@router.post(
    "/documents/ingest",
    response_model=IngestDocumentResponse,
    summary="Ingest a file from the raw data directory",
)
async def ingest_document(
    body: IngestDocumentRequest,
    ingestion: IngestionServiceDep,
    settings: SettingsDep,
) -> IngestDocumentResponse:
    """Ingest ``filepath``, resolved against the raw data directory.

    Paths that resolve outside the raw data directory are rejected.
    """
    raw_dir = Path(settings.raw_data_dir).resolve()
    candidate = Path(body.filepath)
    target = (candidate if candidate.is_absolute() else raw_dir / candidate).resolve()
    if not target.is_relative_to(raw_dir):
        raise HTTPException(
            status_code=400,
            detail=f"File must be inside the raw data directory ({settings.raw_data_dir})",
        )

    try:
        entry = await ingestion.ingest(target)
    except UnsupportedFormatError as exc:
        raise HTTPException(status_code=415, detail=exc.message) from exc
    except DocumentNotFoundError as exc:
        raise HTTPException(status_code=404, detail=exc.message) from exc
    return IngestDocumentResponse(document=DocumentResponse.from_entry(entry))


@router.get(
    "/documents/{document_id}",
    response_model=DocumentResponse,
    summary="Get one processed document",
)
async def get_document(document_id: str, ingestion: IngestionServiceDep) -> DocumentResponse:
    try:
        entry = ingestion.get_document(document_id)
    except DocumentNotFoundError as exc:
        raise HTTPException(status_code=404, detail=exc.message) from exc
    return DocumentResponse.from_entry(entry)


@router.delete(
    "/documents/{document_id}",
    response_model=DeleteDocumentResponse,
    summary="Delete a document's vectors and manifest entry",
)
async def delete_document(
    document_id: str,
    ingestion: IngestionServiceDep,
) -> DeleteDocumentResponse:
    try:
        deleted = await ingestion.delete_document(document_id)
    except DocumentNotFoundError as exc:
        raise HTTPException(status_code=404, detail=exc.message) from exc
    return DeleteDocumentResponse(
        success=True,
        message=f"Document {document_id} deleted",
        chunks_deleted=deleted,
    )


@router.post(
    "/upload",
    response_model=IngestDocumentResponse,
    summary="Upload a document and ingest it",
)
async def upload_document(
    ingestion: IngestionServiceDep,
    settings: SettingsDep,
    file: Annotated[UploadFile, File(description="Document to ingest")],
) -> IngestDocumentResponse:
    """Save the upload as ``<epoch ms>_<safe name>`` in the raw data dir, then ingest it."""
    original_name = Path(file.filename or "").name
    if not original_name:
        raise HTTPException(status_code=400, detail="No file uploaded")
    if not is_supported(original_name):
        supported = ", ".join(sorted(SUPPORTED_EXTENSIONS))
        raise HTTPException(
            status_code=415,
            detail=f"Unsupported file type '{Path(original_name).suffix}'. Supported: {supported}",
        )

    raw_dir = Path(settings.raw_data_dir)
    raw_dir.mkdir(parents=True, exist_ok=True)
    safe_name = _UNSAFE_FILENAME_CHARS.sub("_", original_name)
    destination = raw_dir / f"{time.time_ns() // 1_000_000}_{safe_name}"

    size = 0
    try:
        with destination.open("wb") as out:
            while chunk := await file.read(_UPLOAD_READ_CHUNK):
                size += len(chunk)
                if size > settings.max_upload_bytes:
                    raise HTTPException(
                        status_code=413,
                        detail=f"File exceeds the {settings.max_upload_bytes} byte limit",
                    )
                out.write(chunk)
    except HTTPException:
        destination.unlink(missing_ok=True)
        raise
    finally:
        await file.close()

    _logger.info("document_uploaded", filename=destination.name, size=size)

    try:
        entry = await ingestion.ingest(destination)
    except UnsupportedFormatError as exc:
        raise HTTPException(status_code=415, detail=exc.message) from exc
    return IngestDocumentResponse(document=DocumentResponse.from_entry(entry))


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------


@router.get(
    "/admin/escalations",
    response_model=list[EscalationResponse],
    summary="List escalation tickets, newest first",
)
async def list_escalations(
    escalations: EscalationServiceDep,
    status: EscalationStatus | None = None,
) -> list[EscalationResponse]:
    return [EscalationResponse.from_ticket(t) for t in escalations.list(status)]


@router.put(
    "/admin/escalations/{escalation_id}",
    response_model=EscalationResponse,
    summary="Update an escalation's status and response",
)
async def update_escalation(
    escalation_id: str,
    body: UpdateEscalationRequest,
    escalations: EscalationServiceDep,
) -> EscalationResponse:
    try:
        ticket = escalations.update_status(escalation_id, body.status, body.response)
    except UnknownEscalationError as exc:
        raise HTTPException(status_code=404, detail=exc.message) from exc
    return EscalationResponse.from_ticket(ticket)


@router.get(
    "/admin/system/status",
    response_model=SystemStatusResponse,
    summary="Liveness of the vector store, inference server and embeddings",
)
async def system_status(
    vector_store: VectorStoreDep,
    llm: LLMProviderDep,
    embeddings: EmbeddingProviderDep,
    store: ConversationStoreDep,
    escalations: EscalationServiceDep,
    orchestrator: OrchestratorDep,
) -> SystemStatusResponse:
    vector_ok = vector_store.is_available()
    chunk_count = await vector_store.count() if vector_ok else 0
    llm_ok = await llm.is_available()
    tickets = escalations.list()

    return SystemStatusResponse(
        status="ok" if vector_ok and llm_ok else "degraded",
        vector_store={
            "provider": vector_store.get_provider_name(),
            "available": vector_ok,
            "chunks": chunk_count,
        },
        llm={"provider": llm.get_provider_name(), "available": llm_ok},
        embeddings={
            "provider": embeddings.get_provider_name(),
            "dimension": embeddings.get_dimension(),
        },
        conversations=len(store),
        escalations={
            "total": len(tickets),
            "pending": sum(1 for t in tickets if t.status == EscalationStatus.PENDING),
        },
        retrieval=orchestrator.retrieval.model_dump(mode="json"),
    )


@router.get("/health", response_model=HealthResponse, summary="Process liveness")
async def health() -> HealthResponse:
    return HealthResponse(
        status="ok",
        version=__version__,
        timestamp=datetime.now(tz=timezone.utc),
    )
