"""Pydantic request/response schemas for the docassist API.

# ─── HOW SCHEMAS WORK (Junior Developer Guide) ────────────────────────
#
# These models define the shape of every HTTP request and response body.
# FastAPI uses them to validate incoming JSON (422 on bad input), to
# serialise outgoing objects (response_model=...), and to build the
# OpenAPI docs at /docs.
#
# The browser client speaks camelCase (``conversationId``) while Python
# code uses snake_case.  ``_ApiModel`` sets an alias generator so both
# spellings are accepted on input and camelCase is emitted on output.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from docassist.models.chat import ChatReply, Conversation, Message, MessageRole, Source
from docassist.models.escalation import EscalationStatus, EscalationTicket
from docassist.models.rag import ManifestEntry


class _ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------


class ChatMessageRequest(_ApiModel):
    """A user message, optionally continuing an existing conversation."""

    message: str = Field(..., min_length=1, max_length=4000)
    conversation_id: str | None = None


class ChatMessageResponse(_ApiModel):
    """The assistant's answer to one message."""

    text: str
    sources: list[Source] = Field(default_factory=list)
    conversation_id: str
    escalate: bool
    timestamp: datetime
    escalation_id: str | None = None

    @classmethod
    def from_reply(cls, reply: ChatReply) -> ChatMessageResponse:
        return cls(
            text=reply.text,
            sources=reply.sources,
            conversation_id=reply.conversation_id,
            escalate=reply.escalate,
            timestamp=reply.timestamp,
            escalation_id=reply.escalation_id,
        )


class MessageResponse(_ApiModel):
    role: MessageRole
    content: str
    timestamp: datetime
    sources: list[Source] | None = None

    @classmethod
    def from_message(cls, message: Message) -> MessageResponse:
        return cls(
            role=message.role,
            content=message.content,
            timestamp=message.timestamp,
            sources=message.sources,
        )


class ConversationResponse(_ApiModel):
    """Full history of one conversation."""

    id: str
    messages: list[MessageResponse]
    created_at: datetime

    @classmethod
    def from_conversation(cls, conversation: Conversation) -> ConversationResponse:
        return cls(
            id=conversation.id,
            messages=[MessageResponse.from_message(m) for m in conversation.messages],
            created_at=conversation.created_at,
        )


# ---------------------------------------------------------------------------
# Escalations
# ---------------------------------------------------------------------------


class EscalateRequest(_ApiModel):
    conversation_id: str = Field(..., min_length=1)
    reason: str | None = Field(default=None, max_length=1000)


class UpdateEscalationRequest(_ApiModel):
    status: EscalationStatus
    response: str | None = Field(default=None, max_length=4000)


class EscalationResponse(_ApiModel):
    escalation_id: str
    conversation_id: str
    reason: str
    status: EscalationStatus
    timestamp: datetime
    response: str | None = None
    resolved_at: datetime | None = None

    @classmethod
    def from_ticket(cls, ticket: EscalationTicket) -> EscalationResponse:
        return cls(**ticket.model_dump())


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


class DocumentResponse(_ApiModel):
    """One processed document, as recorded in the manifest."""

    id: str
    filename: str
    original_path: str
    chunk_count: int
    processed_at: datetime
    file_type: str
    status: str
    updated_at: datetime | None = None

    @classmethod
    def from_entry(cls, entry: ManifestEntry) -> DocumentResponse:
        return cls(**entry.model_dump())


class IngestDocumentRequest(_ApiModel):
    """Ingest a file that already sits in the raw data directory."""

    filepath: str = Field(..., min_length=1)


class IngestDocumentResponse(_ApiModel):
    success: bool = True
    document: DocumentResponse


class DeleteDocumentResponse(_ApiModel):
    success: bool
    message: str
    chunks_deleted: int = 0


# ---------------------------------------------------------------------------
# Health / status
# ---------------------------------------------------------------------------


class HealthResponse(_ApiModel):
    status: str
    version: str
    timestamp: datetime


class SystemStatusResponse(_ApiModel):
    """Admin view of component liveness and corpus size."""

    status: str
    vector_store: dict[str, Any]
    llm: dict[str, Any]
    embeddings: dict[str, Any]
    conversations: int
    escalations: dict[str, int]
    retrieval: dict[str, Any]


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None
