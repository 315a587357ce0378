"""docassist domain models - re-exports all public model classes.

The models are organized by concern:
    - chat.py        - Conversations, messages, citations and answers
    - escalation.py  - Human-handoff tickets
    - rag.py         - Document chunks, retrieval results, manifests
"""

from __future__ import annotations

from docassist.models.chat import (
    AnswerResult,
    ChatReply,
    Conversation,
    Message,
    MessageRole,
    Source,
)
from docassist.models.escalation import EscalationStatus, EscalationTicket
from docassist.models.rag import (
    DocumentChunk,
    ManifestEntry,
    RetrievalStrategy,
    RetrievedChunk,
    make_chunk_id,
)

__all__ = [
    "AnswerResult",
    "ChatReply",
    "Conversation",
    "DocumentChunk",
    "EscalationStatus",
    "EscalationTicket",
    "ManifestEntry",
    "Message",
    "MessageRole",
    "RetrievalStrategy",
    "RetrievedChunk",
    "Source",
    "make_chunk_id",
]
