"""Conversation and answer models.

A :class:`Conversation` is immutable like every other model here: the
conversation store replaces it with ``model_copy(update=...)`` each time a
message is appended.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    """Timezone-aware current time, used as the default for all timestamps."""
    return datetime.now(tz=timezone.utc)


class MessageRole(str, Enum):
    """Author of a conversation turn."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class Source(BaseModel):
    """Citation pointing at one retrieved chunk."""

    model_config = ConfigDict(frozen=True)

    source: str = Field(description="File name of the cited document.")
    page: int | None = Field(default=None, description="Page number, if the format has pages.")
    chunk: int | None = Field(default=None, description="Chunk index within the document.")


class Message(BaseModel):
    """One turn in a conversation."""

    model_config = ConfigDict(frozen=True)

    role: MessageRole
    content: str
    timestamp: datetime = Field(default_factory=utc_now)
    sources: list[Source] | None = Field(
        default=None,
        description="Citations backing an assistant answer.",
    )


class Conversation(BaseModel):
    """One chat session; ``messages`` are in chronological order."""

    model_config = ConfigDict(frozen=True)

    id: str
    messages: list[Message] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utc_now)

    def dialogue(self) -> list[Message]:
        """Return user and assistant turns only, dropping system messages."""
        return [m for m in self.messages if m.role != MessageRole.SYSTEM]


class AnswerResult(BaseModel):
    """Output of the query orchestrator for one question."""

    model_config = ConfigDict(frozen=True)

    text: str
    sources: list[Source] = Field(default_factory=list)
    escalate: bool = False
    standalone_question: str = Field(
        default="",
        description="The question actually used for retrieval after condensation.",
    )


class ChatReply(BaseModel):
    """What the chat layer hands back to the API for one user message."""

    model_config = ConfigDict(frozen=True)

    text: str
    sources: list[Source] = Field(default_factory=list)
    conversation_id: str
    escalate: bool = False
    timestamp: datetime = Field(default_factory=utc_now)
    escalation_id: str | None = None
