"""Human-handoff ticket models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from docassist.models.chat import utc_now


class EscalationStatus(str, Enum):
    """Lifecycle of an escalation ticket; only an admin moves it forward."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"


class EscalationTicket(BaseModel):
    """A request for a human to take over a conversation.

    Created explicitly by the user or implicitly when an answer looks low
    confidence.  Never deleted automatically.
    """

    model_config = ConfigDict(frozen=True)

    escalation_id: str = Field(description="Identifier of the form 'esc-<ms>-<suffix>'.")
    conversation_id: str
    reason: str
    status: EscalationStatus = EscalationStatus.PENDING
    timestamp: datetime = Field(default_factory=utc_now)
    response: str | None = Field(default=None, description="Admin reply, if any.")
    resolved_at: datetime | None = None
