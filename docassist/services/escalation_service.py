"""Escalation workflow: human-handoff tickets keyed by conversation.

Tickets are created by the user ("talk to a human") or by the chat layer
when an answer looks low confidence, and are moved along by an admin.
Notification is not wired to any channel: the service only logs the
notification it would send.
"""

from __future__ import annotations

from datetime import datetime, timezone

import structlog

from docassist.models.escalation import EscalationStatus, EscalationTicket
from docassist.services.conversation_store import ConversationStore
from docassist.utils.errors import UnknownEscalationError
from docassist.utils.ids import make_timestamped_id

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_ESCALATION_REASON = "User requested assistance"


class EscalationService:
    """Creates, updates and lists :class:`EscalationTicket` objects in memory.

    Parameters
    ----------
    conversation_store:
        Used to check that a conversation exists before escalating it.
    admin_email:
        Recipient named in the notification log line.
    notifications_enabled:
        When ``False``, no notification is logged.
    """

    def __init__(
        self,
        conversation_store: ConversationStore,
        admin_email: str = "admin@example.com",
        notifications_enabled: bool = True,
    ) -> None:
        self._conversations = conversation_store
        self._admin_email = admin_email
        self._notifications_enabled = notifications_enabled
        self._tickets: dict[str, EscalationTicket] = {}

    def create(
        self,
        conversation_id: str,
        reason: str | None = None,
    ) -> EscalationTicket:
        """Open a pending ticket for *conversation_id*.

        Raises
        ------
        UnknownConversationError
            If the conversation store does not know *conversation_id*.
        """
        self._conversations.require(conversation_id)

        escalation_id = make_timestamped_id("esc")
        while escalation_id in self._tickets:
            escalation_id = make_timestamped_id("esc")

        ticket = EscalationTicket(
            escalation_id=escalation_id,
            conversation_id=conversation_id,
            reason=(reason or "").strip() or DEFAULT_ESCALATION_REASON,
        )
        self._tickets[escalation_id] = ticket
        logger.info(
            "escalation_created",
            escalation_id=escalation_id,
            conversation_id=conversation_id,
            reason=ticket.reason,
        )
        self._notify(ticket)
        return ticket

    def update_status(
        self,
        escalation_id: str,
        status: EscalationStatus | str,
        response: str | None = None,
    ) -> EscalationTicket:
        """Move a ticket to *status*, optionally recording an admin *response*.

        ``resolved_at`` is stamped when the ticket becomes resolved and
        cleared if it is reopened.
        """
        ticket = self.get(escalation_id)
        new_status = EscalationStatus(status)

        update: dict[str, object] = {"status": new_status}
        if response is not None:
            update["response"] = response
        if new_status == EscalationStatus.RESOLVED:
            update["resolved_at"] = ticket.resolved_at or datetime.now(tz=timezone.utc)
        else:
            update["resolved_at"] = None

        updated = ticket.model_copy(update=update)
        self._tickets[escalation_id] = updated
        logger.info(
            "escalation_updated",
            escalation_id=escalation_id,
            previous_status=ticket.status.value,
            status=new_status.value,
        )
        return updated

    def get(self, escalation_id: str) -> EscalationTicket:
        ticket = self._tickets.get(escalation_id)
        if ticket is None:
            raise UnknownEscalationError(f"Escalation '{escalation_id}' not found")
        return ticket

    def list(self, status: EscalationStatus | str | None = None) -> list[EscalationTicket]:
        """Return tickets newest first, optionally only those in *status*."""
        tickets = list(self._tickets.values())
        if status is not None:
            wanted = EscalationStatus(status)
            tickets = [t for t in tickets if t.status == wanted]
        return sorted(tickets, key=lambda t: t.timestamp, reverse=True)

    def _notify(self, ticket: EscalationTicket) -> None:
        if not self._notifications_enabled:
            return
        logger.info(
            "admin_notification_pending",
            recipient=self._admin_email,
            escalation_id=ticket.escalation_id,
            conversation_id=ticket.conversation_id,
            msg="would notify admin",
        )
