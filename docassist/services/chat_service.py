"""Chat turn handling: the layer between the API and the orchestrator.

For each user message the service

1. finds or creates the conversation,
2. takes the prior user/assistant turns as history,
3. appends the user message,
4. asks the :class:`QueryOrchestrator` for an answer,
5. appends the assistant message with its sources, and
6. opens an escalation ticket when the answer asks for one.

Steps 2-5 run under the conversation's lock so two concurrent messages to
the same conversation cannot interleave their turns.
"""

from __future__ import annotations

import structlog

from docassist.models.chat import ChatReply, Conversation, Message, MessageRole
from docassist.models.escalation import EscalationTicket
from docassist.services.conversation_store import ConversationStore
from docassist.services.escalation_service import EscalationService
from docassist.services.query_orchestrator import QueryOrchestrator

logger = structlog.get_logger(logger_name=__name__)

AUTO_ESCALATION_REASON = "Low confidence in response"


class ChatService:
    """Coordinates the conversation store, orchestrator and escalations."""

    def __init__(
        self,
        conversation_store: ConversationStore,
        orchestrator: QueryOrchestrator,
        escalation_service: EscalationService,
        auto_escalation_reason: str = AUTO_ESCALATION_REASON,
    ) -> None:
        self._store = conversation_store
        self._orchestrator = orchestrator
        self._escalations = escalation_service
        self._auto_escalation_reason = auto_escalation_reason

    async def process_message(
        self,
        message: str,
        conversation_id: str | None = None,
    ) -> ChatReply:
        """Answer *message* within *conversation_id* (or a new conversation)."""
        conversation = self._store.get_or_create(conversation_id)
        conv_id = conversation.id

        async with self._store.lock(conv_id):
            history = self._store.require(conv_id).dialogue()
            self._store.append(conv_id, Message(role=MessageRole.USER, content=message))

            result = await self._orchestrator.answer(message, history)

            assistant_message = Message(
                role=MessageRole.ASSISTANT,
                content=result.text,
                sources=result.sources,
            )
            self._store.append(conv_id, assistant_message)

        escalation_id = None
        if result.escalate:
            ticket = self._escalations.create(conv_id, self._auto_escalation_reason)
            escalation_id = ticket.escalation_id

        logger.info(
            "chat_message_processed",
            conversation_id=conv_id,
            sources=len(result.sources),
            escalate=result.escalate,
        )
        return ChatReply(
            text=result.text,
            sources=result.sources,
            conversation_id=conv_id,
            escalate=result.escalate,
            timestamp=assistant_message.timestamp,
            escalation_id=escalation_id,
        )

    def history(self, conversation_id: str) -> Conversation:
        """Return the conversation or raise :class:`UnknownConversationError`."""
        return self._store.require(conversation_id)

    def escalate(self, conversation_id: str, reason: str | None = None) -> EscalationTicket:
        """Open a ticket at the user's request."""
        return self._escalations.create(conversation_id, reason)
