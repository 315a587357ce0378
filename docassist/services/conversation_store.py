"""In-memory conversation store.

One instance is built at application startup and handed to every consumer
(chat service, escalation service, API routes) through ``app.state``; no
module holds it as a global.  Conversations live for the lifetime of the
process only.

Every mutation is synchronous, so each call is atomic on the event loop.
Multi-step turns (read history, call the model, append the answer) span
awaits; callers serialise those per conversation with :meth:`lock`.
"""

from __future__ import annotations

import asyncio

import structlog

from docassist.models.chat import Conversation, Message, MessageRole
from docassist.utils.errors import UnknownConversationError
from docassist.utils.ids import make_timestamped_id

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_SYSTEM_MESSAGE = "I am an AI assistant that helps with your documentation."


class ConversationStore:
    """Maps conversation ids to :class:`Conversation` snapshots.

    Parameters
    ----------
    system_message:
        Seeded as the first message of every new conversation.  Pass an
        empty string to start conversations empty.
    """

    def __init__(self, system_message: str = DEFAULT_SYSTEM_MESSAGE) -> None:
        self._system_message = system_message
        self._conversations: dict[str, Conversation] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def __len__(self) -> int:
        return len(self._conversations)

    def __contains__(self, conversation_id: object) -> bool:
        return conversation_id in self._conversations

    def exists(self, conversation_id: str) -> bool:
        return conversation_id in self._conversations

    def get_or_create(self, conversation_id: str | None = None) -> Conversation:
        """Return the conversation for *conversation_id*, creating one if needed.

        A missing or unknown id yields a brand-new conversation with a fresh
        ``conv-<ms>-<suffix>`` id; the supplied unknown id is not reused.
        """
        if conversation_id and conversation_id in self._conversations:
            return self._conversations[conversation_id]

        new_id = make_timestamped_id("conv")
        while new_id in self._conversations:
            new_id = make_timestamped_id("conv")

        messages = []
        if self._system_message:
            messages.append(Message(role=MessageRole.SYSTEM, content=self._system_message))
        conversation = Conversation(id=new_id, messages=messages)
        self._conversations[new_id] = conversation
        logger.info(
            "conversation_created",
            conversation_id=new_id,
            requested_id=conversation_id,
        )
        return conversation

    def get(self, conversation_id: str) -> Conversation | None:
        return self._conversations.get(conversation_id)

    def require(self, conversation_id: str) -> Conversation:
        """Like :meth:`get` but raises :class:`UnknownConversationError`."""
        conversation = self._conversations.get(conversation_id)
        if conversation is None:
            raise UnknownConversationError(f"Conversation '{conversation_id}' not found")
        return conversation

    def append(self, conversation_id: str, message: Message) -> Conversation:
        """Append *message* and return the updated conversation snapshot."""
        conversation = self.require(conversation_id)
        updated = conversation.model_copy(
            update={"messages": [*conversation.messages, message]}
        )
        self._conversations[conversation_id] = updated
        return updated

    def lock(self, conversation_id: str) -> asyncio.Lock:
        """Return the lock that serialises turns of one conversation."""
        return self._locks.setdefault(conversation_id, asyncio.Lock())
