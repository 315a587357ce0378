"""Unit tests for ChatService turn handling."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from docassist.models.chat import AnswerResult, MessageRole, Source
from docassist.models.escalation import EscalationStatus
from docassist.services.chat_service import AUTO_ESCALATION_REASON, ChatService
from docassist.services.conversation_store import ConversationStore
from docassist.services.escalation_service import EscalationService
from docassist.services.query_orchestrator import QueryOrchestrator
from docassist.utils.errors import UnknownConversationError


def _answer(text: str = "Refunds within 30 days.", escalate: bool = False) -> AnswerResult:
    return AnswerResult(
        text=text,
        sources=[Source(source="policy.md", page=None, chunk=0)],
        escalate=escalate,
        standalone_question="q",
    )


@pytest.fixture()
def store() -> ConversationStore:
    return ConversationStore()


@pytest.fixture()
def escalations(store: ConversationStore) -> EscalationService:
    return EscalationService(store)


@pytest.fixture()
def orchestrator() -> MagicMock:
    mock = MagicMock(spec=QueryOrchestrator)
    mock.answer = AsyncMock(return_value=_answer())
    return mock


@pytest.fixture()
def chat(store, orchestrator, escalations) -> ChatService:
    return ChatService(store, orchestrator, escalations)


class TestProcessMessage:
    @pytest.mark.asyncio
    async def test_new_conversation_turn(self, chat, store, orchestrator) -> None:
        reply = await chat.process_message("What is the refund policy?")

        assert reply.text == "Refunds within 30 days."
        assert reply.escalate is False
        assert reply.escalation_id is None
        assert reply.sources[0].source == "policy.md"

        conversation = store.require(reply.conversation_id)
        assert [m.role for m in conversation.messages] == [
            MessageRole.SYSTEM,
            MessageRole.USER,
            MessageRole.ASSISTANT,
        ]
        assert conversation.messages[2].sources == reply.sources
        orchestrator.answer.assert_awaited_once_with("What is the refund policy?", [])

    @pytest.mark.asyncio
    async def test_history_excludes_current_message_and_system(
        self, chat, orchestrator
    ) -> None:
        first = await chat.process_message("What is the refund policy?")
        await chat.process_message("How long does it take?", first.conversation_id)

        question, history = orchestrator.answer.await_args_list[1].args
        assert question == "How long does it take?"
        assert [(m.role, m.content) for m in history] == [
            (MessageRole.USER, "What is the refund policy?"),
            (MessageRole.ASSISTANT, "Refunds within 30 days."),
        ]

    @pytest.mark.asyncio
    async def test_unknown_conversation_id_starts_new_conversation(self, chat) -> None:
        reply = await chat.process_message("Hello", "conv-unknown")

        assert reply.conversation_id != "conv-unknown"

    @pytest.mark.asyncio
    async def test_low_confidence_answer_opens_ticket(
        self, chat, orchestrator, escalations
    ) -> None:
        orchestrator.answer.return_value = _answer("I don't know.", escalate=True)

        reply = await chat.process_message("What is the meaning of life?")

        assert reply.escalate is True
        tickets = escalations.list()
        assert len(tickets) == 1
        assert tickets[0].escalation_id == reply.escalation_id
        assert tickets[0].conversation_id == reply.conversation_id
        assert tickets[0].reason == AUTO_ESCALATION_REASON
        assert tickets[0].status == EscalationStatus.PENDING

    @pytest.mark.asyncio
    async def test_concurrent_messages_do_not_interleave(self, chat, store, orchestrator) -> None:
        conv_id = (await chat.process_message("first")).conversation_id

        async def slow_answer(question, history):
            await asyncio.sleep(0.01)
            return _answer(f"answer to {question}")

        orchestrator.answer.side_effect = slow_answer

        await asyncio.gather(
            chat.process_message("second", conv_id),
            chat.process_message("third", conv_id),
        )

        contents = [m.content for m in store.require(conv_id).dialogue()]
        assert contents[2:] == ["second", "answer to second", "third", "answer to third"]


class TestHistoryAndEscalate:
    @pytest.mark.asyncio
    async def test_history_of_known_conversation(self, chat) -> None:
        reply = await chat.process_message("hi")

        assert chat.history(reply.conversation_id).id == reply.conversation_id

    def test_history_of_unknown_conversation_raises(self, chat) -> None:
        with pytest.raises(UnknownConversationError):
            chat.history("conv-nope")

    @pytest.mark.asyncio
    async def test_user_escalation(self, chat) -> None:
        reply = await chat.process_message("hi")

        ticket = chat.escalate(reply.conversation_id, "Please call me")

        assert ticket.reason == "Please call me"
        assert ticket.status == EscalationStatus.PENDING

    def test_escalating_unknown_conversation_raises(self, chat) -> None:
        with pytest.raises(UnknownConversationError):
            chat.escalate("conv-nope")
