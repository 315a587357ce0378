"""Prompt templates and context-window budgeting for the query pipeline."""

from __future__ import annotations

from collections.abc import Sequence

from docassist.models.chat import Message, MessageRole
from docassist.models.rag import RetrievedChunk

CONDENSE_TEMPLATE = (
    "Given the following conversation and a follow-up question, rephrase the "
    "follow-up question to be a standalone question, in its original language.\n"
    "\n"
    "Chat History:\n"
    "{chat_history}\n"
    "\n"
    "Follow-up question: {question}\n"
    "Standalone question:"
)

QA_TEMPLATE = (
    "You are an AI assistant for answering questions about internal documentation. "
    "Use only the following pieces of retrieved context to answer the question. "
    "If the context does not contain the answer, just say that you don't know. "
    "Use three sentences maximum and keep the answer concise.\n"
    "\n"
    "Question: {question}\n"
    "\n"
    "Context:\n"
    "{context}\n"
    "\n"
    "Answer:"
)

CONTEXT_SEPARATOR = "\n\n"

# Rough English average; the inference server does the real tokenisation.
CHARS_PER_TOKEN = 4


def format_history(history: Sequence[Message]) -> str:
    """Render user/assistant turns as ``role: content`` lines."""
    return "\n".join(
        _history_line(message) for message in history if message.role != MessageRole.SYSTEM
    )


def _history_line(message: Message) -> str:
    return f"{message.role.value}: {message.content}"


def fit_history(
    question: str,
    history: Sequence[Message],
    max_prompt_chars: int,
) -> list[Message]:
    """Return the most recent turns whose condense prompt fits the budget.

    Turns are dropped oldest first; the kept turns stay in chronological
    order.  System messages are never kept.
    """
    overhead = len(CONDENSE_TEMPLATE.format(chat_history="", question=question))
    available = max_prompt_chars - overhead

    kept: list[Message] = []
    used = 0
    for message in reversed(history):
        if message.role == MessageRole.SYSTEM:
            continue
        cost = len(_history_line(message)) + (1 if kept else 0)
        if used + cost > available:
            break
        kept.append(message)
        used += cost
    kept.reverse()
    return kept


def build_condense_prompt(question: str, history: Sequence[Message]) -> str:
    return CONDENSE_TEMPLATE.format(chat_history=format_history(history), question=question)


def prompt_char_budget(context_window: int, max_new_tokens: int) -> int:
    """Characters available for the prompt once the completion is reserved."""
    return max(context_window - max_new_tokens, 0) * CHARS_PER_TOKEN


def select_context(
    question: str,
    retrieved: Sequence[RetrievedChunk],
    max_prompt_chars: int,
) -> tuple[list[RetrievedChunk], str]:
    """Pick the chunks that fit in the prompt and build the context block.

    Chunks are kept in rank order; the first one that does not fit ends the
    selection, so lower-ranked chunks are always dropped before higher
    ones.  When not even the top chunk fits, its text is cut to the
    remaining space.
    """
    overhead = len(QA_TEMPLATE.format(question=question, context=""))
    available = max_prompt_chars - overhead

    kept: list[RetrievedChunk] = []
    used = 0
    for rc in retrieved:
        cost = len(rc.chunk.text) + (len(CONTEXT_SEPARATOR) if kept else 0)
        if used + cost > available:
            break
        kept.append(rc)
        used += cost

    if not kept and retrieved and available > 0:
        top = retrieved[0]
        return [top], top.chunk.text[:available]

    return kept, CONTEXT_SEPARATOR.join(rc.chunk.text for rc in kept)


def build_qa_prompt(question: str, context: str) -> str:
    return QA_TEMPLATE.format(question=question, context=context)
