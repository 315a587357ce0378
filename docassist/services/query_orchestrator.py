"""Retrieval-augmented query orchestrator.

Answers one question against the document corpus as an explicit, ordered
pipeline of stages.  Each stage is its own method and takes only the
previous stage's output:

    condense  -- (question, history) -> standalone question
    retrieve  -- standalone question  -> ranked chunks
    compose   -- question + chunks    -> bounded prompt
    infer     -- prompt               -> answer text
    classify  -- answer text          -> escalate?

Architecture overview for junior developers
--------------------------------------------
- **condense** only calls the model when there is history; a first question
  goes to retrieval verbatim.
- **retrieve** embeds the question and asks the vector store for the top
  ``k`` chunks, by plain similarity or by MMR (relevance balanced against
  redundancy).  Selection is deterministic.
- **compose** fills the QA template with chunk texts in rank order and
  drops the lowest-ranked chunks until the prompt fits the model's context
  window (minus the tokens reserved for the answer).
- **infer** is a single call with a fixed timeout and no retry.
- **classify** delegates to an injected :class:`IConfidenceClassifier`.

Any failure in those stages becomes a canned apology with
``escalate=True``; callers never see the exception.  Nothing is cached.
"""

from __future__ import annotations

from collections.abc import Sequence

import structlog
from pydantic import BaseModel, ConfigDict, Field

from docassist.interfaces.confidence_classifier import IConfidenceClassifier
from docassist.interfaces.embedding_provider import IEmbeddingProvider
from docassist.interfaces.llm_provider import GenerationParams, ILLMProvider
from docassist.interfaces.vector_store_provider import IVectorStoreProvider
from docassist.models.chat import AnswerResult, Message, MessageRole
from docassist.models.rag import RetrievalStrategy, RetrievedChunk
from docassist.services import prompts
from docassist.utils.errors import InferenceError, RetrievalError
from docassist.utils.logging import get_logger

logger: structlog.BoundLogger = get_logger(__name__)

APOLOGY_TEXT = "I'm sorry, I encountered an error while processing your request."


class ComposedPrompt(BaseModel):
    """Output of the compose stage."""

    model_config = ConfigDict(frozen=True)

    text: str
    context_chunks: list[RetrievedChunk] = Field(default_factory=list)
    dropped_chunks: int = 0


class RetrievalSettings(BaseModel):
    """Retrieval knobs for the orchestrator."""

    model_config = ConfigDict(frozen=True)

    top_k: int = Field(default=4, gt=0)
    strategy: RetrievalStrategy = RetrievalStrategy.MMR
    fetch_k_multiplier: int = Field(default=3, ge=1)
    diversity: float = Field(default=0.3, ge=0.0, le=1.0)

    @property
    def fetch_k(self) -> int:
        return self.top_k * self.fetch_k_multiplier


class QueryOrchestrator:
    """Runs the condense -> retrieve -> compose -> infer -> classify pipeline.

    Parameters
    ----------
    embedding_provider:
        Embeds the standalone question; must match the ingestion provider.
    vector_store:
        Source of candidate chunks.
    llm_provider:
        Inference server used for both condensation and answering.
    confidence_classifier:
        Decides whether an answer needs a human.
    retrieval:
        ``top_k``, strategy, MMR pool multiplier and diversity.
    generation:
        Decoding parameters for every inference call.
    context_window:
        Model context size in tokens; the prompt gets
        ``context_window - generation.max_new_tokens`` of it.
    """

    def __init__(
        self,
        embedding_provider: IEmbeddingProvider,
        vector_store: IVectorStoreProvider,
        llm_provider: ILLMProvider,
        confidence_classifier: IConfidenceClassifier,
        retrieval: RetrievalSettings | None = None,
        generation: GenerationParams | None = None,
        context_window: int = 4096,
    ) -> None:
        self._embedding_provider = embedding_provider
        self._vector_store = vector_store
        self._llm = llm_provider
        self._classifier = confidence_classifier
        self._retrieval = retrieval or RetrievalSettings()
        self._generation = generation or GenerationParams()
        self._max_prompt_chars = prompts.prompt_char_budget(
            context_window, self._generation.max_new_tokens
        )

    @property
    def retrieval(self) -> RetrievalSettings:
        return self._retrieval

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def answer(self, question: str, history: Sequence[Message] = ()) -> AnswerResult:
        """Answer *question* given the prior turns in *history*.

        Never raises for embedding, vector-store or inference failures: the
        result is then the apology text with ``escalate=True``.  Sources are
        whatever retrieval returned before the failure, if anything.
        """
        standalone = question
        retrieved: list[RetrievedChunk] = []
        stage = "condense"
        try:
            standalone = await self.condense(question, history)
            stage = "retrieve"
            retrieved = await self.retrieve(standalone)
            stage = "compose"
            composed = self.compose(standalone, retrieved)
            stage = "infer"
            text = await self.infer(composed)
            stage = "classify"
            escalate = self.classify(text)
        except Exception as exc:
            logger.error(
                "query_pipeline_failed",
                stage=stage,
                error=str(exc),
                error_type=type(exc).__name__,
                question=question[:80],
            )
            return AnswerResult(
                text=APOLOGY_TEXT,
                sources=[rc.to_source() for rc in retrieved],
                escalate=True,
                standalone_question=standalone,
            )

        logger.info(
            "query_answered",
            question=question[:80],
            condensed=standalone != question,
            sources=len(retrieved),
            context_chunks=len(composed.context_chunks),
            escalate=escalate,
        )
        return AnswerResult(
            text=text,
            sources=[rc.to_source() for rc in retrieved],
            escalate=escalate,
            standalone_question=standalone,
        )

    # ------------------------------------------------------------------
    # Pipeline stages
    # ------------------------------------------------------------------

    async def condense(self, question: str, history: Sequence[Message]) -> str:
        """Rewrite *question* as a standalone question using *history*.

        Returns *question* unchanged, without any model call, when there is
        no user or assistant turn in *history*.  Only the most recent turns
        that fit the prompt budget are sent; older ones are dropped.
        """
        dialogue = [m for m in history if m.role != MessageRole.SYSTEM]
        if not dialogue:
            return question

        recent = prompts.fit_history(question, dialogue, self._max_prompt_chars)
        if len(recent) < len(dialogue):
            logger.info(
                "history_truncated",
                turns=len(dialogue),
                kept=len(recent),
                max_prompt_chars=self._max_prompt_chars,
            )
        if not recent:
            return question

        prompt = prompts.build_condense_prompt(question, recent)
        rewritten = (await self._llm.complete(prompt, self._generation)).strip()
        if not rewritten:
            logger.warning("condense_empty_result", question=question[:80])
            return question
        logger.debug("question_condensed", original=question[:80], standalone=rewritten[:80])
        return rewritten

    async def retrieve(self, query: str) -> list[RetrievedChunk]:
        """Embed *query* and fetch the top-k chunks with the configured strategy."""
        try:
            embedding = await self._embedding_provider.embed_single(query)
            return await self._vector_store.query(
                embedding,
                top_k=self._retrieval.top_k,
                strategy=self._retrieval.strategy,
                fetch_k=self._retrieval.fetch_k,
                diversity=self._retrieval.diversity,
            )
        except RetrievalError:
            raise
        except Exception as exc:
            raise RetrievalError(message=f"Retrieval failed: {exc}") from exc

    def compose(self, query: str, retrieved: Sequence[RetrievedChunk]) -> ComposedPrompt:
        """Build the QA prompt, dropping lowest-ranked chunks to fit the budget."""
        kept, context = prompts.select_context(query, retrieved, self._max_prompt_chars)
        dropped = len(retrieved) - len(kept)
        if dropped:
            logger.info(
                "context_truncated",
                retrieved=len(retrieved),
                kept=len(kept),
                max_prompt_chars=self._max_prompt_chars,
            )
        return ComposedPrompt(
            text=prompts.build_qa_prompt(query, context),
            context_chunks=kept,
            dropped_chunks=dropped,
        )

    async def infer(self, composed: ComposedPrompt) -> str:
        """Send the composed prompt to the inference server once."""
        text = (await self._llm.complete(composed.text, self._generation)).strip()
        if not text:
            raise InferenceError(
                message="Inference server returned an empty completion",
                provider_name=self._llm.get_provider_name(),
            )
        return text

    def classify(self, answer_text: str) -> bool:
        """Return ``True`` when the answer should be escalated to a human."""
        return self._classifier.is_low_confidence(answer_text)
