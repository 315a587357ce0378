"""Abstract base class for inference-server providers.

Defines the contract for a locally hosted language model that turns one
fully composed prompt into text.  Prompt construction belongs to the query
orchestrator; providers only transport it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel, ConfigDict, Field


class GenerationParams(BaseModel):
    """Decoding parameters forwarded to the inference server."""

    model_config = ConfigDict(frozen=True)

    temperature: float = Field(default=0.2, ge=0.0)
    top_p: float = Field(default=0.9, gt=0.0, le=1.0)
    max_new_tokens: int = Field(default=1024, gt=0)
    repeat_penalty: float = Field(default=1.1, gt=0.0)


# Concrete implementations: LlamaCppLLMProvider, OllamaLLMProvider
# Located in: docassist/providers/llm/
class ILLMProvider(ABC):
    """Contract for the text-completion backend used by the orchestrator."""

    @abstractmethod
    async def complete(self, prompt: str, params: GenerationParams) -> str:
        """Generate a completion for *prompt*.

        Parameters
        ----------
        prompt:
            The complete prompt, instructions included.
        params:
            Decoding parameters.

        Returns
        -------
        str
            The generated text.

        Raises
        ------
        docassist.utils.errors.InferenceError
            On timeout, connection failure, non-2xx status or a malformed
            response.  Implementations must not retry.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"llamacpp"``."""

    @abstractmethod
    async def is_available(self) -> bool:
        """Probe the server's liveness endpoint.

        Returns ``False`` rather than raising when the server is down.
        """
