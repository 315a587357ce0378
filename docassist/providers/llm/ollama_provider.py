"""Ollama LLM provider adapter.

Wraps a local Ollama server via its OpenAI-compatible API endpoint, using
the ``openai`` client library pointed at the Ollama base URL.

Setup: install Ollama (https://ollama.ai), ``ollama pull llama3.2``, then
set ``LLM_PROVIDER=ollama`` and ``OLLAMA_BASE_URL=http://localhost:11434``.
"""

from __future__ import annotations

import httpx
import openai
import structlog

from docassist.interfaces.llm_provider import GenerationParams, ILLMProvider
from docassist.utils.errors import InferenceError

logger = structlog.get_logger(logger_name=__name__)


class OllamaLLMProvider(ILLMProvider):
    """LLM provider backed by a local Ollama server.

    Ollama exposes an OpenAI-compatible ``/v1`` API, so this adapter reuses
    ``openai.AsyncOpenAI``.  The composed prompt is sent as a single user
    message.  SDK retries are disabled; one failed call is final.
    """

    def __init__(
        self,
        base_url: str,
        model: str = "llama3.2",
        timeout_seconds: float = 30.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._model = model
        self._client = openai.AsyncOpenAI(
            base_url=f"{self._base_url}/v1",
            # Ollama ignores the key but the SDK requires a non-empty value.
            api_key="ollama",
            timeout=timeout_seconds,
            max_retries=0,
        )

    async def complete(self, prompt: str, params: GenerationParams) -> str:
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=[{"role": "user", "content": prompt}],
                temperature=params.temperature,
                top_p=params.top_p,
                max_tokens=params.max_new_tokens,
                # Ollama-specific sampling option, passed through untouched.
                extra_body={"options": {"repeat_penalty": params.repeat_penalty}},
            )
        except openai.APITimeoutError as exc:
            raise InferenceError(
                message="Ollama request timed out",
                provider_name=self.get_provider_name(),
            ) from exc
        except openai.APIError as exc:
            raise InferenceError(
                message=f"Ollama API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        content = response.choices[0].message.content
        if content is None:
            raise InferenceError(
                message="Ollama returned empty response",
                provider_name=self.get_provider_name(),
            )
        logger.info("ollama_completion", model=self._model, completion_chars=len(content))
        return content.strip()

    async def is_available(self) -> bool:
        """Check that the server answers on its native ``/api/tags`` endpoint."""
        try:
            async with httpx.AsyncClient(timeout=5.0) as client:
                response = await client.get(f"{self._base_url}/api/tags")
                return response.status_code == 200
        except httpx.HTTPError:
            return False

    def get_provider_name(self) -> str:
        return "ollama"
