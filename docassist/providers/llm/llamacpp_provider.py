"""llama.cpp inference server adapter.

Talks to the HTTP server bundled with llama.cpp (``llama-server``):

* ``POST /completion`` with ``{prompt, temperature, top_p, n_predict,
  repeat_penalty}`` returns ``{"content": "..."}``.
* ``GET /health`` is the liveness probe.

Requests are bounded by a fixed timeout and never retried: a slow or
unreachable server surfaces immediately as :class:`InferenceError` so the
orchestrator can apologise and escalate.
"""

from __future__ import annotations

import httpx
import structlog

from docassist.interfaces.llm_provider import GenerationParams, ILLMProvider
from docassist.utils.errors import InferenceError

logger = structlog.get_logger(logger_name=__name__)

_HEALTH_TIMEOUT_SECONDS = 5.0


class LlamaCppLLMProvider(ILLMProvider):
    """LLM provider backed by a llama.cpp HTTP server.

    Parameters
    ----------
    base_url:
        Server root, e.g. ``http://localhost:8080``.
    timeout_seconds:
        Upper bound for one completion request.
    transport:
        Optional ``httpx`` transport; tests pass an ``httpx.MockTransport``.
    """

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout_seconds
        self._transport = transport

    def _client(self, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            timeout=timeout,
            transport=self._transport,
        )

    # ------------------------------------------------------------------
    # ILLMProvider implementation
    # ------------------------------------------------------------------

    async def complete(self, prompt: str, params: GenerationParams) -> str:
        payload = {
            "prompt": prompt,
            "temperature": params.temperature,
            "top_p": params.top_p,
            "n_predict": params.max_new_tokens,
            "repeat_penalty": params.repeat_penalty,
        }
        try:
            async with self._client(self._timeout) as client:
                response = await client.post("/completion", json=payload)
                response.raise_for_status()
                body = response.json()
        except httpx.TimeoutException as exc:
            raise InferenceError(
                message=f"Inference request timed out after {self._timeout:g}s",
                provider_name=self.get_provider_name(),
            ) from exc
        except httpx.HTTPStatusError as exc:
            raise InferenceError(
                message=f"Inference server returned HTTP {exc.response.status_code}",
                provider_name=self.get_provider_name(),
            ) from exc
        except httpx.HTTPError as exc:
            raise InferenceError(
                message=f"Inference server unreachable: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except ValueError as exc:
            raise InferenceError(
                message="Inference server returned invalid JSON",
                provider_name=self.get_provider_name(),
            ) from exc

        content = body.get("content") if isinstance(body, dict) else None
        if not isinstance(content, str):
            raise InferenceError(
                message="Inference response has no 'content' field",
                provider_name=self.get_provider_name(),
            )

        logger.info(
            "llamacpp_completion",
            prompt_chars=len(prompt),
            completion_chars=len(content),
            tokens_predicted=body.get("tokens_predicted"),
        )
        return content.strip()

    async def is_available(self) -> bool:
        try:
            async with self._client(_HEALTH_TIMEOUT_SECONDS) as client:
                response = await client.get("/health")
                return response.status_code == 200
        except httpx.HTTPError:
            return False

    def get_provider_name(self) -> str:
        return "llamacpp"
