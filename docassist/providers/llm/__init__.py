"""Inference server providers.

Two implementations of ILLMProvider:
    1. LlamaCppLLMProvider - llama.cpp ``llama-server`` over plain HTTP
       (``/completion`` + ``/health``). Default.
    2. OllamaLLMProvider   - Ollama via its OpenAI-compatible ``/v1`` API.
"""

from docassist.providers.llm.llamacpp_provider import LlamaCppLLMProvider
from docassist.providers.llm.ollama_provider import OllamaLLMProvider

__all__ = ["LlamaCppLLMProvider", "OllamaLLMProvider"]
