"""Abstract interfaces for every swappable docassist dependency.

Services receive these through their constructors; concrete adapters live
under ``docassist/providers`` (and ``docassist/services`` for the
confidence classifier).
"""

from docassist.interfaces.confidence_classifier import IConfidenceClassifier
from docassist.interfaces.embedding_provider import IEmbeddingProvider
from docassist.interfaces.llm_provider import GenerationParams, ILLMProvider
from docassist.interfaces.vector_store_provider import IVectorStoreProvider

__all__ = [
    "GenerationParams",
    "IConfidenceClassifier",
    "IEmbeddingProvider",
    "ILLMProvider",
    "IVectorStoreProvider",
]
