"""Embedding provider implementations.

Both providers default to ``sentence-transformers/all-MiniLM-L6-v2`` (384
dims) and are interchangeable on an existing collection:

    1. SentenceTransformerEmbeddingProvider - PyTorch-based, the default.
    2. FastEmbedEmbeddingProvider - ONNX-based, no PyTorch needed.

The heavy model libraries are only imported when a model is first loaded.
"""

from docassist.providers.embedding.fastembed_embedding_provider import FastEmbedEmbeddingProvider
from docassist.providers.embedding.sentence_transformer_embedding_provider import (
    SentenceTransformerEmbeddingProvider,
)

__all__ = ["FastEmbedEmbeddingProvider", "SentenceTransformerEmbeddingProvider"]
