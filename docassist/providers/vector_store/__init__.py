"""Vector store providers.

ChromaDBProvider persists chunks + embeddings on local disk and serves
similarity and MMR queries.  The MMR re-ranking itself lives in ``mmr.py``
so it can be tested without a database.
"""

from docassist.providers.vector_store.chromadb_provider import ChromaDBProvider
from docassist.providers.vector_store.mmr import maximal_marginal_relevance

__all__ = ["ChromaDBProvider", "maximal_marginal_relevance"]
