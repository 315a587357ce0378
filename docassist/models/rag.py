"""RAG data models for the docassist knowledge base.

Defines Pydantic v2 models for document chunks, retrieval results and the
per-document processing manifest.  All models use frozen config so a chunk
cannot change after ingestion created it.

RAG overview for junior developers:
    1. INGESTION: documents in ``data/raw`` are loaded by format and split
       into overlapping chunks (see services/ingestion/chunker.py).
    2. EMBEDDING: each chunk becomes a fixed-dimension vector.
    3. STORAGE: chunks + vectors live in a ChromaDB collection (cosine space).
    4. RETRIEVAL: a question is embedded and the nearest chunks come back
       as :class:`RetrievedChunk` objects.
    5. GENERATION: those chunks become the context block of the prompt
       sent to the local inference server.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from docassist.models.chat import Source


class RetrievalStrategy(str, Enum):
    """How the vector store picks the top-k chunks for a query."""

    SIMILARITY = "similarity"
    MMR = "mmr"


# ---------------------------------------------------------------------------
# DocumentChunk - the fundamental unit of the knowledge base.
# ---------------------------------------------------------------------------
class DocumentChunk(BaseModel):
    """A contiguous slice of one source document's text.

    ``chunk_index`` values for chunks of the same source are contiguous,
    start at 0 and follow document order.  Chunks are deleted en masse when
    their source document is deleted (matched on ``source_filename``).
    """

    model_config = ConfigDict(frozen=True)

    chunk_id: str = Field(description="Stable identifier: '<source_filename>::<chunk_index>'.")
    text: str = Field(description="The chunk's textual content.")
    source_filename: str = Field(description="File name of the source document.")
    chunk_index: int = Field(ge=0, description="Position of this chunk within its source.")
    page_number: int | None = Field(
        default=None,
        ge=1,
        description="1-based page the chunk came from, for paginated formats.",
    )
    file_path: str = Field(default="", description="Path the source was ingested from.")
    ingested_at: datetime | None = Field(default=None, description="When the source was ingested.")
    embedding: list[float] | None = Field(
        default=None,
        description="Embedding vector, set once by the ingestion pipeline.",
    )

    def to_source(self) -> Source:
        """Return the citation for this chunk."""
        return Source(source=self.source_filename, page=self.page_number, chunk=self.chunk_index)


def make_chunk_id(source_filename: str, chunk_index: int) -> str:
    """Deterministic chunk id, so re-upserting a source overwrites in place."""
    return f"{source_filename}::{chunk_index}"


# ---------------------------------------------------------------------------
# RetrievedChunk - a search result from the vector store.
# ---------------------------------------------------------------------------
class RetrievedChunk(BaseModel):
    """A document chunk returned from a vector-store query with its score.

    ``similarity_score`` is cosine similarity clamped to [0, 1]; the list a
    query returns is in rank order (best first).
    """

    model_config = ConfigDict(frozen=True)

    chunk: DocumentChunk = Field(description="The retrieved document chunk.")
    similarity_score: float = Field(
        default=0.0,
        ge=0.0,
        le=1.0,
        description="Cosine similarity between the query and this chunk.",
    )

    def to_source(self) -> Source:
        return self.chunk.to_source()


# ---------------------------------------------------------------------------
# ManifestEntry - ingestion record for one source file.
# ---------------------------------------------------------------------------
class ManifestEntry(BaseModel):
    """Processing record written to ``data/processed/<stem>.json``.

    One entry per source file, keyed by the filename stem; re-ingesting the
    same filename overwrites it and deleting the document removes it.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Filename stem; doubles as the document id in the API.")
    original_path: str = Field(description="Path the file was ingested from.")
    filename: str = Field(description="File name including extension.")
    chunk_count: int = Field(ge=0, description="Number of chunks written to the vector store.")
    processed_at: datetime = Field(description="When ingestion finished.")
    file_type: str = Field(description="Extension without the dot, e.g. 'pdf'.")
    status: str = Field(default="processed", description="Processing status.")
    updated_at: datetime | None = Field(
        default=None,
        description="Manifest file modification time, filled in when listing.",
    )
