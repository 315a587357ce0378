"""Document ingestion pipeline for the docassist knowledge base.

Orchestrates the full pipeline: **load -> chunk -> embed -> store -> record**.

1. **Load** (source_processors/) -- format-specific readers turn ``.txt``,
   ``.md``, ``.pdf`` and ``.docx`` files into text sections.
2. **Chunk** (chunker.py / TextChunker) -- overlapping character windows
   cut at paragraph, sentence or word boundaries.
3. **Embed** (via IEmbeddingProvider) -- dense vectors per chunk.
4. **Store** (via IVectorStoreProvider) -- upsert into ChromaDB.
5. **Record** (manifest.py / ManifestStore) -- JSON manifest per document.
"""

from docassist.services.ingestion.chunker import TextChunker, TextSection
from docassist.services.ingestion.ingestion_service import IngestionService
from docassist.services.ingestion.manifest import ManifestStore

__all__ = [
    "IngestionService",
    "ManifestStore",
    "TextChunker",
    "TextSection",
]
