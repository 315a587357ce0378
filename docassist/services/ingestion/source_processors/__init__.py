"""Source processors for the docassist ingestion pipeline.

Each processor turns one file format into a list of
:class:`~docassist.services.ingestion.chunker.TextSection` objects, which the
TextChunker then splits into overlapping chunks.

Available processors and their input formats:

- **TextFileProcessor** -- ``.txt`` and ``.md`` files, read as UTF-8
- **PDFProcessor**      -- ``.pdf`` via PyMuPDF, one section per page
- **DocxProcessor**     -- ``.docx`` via python-docx paragraph extraction
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from docassist.services.ingestion.chunker import TextSection
from docassist.services.ingestion.source_processors.docx_processor import DocxProcessor
from docassist.services.ingestion.source_processors.pdf_processor import PDFProcessor
from docassist.services.ingestion.source_processors.text_processor import TextFileProcessor
from docassist.utils.errors import UnsupportedFormatError


class SourceProcessor(Protocol):
    """Anything that can load a file into text sections."""

    extensions: tuple[str, ...]

    def process(self, file_path: str) -> list[TextSection]: ...


_PROCESSORS: dict[str, SourceProcessor] = {}
for _processor in (TextFileProcessor(), PDFProcessor(), DocxProcessor()):
    for _ext in _processor.extensions:
        _PROCESSORS[_ext] = _processor

SUPPORTED_EXTENSIONS: frozenset[str] = frozenset(_PROCESSORS)


def is_supported(file_path: str | Path) -> bool:
    """Return ``True`` if *file_path* has an extension we can ingest."""
    return Path(file_path).suffix.lower() in SUPPORTED_EXTENSIONS


def get_processor(file_path: str | Path) -> SourceProcessor:
    """Return the processor registered for *file_path*'s extension.

    Raises
    ------
    UnsupportedFormatError
        If the extension is not one of :data:`SUPPORTED_EXTENSIONS`.
    """
    suffix = Path(file_path).suffix.lower()
    try:
        return _PROCESSORS[suffix]
    except KeyError:
        supported = ", ".join(sorted(SUPPORTED_EXTENSIONS))
        raise UnsupportedFormatError(
            f"Unsupported file type '{suffix or Path(file_path).name}'. Supported: {supported}"
        ) from None


__all__ = [
    "DocxProcessor",
    "PDFProcessor",
    "SUPPORTED_EXTENSIONS",
    "SourceProcessor",
    "TextFileProcessor",
    "get_processor",
    "is_supported",
]
