"""Source processor for PDF documents.

Reads PDF files using PyMuPDF (fitz) and returns one section per page that
carries text, with 1-based page numbers so answers can cite pages.  Scanned
PDFs only work when they embed an OCR text layer.
"""

from __future__ import annotations

import fitz  # PyMuPDF -- the "fitz" import name is a PyMuPDF convention
import structlog

from docassist.services.ingestion.chunker import TextSection
from docassist.utils.errors import UnsupportedFormatError

logger = structlog.get_logger(logger_name=__name__)


class PDFProcessor:
    """Extracts text page by page from a PDF file."""

    extensions: tuple[str, ...] = (".pdf",)

    def process(self, file_path: str) -> list[TextSection]:
        """Return ``TextSection(page_number, text)`` for every non-empty page.

        Raises
        ------
        UnsupportedFormatError
            If PyMuPDF cannot open the file as a PDF.
        """
        try:
            doc = fitz.open(file_path)
        except Exception as exc:
            logger.error("pdf_open_failed", file_path=file_path, error=str(exc))
            raise UnsupportedFormatError(
                message=f"File could not be opened as PDF: {file_path}",
                provider_name="pymupdf",
            ) from exc

        sections: list[TextSection] = []
        try:
            for page_index in range(len(doc)):
                text = doc[page_index].get_text("text")
                if text.strip():
                    sections.append(TextSection(page_number=page_index + 1, text=text))
        finally:
            doc.close()

        if not sections:
            logger.warning("pdf_no_text_extracted", file_path=file_path)
        logger.info("pdf_loaded", file_path=file_path, pages_with_text=len(sections))
        return sections
