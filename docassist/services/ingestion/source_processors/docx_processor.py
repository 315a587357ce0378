"""Source processor for Word ``.docx`` documents.

python-docx reads the XML inside the DOCX zip archive; formatting is
dropped and non-empty paragraphs are joined with blank lines so the
chunker can still cut on paragraph boundaries.  DOCX has no stable page
numbers, so the result is a single unpaginated section.
"""

from __future__ import annotations

import structlog
from docx import Document

from docassist.services.ingestion.chunker import TextSection
from docassist.utils.errors import UnsupportedFormatError

logger = structlog.get_logger(logger_name=__name__)


class DocxProcessor:
    """Extracts paragraph text from a ``.docx`` file."""

    extensions: tuple[str, ...] = (".docx",)

    def process(self, file_path: str) -> list[TextSection]:
        try:
            doc = Document(file_path)
        except Exception as exc:
            logger.error("docx_open_failed", file_path=file_path, error=str(exc))
            raise UnsupportedFormatError(
                message=f"File could not be opened as DOCX: {file_path}",
                provider_name="python-docx",
            ) from exc

        paragraphs = [para.text for para in doc.paragraphs if para.text.strip()]
        logger.info("docx_loaded", file_path=file_path, paragraphs=len(paragraphs))
        if not paragraphs:
            return []
        return [TextSection(page_number=None, text="\n\n".join(paragraphs))]
