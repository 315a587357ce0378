"""Source processor for plain-text and Markdown files.

The whole file becomes a single section without a page number.  Markdown
is kept as-is: headings and list markers are useful context for the model.
"""

from __future__ import annotations

from pathlib import Path

import structlog

from docassist.services.ingestion.chunker import TextSection

logger = structlog.get_logger(logger_name=__name__)


class TextFileProcessor:
    """Reads ``.txt`` and ``.md`` files as UTF-8 text."""

    extensions: tuple[str, ...] = (".txt", ".md")

    def process(self, file_path: str) -> list[TextSection]:
        # errors="replace" keeps a stray Latin-1 byte from failing a whole file.
        text = Path(file_path).read_text(encoding="utf-8", errors="replace")
        logger.info("text_file_loaded", file_path=file_path, chars=len(text))
        if not text.strip():
            return []
        return [TextSection(page_number=None, text=text)]
