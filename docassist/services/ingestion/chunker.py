"""Character-window text chunking with boundary-aware cut points.

Splits source text into :class:`~docassist.models.rag.DocumentChunk` objects
of at most ``chunk_size`` characters, where every chunk after the first
starts exactly ``chunk_overlap`` characters before the end of the previous
one.  Empty or whitespace-only text yields no windows.  For any other
text the overlap is exact, so the original is recoverable from its chunks:

    chunks[0] + "".join(c[chunk_overlap:] for c in chunks[1:]) == text

Cut points are chosen by searching backwards from the size limit for, in
order of preference:

1. a paragraph break (blank line),
2. a sentence end or single line break,
3. any whitespace,

and falling back to a hard cut at ``chunk_size`` when the window contains
none of them.  A cut is only accepted if the window stays longer than the
overlap, so the next window always starts further into the text.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from datetime import datetime
from typing import NamedTuple

import structlog

from docassist.models.rag import DocumentChunk, make_chunk_id
from docassist.utils.errors import InvalidConfigurationError

logger = structlog.get_logger(logger_name=__name__)

# Separator groups, most preferred first.  The cut goes right after the
# separator so it stays with the text it terminates.
_BOUNDARY_LEVELS: tuple[tuple[str, ...], ...] = (
    ("\n\n",),
    (". ", "! ", "? ", ".\n", "!\n", "?\n", "\n"),
    (" ", "\t"),
)


class TextSection(NamedTuple):
    """A run of document text, with its 1-based page for paginated formats."""

    page_number: int | None
    text: str


class TextChunker:
    """Splits text into overlapping windows that reconstruct the input exactly.

    Parameters
    ----------
    chunk_size:
        Maximum characters per chunk (default 1000).
    chunk_overlap:
        Characters shared by consecutive chunks (default 200).  Must be
        smaller than *chunk_size*.

    Raises
    ------
    InvalidConfigurationError
        If ``chunk_overlap >= chunk_size`` or either value is out of range.
    """

    def __init__(self, chunk_size: int = 1000, chunk_overlap: int = 200) -> None:
        if chunk_size <= 0:
            raise InvalidConfigurationError(f"chunk_size must be positive, got {chunk_size}")
        if chunk_overlap < 0:
            raise InvalidConfigurationError(
                f"chunk_overlap must not be negative, got {chunk_overlap}"
            )
        if chunk_overlap >= chunk_size:
            raise InvalidConfigurationError(
                f"chunk_overlap ({chunk_overlap}) must be smaller than chunk_size ({chunk_size})"
            )
        self._chunk_size = chunk_size
        self._chunk_overlap = chunk_overlap

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @property
    def chunk_overlap(self) -> int:
        return self._chunk_overlap

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def split_text(self, text: str) -> list[str]:
        """Return the raw text windows for *text*."""
        return list(self._iter_windows(text))

    def iter_chunks(
        self,
        text: str,
        source_filename: str,
        file_path: str = "",
        page_number: int | None = None,
        ingested_at: datetime | None = None,
        start_index: int = 0,
    ) -> Iterator[DocumentChunk]:
        """Lazily yield :class:`DocumentChunk` objects for *text*.

        Each call starts a fresh pass over the text, so the sequence can be
        consumed again by calling this method again.  ``chunk_index`` counts
        up from *start_index* in document order.
        """
        for offset, window in enumerate(self._iter_windows(text)):
            index = start_index + offset
            yield DocumentChunk(
                chunk_id=make_chunk_id(source_filename, index),
                text=window,
                source_filename=source_filename,
                chunk_index=index,
                page_number=page_number,
                file_path=file_path,
                ingested_at=ingested_at,
            )

    def chunk(
        self,
        text: str,
        source_filename: str,
        file_path: str = "",
        page_number: int | None = None,
        ingested_at: datetime | None = None,
    ) -> list[DocumentChunk]:
        """Materialised form of :meth:`iter_chunks`."""
        chunks = list(
            self.iter_chunks(
                text,
                source_filename,
                file_path=file_path,
                page_number=page_number,
                ingested_at=ingested_at,
            )
        )
        logger.debug(
            "chunking_complete",
            source=source_filename,
            num_chunks=len(chunks),
            text_chars=len(text),
        )
        return chunks

    def iter_document_chunks(
        self,
        sections: Iterable[TextSection],
        source_filename: str,
        file_path: str = "",
        ingested_at: datetime | None = None,
    ) -> Iterator[DocumentChunk]:
        """Chunk every section of a document with one contiguous index.

        Windows never span two sections, so each chunk keeps the page
        number of the section it came from.
        """
        next_index = 0
        for section in sections:
            for chunk in self.iter_chunks(
                section.text,
                source_filename,
                file_path=file_path,
                page_number=section.page_number,
                ingested_at=ingested_at,
                start_index=next_index,
            ):
                next_index = chunk.chunk_index + 1
                yield chunk

    # ------------------------------------------------------------------
    # Window selection
    # ------------------------------------------------------------------

    def _iter_windows(self, text: str) -> Iterator[str]:
        if not text or not text.strip():
            return

        length = len(text)
        start = 0
        while length - start > self._chunk_size:
            end = self._find_cut(text, start, start + self._chunk_size)
            yield text[start:end]
            start = end - self._chunk_overlap
        yield text[start:]

    def _find_cut(self, text: str, start: int, limit: int) -> int:
        """Return the end offset for the window beginning at *start*.

        The result lies in ``(start + chunk_overlap, limit]``.
        """
        min_end = start + self._chunk_overlap + 1
        for separators in _BOUNDARY_LEVELS:
            best = -1
            for sep in separators:
                idx = text.rfind(sep, start, limit)
                if idx != -1:
                    best = max(best, idx + len(sep))
            if best >= min_end:
                return best
        return limit
