"""Unit tests for the TextChunker."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from docassist.services.ingestion.chunker import TextChunker, TextSection
from docassist.utils.errors import ConfigurationError, InvalidConfigurationError


def _reconstruct(chunks: list[str], overlap: int) -> str:
    return chunks[0] + "".join(c[overlap:] for c in chunks[1:])


_PROSE = (
    "Refunds are issued within 30 days of purchase. Contact support to start a return. "
    "Items must be unused and in their original packaging.\n\n"
    "Shipping is free for orders above fifty dollars. Express delivery costs extra! "
    "Tracking numbers are emailed once the parcel leaves the warehouse.\n"
    "International orders may incur customs fees? Those are paid by the recipient.\n\n"
) * 12


class TestTextChunkerConfig:
    def test_defaults(self) -> None:
        chunker = TextChunker()
        assert chunker.chunk_size == 1000
        assert chunker.chunk_overlap == 200

    def test_overlap_equal_to_size_rejected(self) -> None:
        with pytest.raises(InvalidConfigurationError):
            TextChunker(chunk_size=100, chunk_overlap=100)

    def test_overlap_larger_than_size_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            TextChunker(chunk_size=100, chunk_overlap=150)

    def test_non_positive_size_rejected(self) -> None:
        with pytest.raises(InvalidConfigurationError):
            TextChunker(chunk_size=0, chunk_overlap=0)

    def test_negative_overlap_rejected(self) -> None:
        with pytest.raises(InvalidConfigurationError):
            TextChunker(chunk_size=10, chunk_overlap=-1)


class TestSplitText:
    def test_empty_and_whitespace_yield_nothing(self) -> None:
        chunker = TextChunker(chunk_size=50, chunk_overlap=10)
        assert chunker.split_text("") == []
        assert chunker.split_text("   \n\n\t ") == []

    def test_short_text_is_single_chunk(self) -> None:
        chunker = TextChunker(chunk_size=50, chunk_overlap=10)
        assert chunker.split_text("Short text.") == ["Short text."]

    def test_text_of_exactly_chunk_size_is_single_chunk(self) -> None:
        chunker = TextChunker(chunk_size=20, chunk_overlap=5)
        text = "a" * 20
        assert chunker.split_text(text) == [text]

    @pytest.mark.parametrize(("size", "overlap"), [(1000, 200), (120, 30), (60, 0), (45, 44)])
    def test_reconstruction_and_bounds(self, size: int, overlap: int) -> None:
        chunker = TextChunker(chunk_size=size, chunk_overlap=overlap)
        chunks = chunker.split_text(_PROSE)

        assert _reconstruct(chunks, overlap) == _PROSE
        assert all(len(c) <= size for c in chunks)
        for prev, nxt in zip(chunks, chunks[1:]):
            assert prev[len(prev) - overlap :] == nxt[:overlap]

    def test_unbroken_text_is_hard_cut(self) -> None:
        chunker = TextChunker(chunk_size=10, chunk_overlap=3)
        text = "x" * 25
        chunks = chunker.split_text(text)

        assert chunks[0] == "x" * 10
        assert all(len(c) <= 10 for c in chunks)
        assert _reconstruct(chunks, 3) == text

    def test_prefers_paragraph_break(self) -> None:
        first = "A" * 40 + ". " + "B" * 10
        text = first + "\n\n" + "C" * 60
        chunker = TextChunker(chunk_size=100, chunk_overlap=20)

        chunks = chunker.split_text(text)

        assert chunks[0] == first + "\n\n"

    def test_three_paragraph_document(self) -> None:
        paragraphs = [
            "Our refund policy allows returns within thirty days of purchase.",
            "Shipping takes three to five business days for domestic orders.",
            "Support is available by email on weekdays from nine to five.",
        ]
        text = "\n\n".join(paragraphs)
        chunker = TextChunker(chunk_size=100, chunk_overlap=20)

        chunks = chunker.split_text(text)

        assert len(chunks) >= 2
        assert all(len(c) <= 100 for c in chunks)
        assert _reconstruct(chunks, 20) == text
        assert chunks[0].endswith("\n\n")


class TestChunkObjects:
    def test_indices_are_contiguous_and_ids_deterministic(self) -> None:
        chunker = TextChunker(chunk_size=120, chunk_overlap=30)
        ingested = datetime(2024, 6, 1, tzinfo=timezone.utc)

        chunks = chunker.chunk(_PROSE, "policy.txt", file_path="/data/policy.txt", ingested_at=ingested)

        assert [c.chunk_index for c in chunks] == list(range(len(chunks)))
        assert chunks[3].chunk_id == "policy.txt::3"
        assert all(c.source_filename == "policy.txt" for c in chunks)
        assert all(c.file_path == "/data/policy.txt" for c in chunks)
        assert all(c.ingested_at == ingested for c in chunks)

    def test_iter_chunks_is_lazy_and_restartable(self) -> None:
        chunker = TextChunker(chunk_size=120, chunk_overlap=30)

        stream = chunker.iter_chunks(_PROSE, "policy.txt")
        first = next(stream)
        assert first.chunk_index == 0

        again = list(chunker.iter_chunks(_PROSE, "policy.txt"))
        assert again[0] == first
        assert len(again) == len(chunker.split_text(_PROSE))

    def test_document_sections_share_one_index_sequence(self) -> None:
        chunker = TextChunker(chunk_size=100, chunk_overlap=20)
        sections = [
            TextSection(page_number=1, text="Page one text. " * 12),
            TextSection(page_number=2, text="Page two text. " * 12),
        ]

        chunks = list(chunker.iter_document_chunks(sections, "manual.pdf"))

        assert [c.chunk_index for c in chunks] == list(range(len(chunks)))
        pages = [c.page_number for c in chunks]
        assert pages == sorted(pages)
        assert set(pages) == {1, 2}
        assert all("two" not in c.text for c in chunks if c.page_number == 1)

    def test_to_source_citation(self) -> None:
        chunker = TextChunker(chunk_size=100, chunk_overlap=20)
        chunk = chunker.chunk("Hello world.", "notes.md", page_number=4)[0]

        source = chunk.to_source()

        assert (source.source, source.page, source.chunk) == ("notes.md", 4, 0)
