"""Unit tests for the corpus management CLI."""

from __future__ import annotations

from pathlib import Path

import pytest

from docassist.cli.ingest import _build_parser, main
from docassist.services.ingestion import IngestionService, ManifestStore, TextChunker


@pytest.fixture()
def service(embedding_provider, vector_store, tmp_path: Path) -> IngestionService:
    return IngestionService(
        chunker=TextChunker(chunk_size=200, chunk_overlap=40),
        embedding_provider=embedding_provider,
        vector_store=vector_store,
        manifest_store=ManifestStore(tmp_path / "processed"),
    )


def _run(argv: list[str], service: IngestionService) -> int:
    with pytest.raises(SystemExit) as excinfo:
        main(argv, service=service)
    return excinfo.value.code


class TestParser:
    def test_ingest_file_and_dir_are_exclusive(self) -> None:
        with pytest.raises(SystemExit):
            _build_parser().parse_args(["ingest", "--file", "a.txt", "--dir", "raw"])

    def test_delete_requires_id(self) -> None:
        with pytest.raises(SystemExit):
            _build_parser().parse_args(["delete"])


class TestCommands:
    def test_no_command_prints_help(self, service, capsys) -> None:
        assert _run([], service) == 1
        assert "usage" in capsys.readouterr().out.lower()

    def test_ingest_needs_a_target(self, service) -> None:
        assert _run(["ingest"], service) == 2

    def test_ingest_file(self, service, vector_store, tmp_path, capsys) -> None:
        path = tmp_path / "faq.txt"
        path.write_text("Support hours are nine to five on weekdays.", encoding="utf-8")

        assert _run(["ingest", "--file", str(path)], service) == 0

        out = capsys.readouterr().out
        assert "Document ID:    faq" in out
        assert vector_store.chunks_for("faq.txt")

    def test_ingest_directory_with_reset(self, service, vector_store, tmp_path, capsys) -> None:
        raw = tmp_path / "raw"
        raw.mkdir()
        (raw / "a.txt").write_text("Alpha.", encoding="utf-8")
        (raw / "b.md").write_text("Beta.", encoding="utf-8")
        stale = tmp_path / "stale.txt"
        stale.write_text("Stale content.", encoding="utf-8")
        _run(["ingest", "--file", str(stale)], service)

        assert _run(["ingest", "--dir", str(raw), "--reset"], service) == 0

        assert vector_store.chunks_for("stale.txt") == []
        assert len(vector_store.chunks_for("a.txt")) == 1
        assert "Files processed: 2" in capsys.readouterr().out

    def test_list_and_delete(self, service, tmp_path, capsys) -> None:
        path = tmp_path / "guide.txt"
        path.write_text("Guide text.", encoding="utf-8")
        _run(["ingest", "--file", str(path)], service)
        capsys.readouterr()

        assert _run(["list"], service) == 0
        assert "guide" in capsys.readouterr().out

        assert _run(["delete", "guide"], service) == 0
        assert "Deleted document 'guide' (1 chunks)" in capsys.readouterr().out

        _run(["list"], service)
        assert "No processed documents." in capsys.readouterr().out

    def test_errors_exit_non_zero(self, service, tmp_path, capsys) -> None:
        assert _run(["ingest", "--file", str(tmp_path / "missing.txt")], service) == 1
        assert "Error:" in capsys.readouterr().err

        assert _run(["delete", "ghost"], service) == 1

    def test_unknown_embedding_provider_exits_non_zero(self, monkeypatch, capsys) -> None:
        monkeypatch.setenv("EMBEDDING_PROVIDER", "openai")

        with pytest.raises(SystemExit) as excinfo:
            main(["list"])

        assert excinfo.value.code == 1
        assert "Unknown EMBEDDING_PROVIDER 'openai'" in capsys.readouterr().err
