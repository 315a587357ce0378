# =============================================================================
# docassist/cli/ingest.py - CLI Ingest Command (corpus management)
# =============================================================================
#
# Standalone CLI for loading documents into the docassist vector store.
# Uses the same chunker, embedding provider and ChromaDB collection as the
# web app (all read from Settings / .env), so documents ingested here are
# immediately answerable through the chat API.
#
# Supported subcommands:
#
#   ingest  - ingest one file (--file) or every supported file in a
#             directory (--dir); --reset drops the collection first
#   list    - show processed documents from the manifest
#   delete  - remove a processed document's vectors and manifest entry
#
# Usage examples:
#   python -m docassist.cli ingest --file data/raw/handbook.pdf
#   python -m docassist.cli ingest --dir data/raw --reset
#   python -m docassist.cli list
#   python -m docassist.cli delete handbook
# =============================================================================

"""Standalone CLI for managing the docassist document corpus."""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import TYPE_CHECKING

from docassist.config.settings import Settings
from docassist.utils.errors import DocAssistError

if TYPE_CHECKING:
    from docassist.services.ingestion.ingestion_service import IngestionService


def _build_ingestion_service(app_settings: Settings) -> IngestionService:
    """Wire the ingestion service exactly as the web app does."""
    from docassist.services.ingestion.factory import build_ingestion

    service, _, _ = build_ingestion(app_settings)
    return service


# ---------------------------------------------------------------------------
# Subcommand handlers
# ---------------------------------------------------------------------------


async def _handle_ingest(args: argparse.Namespace, service: IngestionService) -> int:
    """Ingest a file or a directory, optionally resetting the collection first."""
    if args.reset:
        print("Resetting vector store collection...")
        await service.reset()

    if args.file:
        print(f"Ingesting file: {args.file}")
        entry = await service.ingest(args.file)
        print("\nIngestion complete:")
        print(f"  Document ID:    {entry.id}")
        print(f"  Chunks created: {entry.chunk_count}")
        return 0

    if args.dir:
        print(f"Ingesting directory: {args.dir}")
        entries = await service.ingest_directory(args.dir)
        print("\nDirectory ingestion complete:")
        print(f"  Files processed: {len(entries)}")
        print(f"  Total chunks:    {sum(e.chunk_count for e in entries)}")
        return 0

    return 0


def _handle_list(service: IngestionService) -> int:
    entries = service.list_documents()
    if not entries:
        print("No processed documents.")
        return 0

    print("Processed Documents")
    print("=" * 60)
    for entry in entries:
        print(
            f"  {entry.id:<30} {entry.file_type:<5} "
            f"{entry.chunk_count:>6} chunks  {entry.processed_at:%Y-%m-%d %H:%M}"
        )
    return 0


async def _handle_delete(args: argparse.Namespace, service: IngestionService) -> int:
    deleted = await service.delete_document(args.document_id)
    print(f"Deleted document '{args.document_id}' ({deleted} chunks).")
    return 0


async def _dispatch(args: argparse.Namespace, service: IngestionService) -> int:
    if args.command == "ingest":
        return await _handle_ingest(args, service)
    if args.command == "list":
        return _handle_list(service)
    if args.command == "delete":
        return await _handle_delete(args, service)
    return 1


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m docassist.cli",
        description="Manage the docassist document corpus.",
    )
    subparsers = parser.add_subparsers(dest="command", help="Corpus commands")

    # -- ingest --
    ingest_parser = subparsers.add_parser("ingest", help="Ingest a file or directory")
    target = ingest_parser.add_mutually_exclusive_group()
    target.add_argument("--file", help="Path to a single .txt, .md, .pdf or .docx file")
    target.add_argument("--dir", help="Directory whose supported files should be ingested")
    ingest_parser.add_argument(
        "--reset",
        action="store_true",
        help="Drop every vector in the collection before ingesting",
    )

    # -- list --
    subparsers.add_parser("list", help="List processed documents")

    # -- delete --
    delete_parser = subparsers.add_parser("delete", help="Delete a processed document")
    delete_parser.add_argument("document_id", help="Document id as shown by 'list'")

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None, service: IngestionService | None = None) -> None:
    """CLI entry point.

    *service* lets callers supply a pre-built ingestion service; otherwise
    one is wired from ``Settings()``.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    if args.command == "ingest" and not (args.file or args.dir or args.reset):
        parser.error("ingest needs --file, --dir or --reset")

    try:
        if service is None:
            service = _build_ingestion_service(Settings())
        exit_code = asyncio.run(_dispatch(args, service))
    except DocAssistError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
