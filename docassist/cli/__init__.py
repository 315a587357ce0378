# =============================================================================
# docassist/cli/__init__.py - CLI Module Overview
# =============================================================================
#
# Command-line tools for operators who manage the document corpus without
# going through the HTTP API.  The only tool today is the ingestion CLI
# (ingest.py), which loads files into the vector store, lists what has been
# processed, and deletes documents.
#
# Architecture Notes:
#   - argparse, not Click/Typer.
#   - Heavy imports (embedding models, ChromaDB) are deferred inside
#     functions so ``--help`` stays fast.
#   - The CLI builds its own ingestion service from Settings instead of
#     importing the web app, because it runs as a one-shot process.
# =============================================================================

"""CLI tools for docassist.

- ``python -m docassist.cli ingest --file PATH`` - ingest one document
- ``python -m docassist.cli ingest --dir PATH`` - ingest a directory
- ``python -m docassist.cli list`` - list processed documents
- ``python -m docassist.cli delete ID`` - remove a processed document
"""
