"""Allow ``python -m docassist.cli`` execution."""

from docassist.cli.ingest import main

main()
