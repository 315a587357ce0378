"""On-disk processing manifest: one JSON file per ingested document.

Entries live in ``<processed_dir>/<filename stem>.json``.  The stem is the
document id exposed by the API, so two files that differ only by extension
(``guide.pdf`` and ``guide.md``) share one entry; the last ingested wins.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import structlog
from pydantic import ValidationError

from docassist.models.rag import ManifestEntry

logger = structlog.get_logger(logger_name=__name__)


class ManifestStore:
    """Reads and writes :class:`ManifestEntry` JSON files in one directory."""

    def __init__(self, processed_dir: str | Path) -> None:
        self._dir = Path(processed_dir)

    @property
    def directory(self) -> Path:
        return self._dir

    def _path_for(self, document_id: str) -> Path:
        # Ids come from URLs; refuse anything that could leave the directory.
        if not document_id or Path(document_id).name != document_id:
            raise ValueError(f"Invalid document id: {document_id!r}")
        return self._dir / f"{document_id}.json"

    def write(self, entry: ManifestEntry) -> Path:
        """Create or overwrite the entry for ``entry.id``."""
        self._dir.mkdir(parents=True, exist_ok=True)
        path = self._path_for(entry.id)
        path.write_text(entry.model_dump_json(indent=2, exclude={"updated_at"}), encoding="utf-8")
        logger.debug("manifest_written", document_id=entry.id, path=str(path))
        return path

    def read(self, document_id: str) -> ManifestEntry | None:
        """Return the entry for *document_id*, or ``None`` if there is none."""
        try:
            path = self._path_for(document_id)
        except ValueError:
            return None
        if not path.is_file():
            return None
        return self._load(path)

    def list(self) -> list[ManifestEntry]:
        """Return every readable entry, sorted by id."""
        if not self._dir.is_dir():
            return []
        entries: list[ManifestEntry] = []
        for path in sorted(self._dir.glob("*.json")):
            entry = self._load(path)
            if entry is not None:
                entries.append(entry)
        return entries

    def delete(self, document_id: str) -> bool:
        """Remove the entry; returns ``False`` if it did not exist."""
        try:
            path = self._path_for(document_id)
        except ValueError:
            return False
        if not path.is_file():
            return False
        path.unlink()
        logger.debug("manifest_deleted", document_id=document_id)
        return True

    @staticmethod
    def _load(path: Path) -> ManifestEntry | None:
        try:
            entry = ManifestEntry.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as exc:
            logger.warning("manifest_unreadable", path=str(path), error=str(exc))
            return None
        updated_at = datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)
        return entry.model_copy(update={"updated_at": updated_at})
