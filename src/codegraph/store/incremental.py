"""Incremental update protocol.

Per file, driven by content hash comparison::

    untracked              -> should_reparse() is True
    tracked, same hash     -> should_reparse() is False
    tracked, changed hash  -> should_reparse() is True

``delete_file`` and ``remove_stale_files`` never raise for "nothing to do";
they report ``action="skipped"`` instead.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Literal

from codegraph.core.logging import get_logger
from codegraph.store.entities import EntityStore
from codegraph.store.files import FileStore

if TYPE_CHECKING:
    from collections.abc import Iterable

    from codegraph.store.database import Database
    from codegraph.store.models import FileRecord

log = get_logger("store.incremental")


def compute_file_hash(content: str) -> str:
    """SHA-256 hex digest of text content encoded as UTF-8."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def compute_file_hash_from_path(path: Path | str) -> str | None:
    """Hash a file on disk.

    Returns None if the file does not exist. Any other I/O or decoding
    failure propagates.
    """
    try:
        content = Path(path).read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    return compute_file_hash(content)


@dataclass(frozen=True, slots=True)
class DeleteResult:
    """Outcome of removing one file from the graph."""

    file_path: str
    action: Literal["deleted", "skipped"]
    entities_affected: int = 0

    def to_dict(self) -> dict[str, object]:
        return {
            "file_path": self.file_path,
            "action": self.action,
            "entities_affected": self.entities_affected,
        }


class IncrementalUpdater:
    """Keeps file records and their entities in step with file content."""

    def __init__(self, db: Database) -> None:
        self._db = db
        self.files = FileStore(db)
        self.entities = EntityStore(db)

    def should_reparse(self, file_path: str, content_hash: str) -> bool:
        record = self.files.find_by_path(file_path)
        if record is None:
            return True
        return record.content_hash != content_hash

    def mark_file_updated(self, file_path: str, content_hash: str, language: str) -> FileRecord:
        """Record the hash that was just indexed; preserves the record id."""
        return self.files.upsert_file(file_path, content_hash, language)

    def delete_file(self, file_path: str) -> DeleteResult:
        """Drop a file's entities (and, by cascade, their edges), then its record."""
        if self.files.find_by_path(file_path) is None:
            return DeleteResult(file_path=file_path, action="skipped")

        with self._db.transaction() as session:
            removed = self.entities.delete_by_file(file_path, session=session)
            self.files.delete_by_path(file_path, session=session)

        log.debug("file_removed", file_path=file_path, entities=removed)
        return DeleteResult(file_path=file_path, action="deleted", entities_affected=removed)

    def remove_stale_files(self, current_paths: Iterable[str]) -> list[DeleteResult]:
        """Delete every tracked file not in ``current_paths``.

        An empty ``current_paths`` removes everything that is tracked.
        """
        stale = self.files.get_stale_files(current_paths)
        results = [self.delete_file(record.file_path) for record in stale]
        if results:
            log.info("stale_files_removed", count=len(results))
        return results
