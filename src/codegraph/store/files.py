"""File records: the content fingerprints behind incremental indexing."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from sqlalchemy import delete, func
from sqlmodel import col, select

from codegraph.store.models import FileRecord

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sqlmodel import Session

    from codegraph.store.database import Database


class FileStore:
    """CRUD over the ``files`` table, keyed by unique ``file_path``."""

    def __init__(self, db: Database) -> None:
        self._db = db

    def upsert_file(
        self,
        file_path: str,
        content_hash: str,
        language: str,
        *,
        session: Session | None = None,
    ) -> FileRecord:
        """Insert or update a file record. An existing record keeps its id."""
        with self._db.transaction(session) as s:
            record = s.exec(select(FileRecord).where(FileRecord.file_path == file_path)).first()
            if record is None:
                record = FileRecord(file_path=file_path, content_hash=content_hash, language=language)
            else:
                record.content_hash = content_hash
                record.language = language
                record.updated_at = time.time()
            s.add(record)
            s.flush()
        return record

    def find_by_path(self, file_path: str) -> FileRecord | None:
        with self._db.session() as s:
            return s.exec(select(FileRecord).where(FileRecord.file_path == file_path)).first()

    def find_by_hash(self, content_hash: str) -> list[FileRecord]:
        with self._db.session() as s:
            stmt = select(FileRecord).where(FileRecord.content_hash == content_hash)
            return list(s.exec(stmt).all())

    def delete_by_path(self, file_path: str, *, session: Session | None = None) -> bool:
        with self._db.transaction(session) as s:
            result = s.execute(delete(FileRecord).where(col(FileRecord.file_path) == file_path))
        return int(result.rowcount) > 0  # type: ignore[attr-defined]

    def list_all(self) -> list[FileRecord]:
        with self._db.session() as s:
            return list(s.exec(select(FileRecord).order_by(col(FileRecord.file_path))).all())

    def get_stale_files(self, current_paths: Iterable[str]) -> list[FileRecord]:
        """Tracked files absent from ``current_paths``.

        An empty ``current_paths`` marks every tracked file stale.
        """
        present = set(current_paths)
        return [record for record in self.list_all() if record.file_path not in present]

    def count(self) -> int:
        with self._db.session() as s:
            return int(s.exec(select(func.count()).select_from(FileRecord)).one())
