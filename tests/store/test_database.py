"""Tests for the Database handle lifecycle."""

from pathlib import Path

import pytest
from sqlalchemy import text

from codegraph.core.errors import ErrorCode, StoreError
from codegraph.store.database import Database, open_database
from codegraph.store.entities import EntityStore
from codegraph.store.models import EntityType, NewEntity


def _entity(name: str = "f") -> NewEntity:
    return NewEntity(EntityType.FUNCTION, name, "/a.ts", 1, 2, "typescript")


class TestDatabase:
    def test_memory_by_default(self) -> None:
        db = Database()
        try:
            assert db.in_memory
            assert db.db_path is None
        finally:
            db.close()

    def test_file_database_created(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "graph.db"
        with open_database(path) as db:
            EntityStore(db).create(_entity())
        assert path.exists()

    def test_file_database_persists(self, tmp_path: Path) -> None:
        path = tmp_path / "graph.db"
        with open_database(path) as db:
            EntityStore(db).create(_entity("persisted"))
        with open_database(path) as db:
            assert [e.name for e in EntityStore(db).get_all()] == ["persisted"]

    def test_create_all_idempotent(self, db: Database) -> None:
        EntityStore(db).create(_entity())
        db.create_all()
        assert EntityStore(db).count() == 1

    def test_foreign_keys_enabled(self, db: Database) -> None:
        with db.session() as s:
            assert s.execute(text("PRAGMA foreign_keys")).scalar() == 1

    def test_reset_empties_graph(self, db: Database) -> None:
        EntityStore(db).create(_entity())
        db.reset()
        assert EntityStore(db).count() == 0

    def test_separate_memory_databases_are_isolated(self) -> None:
        with open_database() as first, open_database() as second:
            EntityStore(first).create(_entity())
            assert EntityStore(second).count() == 0

    def test_closed_handle_raises(self) -> None:
        db = open_database()
        db.close()
        assert db.closed
        with pytest.raises(StoreError) as exc_info:
            EntityStore(db).count()
        assert exc_info.value.code == ErrorCode.STORE_CLOSED

    def test_close_twice_is_noop(self) -> None:
        db = open_database()
        db.close()
        db.close()


class TestTransaction:
    def test_rollback_on_error(self, db: Database) -> None:
        store = EntityStore(db)
        with pytest.raises(RuntimeError), db.transaction() as session:
            store.create(_entity(), session=session)
            raise RuntimeError("abort")
        assert store.count() == 0

    def test_commit_on_success(self, db: Database) -> None:
        store = EntityStore(db)
        with db.transaction() as session:
            store.create(_entity("a"), session=session)
            store.create(_entity("b"), session=session)
        assert store.count() == 2
