"""Tests for hashing, FileStore and the IncrementalUpdater protocol."""

from pathlib import Path

import pytest

from codegraph.store.database import Database
from codegraph.store.entities import EntityStore
from codegraph.store.files import FileStore
from codegraph.store.incremental import (
    IncrementalUpdater,
    compute_file_hash,
    compute_file_hash_from_path,
)


@pytest.fixture
def updater(db: Database) -> IncrementalUpdater:
    return IncrementalUpdater(db)


class TestComputeFileHash:
    def test_deterministic(self) -> None:
        assert compute_file_hash("const a = 1;") == compute_file_hash("const a = 1;")

    def test_one_byte_difference(self) -> None:
        assert compute_file_hash("const a = 1;") != compute_file_hash("const a = 2;")

    def test_sha256_hex(self) -> None:
        assert compute_file_hash("") == (
            "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
        )

    def test_from_path(self, tmp_path: Path) -> None:
        path = tmp_path / "a.ts"
        path.write_text("export const x = 1;\n", encoding="utf-8")
        assert compute_file_hash_from_path(path) == compute_file_hash("export const x = 1;\n")

    def test_missing_file_is_none(self, tmp_path: Path) -> None:
        assert compute_file_hash_from_path(tmp_path / "missing.ts") is None

    def test_other_io_errors_propagate(self, tmp_path: Path) -> None:
        with pytest.raises(IsADirectoryError):
            compute_file_hash_from_path(tmp_path)


class TestFileStore:
    def test_upsert_preserves_id(self, db: Database) -> None:
        files = FileStore(db)
        first = files.upsert_file("/a.ts", "h1", "typescript")
        second = files.upsert_file("/a.ts", "h2", "tsx")
        assert second.id == first.id
        assert second.content_hash == "h2"
        assert second.language == "tsx"
        assert files.count() == 1

    def test_find_by_hash(self, db: Database) -> None:
        files = FileStore(db)
        files.upsert_file("/a.ts", "same", "typescript")
        files.upsert_file("/b.ts", "same", "typescript")
        assert {f.file_path for f in files.find_by_hash("same")} == {"/a.ts", "/b.ts"}

    def test_delete_by_path(self, db: Database) -> None:
        files = FileStore(db)
        files.upsert_file("/a.ts", "h", "typescript")
        assert files.delete_by_path("/a.ts") is True
        assert files.delete_by_path("/a.ts") is False

    def test_stale_files(self, db: Database) -> None:
        files = FileStore(db)
        for p in ("/a.ts", "/b.ts"):
            files.upsert_file(p, "h", "typescript")
        assert [f.file_path for f in files.get_stale_files(["/a.ts"])] == ["/b.ts"]
        assert len(files.get_stale_files([])) == 2


class TestShouldReparse:
    def test_untracked(self, updater: IncrementalUpdater) -> None:
        assert updater.should_reparse("/a.ts", "h1") is True

    def test_unchanged_after_mark(self, updater: IncrementalUpdater) -> None:
        updater.mark_file_updated("/a.ts", "h1", "typescript")
        assert updater.should_reparse("/a.ts", "h1") is False

    def test_changed(self, updater: IncrementalUpdater) -> None:
        updater.mark_file_updated("/a.ts", "h1", "typescript")
        assert updater.should_reparse("/a.ts", "h2") is True

    def test_content_edit_flips_decision(self, updater: IncrementalUpdater) -> None:
        original = compute_file_hash("function a() {}")
        updater.mark_file_updated("/a.ts", original, "typescript")
        assert not updater.should_reparse("/a.ts", compute_file_hash("function a() {}"))
        assert updater.should_reparse("/a.ts", compute_file_hash("function a() { }"))


class TestDeleteFile:
    def test_untracked_is_skipped(self, updater: IncrementalUpdater) -> None:
        result = updater.delete_file("/ghost.ts")
        assert result.action == "skipped"
        assert result.entities_affected == 0

    def test_deletes_entities_edges_and_record(
        self, updater: IncrementalUpdater, make_entity, link, relationship_store
    ) -> None:
        a = make_entity("a", "/a.ts")
        b = make_entity("b", "/b.ts")
        link(b, a)
        updater.mark_file_updated("/a.ts", "h", "typescript")

        result = updater.delete_file("/a.ts")

        assert result.to_dict() == {"file_path": "/a.ts", "action": "deleted", "entities_affected": 1}
        assert updater.files.find_by_path("/a.ts") is None
        assert relationship_store.count() == 0
        assert [e.name for e in updater.entities.get_all()] == ["b"]


class TestRemoveStaleFiles:
    def test_removes_untracked_paths(
        self, updater: IncrementalUpdater, make_entity, entity_store: EntityStore
    ) -> None:
        """Tracking a, b, c and keeping only a deletes b and c with their entities."""
        for path in ("/a.ts", "/b.ts", "/c.ts"):
            make_entity(f"fn_{path[1]}", path)
            updater.mark_file_updated(path, "h", "typescript")

        results = updater.remove_stale_files(["/a.ts"])

        assert sorted(r.file_path for r in results) == ["/b.ts", "/c.ts"]
        assert all(r.action == "deleted" for r in results)
        assert entity_store.find_by_file("/b.ts") == []
        assert entity_store.find_by_file("/c.ts") == []
        assert [e.name for e in entity_store.get_all()] == ["fn_a"]

    def test_empty_current_paths_removes_everything(self, updater: IncrementalUpdater) -> None:
        updater.mark_file_updated("/a.ts", "h", "typescript")
        updater.mark_file_updated("/b.ts", "h", "typescript")
        assert len(updater.remove_stale_files([])) == 2
        assert updater.files.count() == 0

    def test_nothing_stale(self, updater: IncrementalUpdater) -> None:
        updater.mark_file_updated("/a.ts", "h", "typescript")
        assert updater.remove_stale_files(["/a.ts"]) == []
