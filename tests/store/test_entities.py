"""Tests for EntityStore."""

import time

from codegraph.store.entities import EntityStore
from codegraph.store.models import EntityType, NewEntity, RelationshipType
from codegraph.store.relationships import RelationshipStore


class TestCreate:
    def test_assigns_id_and_timestamps(self, entity_store: EntityStore) -> None:
        before = time.time()
        entity = entity_store.create(
            NewEntity(EntityType.CLASS, "Calculator", "/src/calc.ts", 3, 40, "typescript")
        )
        assert entity.id
        assert entity.created_at >= before
        assert entity.updated_at == entity.created_at

    def test_ids_unique(self, make_entity) -> None:
        assert make_entity("a").id != make_entity("a").id

    def test_metadata_round_trip(self, make_entity, entity_store: EntityStore) -> None:
        created = make_entity("add", metadata={"exported": True, "parameters": ["a", "b"]})
        found = entity_store.find_by_id(created.id)
        assert found is not None
        assert found.get_metadata() == {"exported": True, "parameters": ["a", "b"]}

    def test_empty_metadata_reads_as_empty_dict(self, make_entity) -> None:
        assert make_entity("x").get_metadata() == {}


class TestFind:
    def test_find_by_id_missing(self, entity_store: EntityStore) -> None:
        assert entity_store.find_by_id("nope") is None

    def test_find_by_name_returns_all_matches(self, make_entity, entity_store: EntityStore) -> None:
        make_entity("render", "/a.ts")
        make_entity("render", "/b.ts")
        make_entity("other", "/a.ts")
        assert [e.file_path for e in entity_store.find_by_name("render")] == ["/a.ts", "/b.ts"]

    def test_find_by_file_ordered_by_line(self, make_entity, entity_store: EntityStore) -> None:
        make_entity("second", "/a.ts", start_line=20)
        make_entity("first", "/a.ts", start_line=1)
        assert [e.name for e in entity_store.find_by_file("/a.ts")] == ["first", "second"]

    def test_find_by_type(self, make_entity, entity_store: EntityStore) -> None:
        make_entity("Foo", type=EntityType.CLASS)
        make_entity("bar")
        assert [e.name for e in entity_store.find_by_type("class")] == ["Foo"]

    def test_find_by_ids(self, make_entity, entity_store: EntityStore) -> None:
        a = make_entity("a")
        found = entity_store.find_by_ids([a.id, "missing"])
        assert list(found) == [a.id]

    def test_search_with_wildcard(self, make_entity, entity_store: EntityStore) -> None:
        make_entity("getUser")
        make_entity("getOrder")
        make_entity("setUser")
        assert {e.name for e in entity_store.search(name="get*")} == {"getUser", "getOrder"}

    def test_search_wildcard_treats_like_metacharacters_literally(
        self, make_entity, entity_store: EntityStore
    ) -> None:
        make_entity("get_user")
        make_entity("getXuser")
        make_entity("100%done")
        make_entity("100xdone")
        assert [e.name for e in entity_store.search(name="get_*")] == ["get_user"]
        assert [e.name for e in entity_store.search(name="100%*")] == ["100%done"]

    def test_find_by_names(self, make_entity, entity_store: EntityStore) -> None:
        make_entity("b", file_path="/z.ts")
        make_entity("b", file_path="/a.ts")
        make_entity("c")
        found = entity_store.find_by_names(["b", "missing"])
        assert [(e.name, e.file_path) for e in found] == [("b", "/a.ts"), ("b", "/z.ts")]
        assert entity_store.find_by_names([]) == []

    def test_search_limit(self, make_entity, entity_store: EntityStore) -> None:
        for i in range(5):
            make_entity(f"f{i}", start_line=i + 1)
        assert len(entity_store.search(limit=2)) == 2


class TestDelete:
    def test_delete_returns_false_when_absent(self, entity_store: EntityStore) -> None:
        assert entity_store.delete("nope") is False

    def test_delete_is_idempotent(self, make_entity, entity_store: EntityStore) -> None:
        entity = make_entity("a")
        assert entity_store.delete(entity.id) is True
        assert entity_store.delete(entity.id) is False

    def test_delete_cascades_relationships(
        self, make_entity, link, entity_store: EntityStore, relationship_store: RelationshipStore
    ) -> None:
        """Removing an entity removes edges where it is source or target."""
        a, b, c = make_entity("a"), make_entity("b"), make_entity("c")
        link(a, b)
        link(b, c)
        link(c, a, RelationshipType.IMPORTS)

        entity_store.delete(b.id)

        assert relationship_store.count() == 1
        assert relationship_store.find_by_source(c.id)[0].target_id == a.id

    def test_delete_by_file_counts_and_cascades(
        self, make_entity, link, entity_store: EntityStore, relationship_store: RelationshipStore
    ) -> None:
        a = make_entity("a", "/x.ts")
        b = make_entity("b", "/x.ts", start_line=5)
        c = make_entity("c", "/y.ts")
        link(c, a)
        link(a, b)

        assert entity_store.delete_by_file("/x.ts") == 2
        assert entity_store.count() == 1
        assert relationship_store.count() == 0

    def test_delete_by_file_unknown(self, entity_store: EntityStore) -> None:
        assert entity_store.delete_by_file("/nope.ts") == 0


class TestCounts:
    def test_count_by_type_includes_zeros(self, make_entity, entity_store: EntityStore) -> None:
        make_entity("a")
        make_entity("A", type=EntityType.CLASS)
        counts = entity_store.count_by_type()
        assert counts["function"] == 1
        assert counts["class"] == 1
        assert counts["module"] == 0
        assert set(counts) == {t.value for t in EntityType}

    def test_recent_files(self, entity_store: EntityStore) -> None:
        entity_store.create(NewEntity("function", "old", "/old.ts", 1, 2, "typescript"))
        time.sleep(0.01)
        entity_store.create(NewEntity("function", "n1", "/new.ts", 1, 2, "typescript"))
        entity_store.create(NewEntity("function", "n2", "/new.ts", 5, 6, "typescript"))

        recent = entity_store.get_recent_files(limit=10)

        assert [r.file_path for r in recent] == ["/new.ts", "/old.ts"]
        assert recent[0].entity_count == 2
        assert entity_store.get_recent_files(limit=1)[0].file_path == "/new.ts"
