"""Tests for RelationshipStore: uniqueness, endpoints, batches, cascade."""

from contextlib import contextmanager

import pytest
from sqlalchemy.exc import IntegrityError

from codegraph.core.errors import ErrorCode, StoreError
from codegraph.store.entities import EntityStore
from codegraph.store.models import NewRelationship, RelationshipType
from codegraph.store.relationships import RelationshipStore


class TestCreate:
    def test_create(self, make_entity, relationship_store: RelationshipStore) -> None:
        a, b = make_entity("a"), make_entity("b")
        rel = relationship_store.create(
            NewRelationship(a.id, b.id, RelationshipType.CALLS, {"line": 4})
        )
        assert rel.id
        assert rel.triple == (a.id, b.id, "calls")
        assert rel.get_metadata() == {"line": 4}

    def test_duplicate_triple_fails_loudly(
        self, make_entity, relationship_store: RelationshipStore
    ) -> None:
        a, b = make_entity("a"), make_entity("b")
        relationship_store.create(NewRelationship(a.id, b.id, "calls"))
        with pytest.raises(StoreError) as exc_info:
            relationship_store.create(NewRelationship(a.id, b.id, "calls"))
        assert exc_info.value.code == ErrorCode.STORE_CONSTRAINT_VIOLATION
        assert relationship_store.count() == 1

    def test_same_pair_different_type_allowed(
        self, make_entity, relationship_store: RelationshipStore
    ) -> None:
        a, b = make_entity("a"), make_entity("b")
        relationship_store.create(NewRelationship(a.id, b.id, "calls"))
        relationship_store.create(NewRelationship(a.id, b.id, "imports"))
        assert len(relationship_store.find_between(a.id, b.id)) == 2

    def test_missing_endpoint_fails(
        self, make_entity, relationship_store: RelationshipStore
    ) -> None:
        a = make_entity("a")
        with pytest.raises(StoreError) as exc_info:
            relationship_store.create(NewRelationship(a.id, "ghost", "calls"))
        assert exc_info.value.code == ErrorCode.STORE_MISSING_ENDPOINT
        assert relationship_store.count() == 0

    def test_unknown_type_rejected(self, make_entity, relationship_store: RelationshipStore) -> None:
        a, b = make_entity("a"), make_entity("b")
        with pytest.raises(ValueError):
            relationship_store.create(NewRelationship(a.id, b.id, "uses"))


class TestCreateBatch:
    def test_intra_batch_duplicates_dropped(
        self, make_entity, relationship_store: RelationshipStore
    ) -> None:
        """Two identical triples in one batch produce one row."""
        s, t = make_entity("s"), make_entity("t")
        created = relationship_store.create_batch(
            [NewRelationship(s.id, t.id, "calls"), NewRelationship(s.id, t.id, "calls")]
        )
        assert len(created) == 1
        assert relationship_store.count() == 1

    def test_existing_duplicates_dropped(
        self, make_entity, link, relationship_store: RelationshipStore
    ) -> None:
        a, b, c = make_entity("a"), make_entity("b"), make_entity("c")
        link(a, b)
        created = relationship_store.create_batch(
            [NewRelationship(a.id, b.id, "calls"), NewRelationship(a.id, c.id, "calls")]
        )
        assert [r.target_id for r in created] == [c.id]
        assert relationship_store.count() == 2

    def test_returns_input_order(self, make_entity, relationship_store: RelationshipStore) -> None:
        a, b, c, d = (make_entity(n) for n in "abcd")
        items = [
            NewRelationship(a.id, d.id, "calls"),
            NewRelationship(a.id, b.id, "extends"),
            NewRelationship(a.id, d.id, "calls"),
            NewRelationship(c.id, a.id, "implements"),
        ]
        created = relationship_store.create_batch(items)
        assert [r.triple for r in created] == [items[0].triple, items[1].triple, items[3].triple]

    def test_empty_batch(self, relationship_store: RelationshipStore) -> None:
        assert relationship_store.create_batch([]) == []

    def test_missing_endpoint_aborts_whole_batch(
        self, make_entity, relationship_store: RelationshipStore
    ) -> None:
        a, b = make_entity("a"), make_entity("b")
        with pytest.raises(StoreError) as exc_info:
            relationship_store.create_batch(
                [NewRelationship(a.id, b.id, "calls"), NewRelationship(a.id, "ghost", "calls")]
            )
        assert exc_info.value.code == ErrorCode.STORE_MISSING_ENDPOINT
        assert relationship_store.count() == 0

    def test_integrity_error_before_first_item_is_store_error(
        self, make_entity, relationship_store: RelationshipStore, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        a, b = make_entity("a"), make_entity("b")

        @contextmanager
        def broken_transaction(_session=None):
            raise IntegrityError("BEGIN", {}, Exception("database is locked"))
            yield  # pragma: no cover

        monkeypatch.setattr(relationship_store._db, "transaction", broken_transaction)
        with pytest.raises(StoreError) as exc_info:
            relationship_store.create_batch([NewRelationship(a.id, b.id, "calls")])
        assert exc_info.value.code == ErrorCode.STORE_CONSTRAINT_VIOLATION

    def test_uniqueness_across_mixed_calls(
        self, make_entity, relationship_store: RelationshipStore
    ) -> None:
        """At most one row per triple after any sequence of create/create_batch."""
        a, b = make_entity("a"), make_entity("b")
        relationship_store.create_batch([NewRelationship(a.id, b.id, "calls")])
        relationship_store.create_batch([NewRelationship(a.id, b.id, "calls")])
        with pytest.raises(StoreError):
            relationship_store.create(NewRelationship(a.id, b.id, "calls"))
        assert relationship_store.count() == 1


class TestFindAndDelete:
    def test_find_by_source_and_target(
        self, make_entity, link, relationship_store: RelationshipStore
    ) -> None:
        a, b, c = make_entity("a"), make_entity("b"), make_entity("c")
        link(a, b)
        link(a, c)
        link(c, b)
        assert {r.target_id for r in relationship_store.find_by_source(a.id)} == {b.id, c.id}
        assert {r.source_id for r in relationship_store.find_by_target(b.id)} == {a.id, c.id}

    def test_find_by_type(self, make_entity, link, relationship_store: RelationshipStore) -> None:
        a, b = make_entity("a"), make_entity("b")
        link(a, b, RelationshipType.EXTENDS)
        link(a, b, RelationshipType.CALLS)
        assert len(relationship_store.find_by_type("extends")) == 1

    def test_find_by_id_missing(self, relationship_store: RelationshipStore) -> None:
        assert relationship_store.find_by_id("nope") is None

    def test_delete(self, make_entity, link, relationship_store: RelationshipStore) -> None:
        rel = link(make_entity("a"), make_entity("b"))
        assert relationship_store.delete(rel.id) is True
        assert relationship_store.delete(rel.id) is False

    def test_delete_by_entity_both_directions(
        self, make_entity, link, relationship_store: RelationshipStore
    ) -> None:
        a, b, c = make_entity("a"), make_entity("b"), make_entity("c")
        link(a, b)
        link(b, c)
        link(a, c)
        assert relationship_store.delete_by_entity(b.id) == 2
        assert relationship_store.count() == 1

    def test_cascade_reflected_in_count(
        self, make_entity, link, entity_store: EntityStore, relationship_store: RelationshipStore
    ) -> None:
        a, b = make_entity("a"), make_entity("b")
        link(a, b)
        link(b, a)
        entity_store.delete(a.id)
        assert relationship_store.count() == 0

    def test_count_by_type_includes_zeros(
        self, make_entity, link, relationship_store: RelationshipStore
    ) -> None:
        a, b = make_entity("a"), make_entity("b")
        link(a, b)
        counts = relationship_store.count_by_type()
        assert counts == {"calls": 1, "extends": 0, "implements": 0, "imports": 0, "contains": 0}
