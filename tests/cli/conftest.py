"""CLI fixtures: an isolated repo directory with a seeded graph database."""

from __future__ import annotations

import os
from collections.abc import Iterator
from pathlib import Path

import pytest

from codegraph.config import loader
from codegraph.store.database import Database, open_database
from codegraph.store.entities import EntityStore
from codegraph.store.models import NewEntity, NewRelationship
from codegraph.store.relationships import RelationshipStore


@pytest.fixture(autouse=True)
def isolated_repo(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run every command from an empty repo with no global config."""
    repo = tmp_path / "repo"
    repo.mkdir()
    monkeypatch.setattr(loader, "GLOBAL_CONFIG_PATH", tmp_path / "global" / "config.yaml")
    for key in list(os.environ):
        if key.upper().startswith("CODEGRAPH__"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(repo)
    return repo


@pytest.fixture
def db_file(tmp_path: Path) -> Path:
    return tmp_path / "graph.db"


@pytest.fixture
def seeded_db(db_file: Path) -> Iterator[Path]:
    """math.ts defines add (exported) and calc; calc calls add; a/b form a loop."""
    db: Database = open_database(db_file)
    entities = EntityStore(db)
    relationships = RelationshipStore(db)

    def _entity(name: str, file_path: str, line: int, **metadata: object):
        return entities.create(
            NewEntity(
                type="function",
                name=name,
                file_path=file_path,
                start_line=line,
                end_line=line + 2,
                language="typescript",
                metadata=metadata or None,
            )
        )

    add = _entity("add", "/src/math.ts", 1, exported=True, signature="add(a, b)")
    calc = _entity("calc", "/src/math.ts", 10)
    a = _entity("ping", "/src/loop.ts", 1)
    b = _entity("pong", "/src/loop.ts", 10)
    relationships.create_batch(
        [
            NewRelationship(source_id=calc.id, target_id=add.id, type="calls"),
            NewRelationship(source_id=a.id, target_id=b.id, type="calls"),
            NewRelationship(source_id=b.id, target_id=a.id, type="calls"),
        ]
    )
    db.close()
    yield db_file
