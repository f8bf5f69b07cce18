"""Contracts between the graph pipeline and language parsers/extractors.

The pipeline never looks inside an AST. Parsers hand back an opaque tree;
extractors turn that tree into candidate entities (full records) and
candidate relationships that name their endpoints, since ids do not exist
until the entities are stored.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from codegraph.store.models import NewEntity, RelationshipType

# Extractors produce exactly the records the entity store accepts
CandidateEntity = NewEntity


@dataclass
class CandidateRelationship:
    """Edge whose endpoints are still names, not ids."""

    source_name: str
    target_name: str
    type: RelationshipType | str
    metadata: dict[str, Any] | None = None


@dataclass
class ParseOutcome:
    """Result of parsing one file: either a tree or an error message."""

    success: bool
    file_path: str
    tree: Any = None
    language: str | None = None
    source_code: str | None = None
    error: str | None = None

    @property
    def root(self) -> Any:
        return getattr(self.tree, "root_node", self.tree)

    @classmethod
    def ok(cls, file_path: str, tree: Any, language: str, source_code: str) -> ParseOutcome:
        return cls(
            success=True,
            file_path=file_path,
            tree=tree,
            language=language,
            source_code=source_code,
        )

    @classmethod
    def failed(cls, file_path: str, error: str) -> ParseOutcome:
        return cls(success=False, file_path=file_path, error=error)


@runtime_checkable
class SourceParser(Protocol):
    """Turns a file into a syntax tree."""

    def parse_file(self, path: Path, content: str | None = None) -> ParseOutcome: ...


@runtime_checkable
class GraphExtractor(Protocol):
    """Turns a syntax tree into candidate entities and relationships."""

    def extract_entities(self, root: Any, file_path: str, language: str) -> list[CandidateEntity]: ...

    def extract_relationships(self, root: Any, language: str) -> list[CandidateRelationship]: ...

