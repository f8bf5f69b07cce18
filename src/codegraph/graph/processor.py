"""Per-file pipeline: read, parse, extract, replace the file's subgraph.

Candidate relationships name their endpoints because ids only exist once
entities are stored. Resolution is therefore two-phase: store entities
while filling a NameIndex, then resolve each candidate edge through it.

An edge whose source is defined in the file but whose target is not is
staged in ``pending_edges`` for CrossFileLinker to resolve against the
whole graph. An edge whose source is unknown is dropped.

The delete of the previous entities, the new entities, the resolved
edges and the staged ones are written in one transaction, so readers
never observe a file with entities but no edges.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import TYPE_CHECKING, Any

from codegraph.core.logging import get_logger
from codegraph.store.entities import EntityStore
from codegraph.store.incremental import compute_file_hash
from codegraph.store.models import NewPendingEdge, NewRelationship, RelationshipType
from codegraph.store.pending import PendingEdgeStore
from codegraph.store.relationships import RelationshipStore

if TYPE_CHECKING:
    from codegraph.parsing.contracts import (
        CandidateEntity,
        CandidateRelationship,
        GraphExtractor,
        SourceParser,
    )
    from codegraph.store.database import Database
    from codegraph.store.models import Entity, Relationship

log = get_logger("graph.processor")


class NameIndex:
    """Name -> entity id map for one file.

    Last write wins: when two entities in a file share a name, the one
    stored later owns the name and the clash is remembered.
    """

    def __init__(self) -> None:
        self._ids: dict[str, str] = {}
        self.collisions: list[str] = []

    def add(self, name: str, entity_id: str) -> None:
        if name in self._ids and name not in self.collisions:
            self.collisions.append(name)
        self._ids[name] = entity_id

    def resolve(self, name: str) -> str | None:
        return self._ids.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._ids

    def __len__(self) -> int:
        return len(self._ids)


@dataclass
class FileProcessResult:
    """Outcome of processing one file."""

    file_path: str
    file_hash: str | None = None
    language: str | None = None
    entities: list[Entity] = field(default_factory=list)
    relationships: list[Relationship] = field(default_factory=list)
    success: bool = False
    error: str | None = None
    name_collisions: list[str] = field(default_factory=list)
    unresolved_relationships: int = 0
    staged_relationships: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "file_path": self.file_path,
            "file_hash": self.file_hash,
            "language": self.language,
            "entities": len(self.entities),
            "relationships": len(self.relationships),
            "success": self.success,
            "error": self.error,
            "name_collisions": self.name_collisions,
            "unresolved_relationships": self.unresolved_relationships,
            "staged_relationships": self.staged_relationships,
        }


def _default_parser() -> SourceParser:
    from codegraph.parsing.treesitter import TreeSitterParser

    return TreeSitterParser()


def _default_extractor() -> GraphExtractor:
    from codegraph.parsing.treesitter import TreeSitterExtractor

    return TreeSitterExtractor()


class FileProcessor:
    """Turns one source file into stored entities and relationships.

    Parser and extractor are injectable; the tree-sitter implementations
    are loaded on first use when none are given.
    """

    def __init__(
        self,
        db: Database,
        parser: SourceParser | None = None,
        extractor: GraphExtractor | None = None,
    ) -> None:
        self._db = db
        self._parser = parser
        self._extractor = extractor
        self.entities = EntityStore(db)
        self.relationships = RelationshipStore(db)
        self.pending = PendingEdgeStore(db)

    @property
    def parser(self) -> SourceParser:
        if self._parser is None:
            self._parser = _default_parser()
        return self._parser

    @property
    def extractor(self) -> GraphExtractor:
        if self._extractor is None:
            self._extractor = _default_extractor()
        return self._extractor

    def process_file(self, path: Path | str, content: str | None = None) -> FileProcessResult:
        """Parse ``path`` and replace its entities in the graph.

        Read and parse failures return ``success=False`` without touching
        the store. Store failures propagate after the transaction rolls back.
        """
        path = Path(path)
        file_path = str(path)
        result = FileProcessResult(file_path=file_path)

        if content is None:
            try:
                content = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                result.error = f"Cannot read file: {e}"
                log.debug("file_read_failed", path=file_path, error=str(e))
                return result
        result.file_hash = compute_file_hash(content)

        outcome = self.parser.parse_file(path, content)
        if not outcome.success:
            result.error = outcome.error or "parse failed"
            log.debug("file_parse_failed", path=file_path, error=result.error)
            return result
        language = outcome.language or ""
        result.language = language

        candidates = self.extractor.extract_entities(outcome.root, file_path, language)
        edges = self.extractor.extract_relationships(outcome.root, language)

        with self._db.transaction() as session:
            self.entities.delete_by_file(file_path, session=session)
            names = NameIndex()
            for candidate in candidates:
                entity = self.entities.create(self._bind_to_file(candidate, file_path), session=session)
                result.entities.append(entity)
                names.add(entity.name, entity.id)

            resolved, staged = self._resolve(edges, names)
            result.unresolved_relationships = len(edges) - len(resolved)
            result.relationships = self.relationships.create_batch(resolved, session=session)
            result.staged_relationships = self.pending.stage(staged, session=session)

        result.name_collisions = names.collisions
        if names.collisions:
            log.debug("name_collisions", path=file_path, names=names.collisions)
        result.success = True
        log.debug(
            "file_processed",
            path=file_path,
            entities=len(result.entities),
            relationships=len(result.relationships),
            unresolved=result.unresolved_relationships,
            staged=result.staged_relationships,
        )
        return result

    @staticmethod
    def _bind_to_file(candidate: CandidateEntity, file_path: str) -> CandidateEntity:
        if candidate.file_path == file_path:
            return candidate
        return replace(candidate, file_path=file_path)

    @staticmethod
    def _resolve(
        edges: list[CandidateRelationship], names: NameIndex
    ) -> tuple[list[NewRelationship], list[NewPendingEdge]]:
        resolved: list[NewRelationship] = []
        staged: list[NewPendingEdge] = []
        for edge in edges:
            source_id = names.resolve(edge.source_name)
            if source_id is None:
                continue
            target_id = names.resolve(edge.target_name)
            if target_id is None:
                staged.append(
                    NewPendingEdge(
                        source_id=source_id,
                        target_name=edge.target_name,
                        type=RelationshipType(edge.type),
                        metadata=edge.metadata,
                    )
                )
                continue
            resolved.append(
                NewRelationship(
                    source_id=source_id,
                    target_id=target_id,
                    type=RelationshipType(edge.type),
                    metadata=edge.metadata,
                )
            )
        return resolved, staged
