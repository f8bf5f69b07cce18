"""Exported entities of a file."""

from __future__ import annotations

from typing import TYPE_CHECKING

from codegraph.queries.results import ExportedEntity, ExportsResult
from codegraph.store.entities import EntityStore
from codegraph.store.metadata import export_type, is_exported

if TYPE_CHECKING:
    from codegraph.store.database import Database


def get_exports(db: Database, file_path: str) -> ExportsResult:
    """Entities in ``file_path`` whose metadata marks them exported.

    ``export_type`` defaults to ``named`` when the extractor did not say.
    """
    result = ExportsResult(file_path=file_path)
    for entity in EntityStore(db).find_by_file(file_path):
        metadata = entity.get_metadata()
        if not is_exported(metadata):
            continue
        signature = metadata.get("signature")
        result.exports.append(
            ExportedEntity(
                entity=entity,
                export_type=export_type(metadata),
                signature=signature if isinstance(signature, str) else None,
            )
        )
    return result
