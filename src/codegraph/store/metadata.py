"""Typed views over the open metadata bags stored on entities and edges.

Each entity/relationship kind has a pydantic model for the fields the
extractors are known to emit. Unknown keys are kept (``extra="allow"``),
so extractor-specific fields survive a round trip.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from codegraph.core.logging import get_logger
from codegraph.store.models import EntityType, RelationshipType

log = get_logger("store.metadata")

ExportType = Literal["default", "named"]


class _OpenMetadata(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)


class GenericMetadata(_OpenMetadata):
    """Fallback for kinds without a dedicated model."""


class _Exportable(_OpenMetadata):
    exported: bool | None = None
    is_exported: bool | None = Field(default=None, alias="isExported")
    export_type: ExportType | None = Field(default=None, alias="exportType")

    @property
    def is_public(self) -> bool:
        return bool(self.exported or self.is_exported)


class FunctionMetadata(_Exportable):
    signature: str | None = None
    parameters: list[str] = Field(default_factory=list)
    is_async: bool = Field(default=False, alias="async")
    return_type: str | None = Field(default=None, alias="returnType")


class MethodMetadata(FunctionMetadata):
    class_name: str | None = Field(default=None, alias="className")
    is_static: bool = Field(default=False, alias="static")
    visibility: str | None = None


class ClassMetadata(_Exportable):
    extends: str | None = None
    implements: list[str] = Field(default_factory=list)
    is_abstract: bool = Field(default=False, alias="abstract")


class ModuleMetadata(_Exportable):
    kind: str | None = None


class CallMetadata(_OpenMetadata):
    line: int | None = None
    receiver: str | None = None


class ImportMetadata(_OpenMetadata):
    source: str | None = None
    specifiers: list[str] = Field(default_factory=list)


_ENTITY_MODELS: dict[str, type[_OpenMetadata]] = {
    EntityType.FUNCTION.value: FunctionMetadata,
    EntityType.METHOD.value: MethodMetadata,
    EntityType.CLASS.value: ClassMetadata,
    EntityType.MODULE.value: ModuleMetadata,
}

_RELATIONSHIP_MODELS: dict[str, type[_OpenMetadata]] = {
    RelationshipType.CALLS.value: CallMetadata,
    RelationshipType.IMPORTS.value: ImportMetadata,
}


def _parse(model: type[_OpenMetadata], raw: dict[str, Any] | None, kind: str) -> _OpenMetadata:
    try:
        return model.model_validate(raw or {})
    except ValidationError as e:
        log.warning("metadata_invalid", kind=kind, errors=e.error_count())
        return GenericMetadata.model_validate(raw or {})


def parse_entity_metadata(entity_type: EntityType | str, raw: dict[str, Any] | None) -> _OpenMetadata:
    """Return the typed view for an entity's metadata bag.

    Values that do not fit the typed model fall back to GenericMetadata.
    """
    kind = EntityType(entity_type).value
    return _parse(_ENTITY_MODELS.get(kind, GenericMetadata), raw, kind)


def parse_relationship_metadata(
    rel_type: RelationshipType | str, raw: dict[str, Any] | None
) -> _OpenMetadata:
    kind = RelationshipType(rel_type).value
    return _parse(_RELATIONSHIP_MODELS.get(kind, GenericMetadata), raw, kind)


def is_exported(metadata: dict[str, Any]) -> bool:
    """Both ``exported`` and ``isExported`` spellings mark an export."""
    return metadata.get("exported") is True or metadata.get("isExported") is True


def export_type(metadata: dict[str, Any]) -> ExportType:
    return "default" if metadata.get("exportType") == "default" else "named"
