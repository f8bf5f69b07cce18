"""Tests for typed metadata views."""

from codegraph.store.metadata import (
    ClassMetadata,
    FunctionMetadata,
    GenericMetadata,
    MethodMetadata,
    export_type,
    is_exported,
    parse_entity_metadata,
    parse_relationship_metadata,
)


class TestParseEntityMetadata:
    def test_function_fields_and_aliases(self) -> None:
        meta = parse_entity_metadata(
            "function", {"exported": True, "async": True, "parameters": ["a"], "custom": 1}
        )
        assert isinstance(meta, FunctionMetadata)
        assert meta.is_async is True
        assert meta.is_public
        assert meta.model_extra == {"custom": 1}

    def test_method(self) -> None:
        meta = parse_entity_metadata("method", {"className": "Calc", "static": True})
        assert isinstance(meta, MethodMetadata)
        assert meta.class_name == "Calc"
        assert meta.is_static

    def test_class(self) -> None:
        meta = parse_entity_metadata("class", {"extends": "Base", "implements": ["I"]})
        assert isinstance(meta, ClassMetadata)
        assert meta.extends == "Base"

    def test_untyped_kind_falls_back_to_generic(self) -> None:
        assert isinstance(parse_entity_metadata("variable", {"x": 1}), GenericMetadata)

    def test_invalid_values_fall_back_to_generic(self) -> None:
        meta = parse_entity_metadata("function", {"parameters": "not-a-list"})
        assert isinstance(meta, GenericMetadata)

    def test_none(self) -> None:
        assert isinstance(parse_entity_metadata("function", None), FunctionMetadata)


class TestRelationshipMetadata:
    def test_call(self) -> None:
        meta = parse_relationship_metadata("calls", {"line": 3, "receiver": "self"})
        assert meta.line == 3  # type: ignore[attr-defined]


class TestExportHelpers:
    def test_both_spellings(self) -> None:
        assert is_exported({"exported": True})
        assert is_exported({"isExported": True})
        assert not is_exported({"exported": False})
        assert not is_exported({})

    def test_export_type_defaults_to_named(self) -> None:
        assert export_type({}) == "named"
        assert export_type({"exportType": "default"}) == "default"
