"""Tree-sitter parser and graph extractors for TypeScript/JavaScript and Ruby.

Traversal is iterative (explicit stack) so deeply nested files cannot hit
the interpreter's recursion limit. Each stack frame carries the enclosing
class and function names, which is all the extractors need for methods,
``contains`` edges and call attribution.

Extraction is syntactic: callees are recorded by name (identifier or
member property), never resolved to a definition here.
"""

from __future__ import annotations

import importlib
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import tree_sitter

from codegraph.core.languages import detect_language
from codegraph.core.logging import get_logger
from codegraph.parsing.contracts import CandidateEntity, CandidateRelationship, ParseOutcome
from codegraph.store.metadata import parse_entity_metadata, parse_relationship_metadata
from codegraph.store.models import EntityType, RelationshipType

log = get_logger("parsing.treesitter")

# language -> (grammar module, language function)
GRAMMARS: dict[str, tuple[str, str]] = {
    "typescript": ("tree_sitter_typescript", "language_typescript"),
    "tsx": ("tree_sitter_typescript", "language_tsx"),
    "javascript": ("tree_sitter_javascript", "language"),
    "ruby": ("tree_sitter_ruby", "language"),
}

_JS_LANGUAGES = frozenset({"typescript", "tsx", "javascript"})

_JS_FUNCTION_DECLS = frozenset({"function_declaration", "generator_function_declaration"})
_JS_FUNCTION_VALUES = frozenset(
    {"arrow_function", "function_expression", "function", "generator_function"}
)
_JS_CLASS_DECLS = frozenset({"class_declaration", "abstract_class_declaration", "class"})
_JS_VARIABLE_DECLS = frozenset({"lexical_declaration", "variable_declaration"})


def _text(node: Any) -> str:
    if node is None or not node.text:
        return ""
    return str(node.text.decode("utf-8", errors="replace"))


def _field_text(node: Any, name: str) -> str:
    return _text(node.child_by_field_name(name))


def _lines(node: Any) -> tuple[int, int]:
    return node.start_point[0] + 1, node.end_point[0] + 1


@dataclass
class _Frame:
    node: Any
    class_name: str | None = None
    function_name: str | None = None


def _walk(root: Any, scope_of: Any) -> Iterator[_Frame]:
    """Pre-order walk yielding each node with its enclosing scope names.

    ``scope_of(frame)`` returns the (class_name, function_name) pair that
    the node's children inherit.
    """
    stack = [_Frame(root)]
    while stack:
        frame = stack.pop()
        yield frame
        class_name, function_name = scope_of(frame)
        stack.extend(
            _Frame(child, class_name, function_name) for child in reversed(frame.node.children)
        )


@dataclass
class TreeSitterParser:
    """
    Tree-sitter parser for the supported languages.

    Grammars load lazily on first use and are cached per language.

    Usage::

        parser = TreeSitterParser()
        outcome = parser.parse_file(Path("src/math.ts"))
        if outcome.success:
            root = outcome.root
    """

    _parser: Any = field(default=None, repr=False)
    _languages: dict[str, Any] = field(default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        self._parser = tree_sitter.Parser()
        self._languages = {}

    def _get_language(self, lang_name: str) -> Any:
        if lang_name in self._languages:
            return self._languages[lang_name]
        if lang_name not in GRAMMARS:
            raise ValueError(f"Language not available: {lang_name}")
        module_name, func_name = GRAMMARS[lang_name]
        try:
            mod = importlib.import_module(module_name)
            lang = tree_sitter.Language(getattr(mod, func_name)())
        except (ImportError, AttributeError) as err:
            raise ValueError(f"Language not available: {lang_name}") from err
        self._languages[lang_name] = lang
        return lang

    def parse_source(self, source_code: str, language: str, file_path: str = "<memory>") -> ParseOutcome:
        """Parse in-memory source for a known language."""
        try:
            self._parser.language = self._get_language(language)
        except ValueError as e:
            return ParseOutcome.failed(file_path, str(e))
        tree = self._parser.parse(source_code.encode("utf-8"))
        if tree.root_node.has_error:
            log.debug("parse_has_errors", path=file_path, language=language)
        return ParseOutcome.ok(file_path, tree, language, source_code)

    def parse_file(self, path: Path, content: str | None = None) -> ParseOutcome:
        """Parse a file, reading it from disk unless ``content`` is given."""
        file_path = str(path)
        language = detect_language(path)
        if language is None:
            return ParseOutcome.failed(file_path, f"Unsupported file type: {path.suffix or path.name}")
        if content is None:
            try:
                content = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                return ParseOutcome.failed(file_path, f"Cannot read file: {e}")
        return self.parse_source(content, language, file_path)


class TreeSitterExtractor:
    """Extracts entities and name-based relationships from tree-sitter trees.

    Metadata bags are passed through the typed models in
    ``codegraph.store.metadata`` before they leave the extractor, so stored
    values are coerced to the documented field types.
    """

    def extract_entities(self, root: Any, file_path: str, language: str) -> list[CandidateEntity]:
        if language in _JS_LANGUAGES:
            found = _JsExtraction(language).entities(root, file_path)
        elif language == "ruby":
            found = _RubyExtraction().entities(root, file_path)
        else:
            return []
        for candidate in found:
            typed = parse_entity_metadata(candidate.type, candidate.metadata)
            candidate.metadata = typed.model_dump(by_alias=True, exclude_none=True) or None
        return found

    def extract_relationships(self, root: Any, language: str) -> list[CandidateRelationship]:
        if language in _JS_LANGUAGES:
            found = _JsExtraction(language).relationships(root)
        elif language == "ruby":
            found = _RubyExtraction().relationships(root)
        else:
            return []
        for edge in found:
            if edge.metadata:
                typed = parse_relationship_metadata(edge.type, edge.metadata)
                edge.metadata = typed.model_dump(by_alias=True, exclude_none=True)
        return found


# =============================================================================
# TypeScript / JavaScript
# =============================================================================


class _JsExtraction:
    def __init__(self, language: str) -> None:
        self.language = language

    @staticmethod
    def _function_name(node: Any) -> str | None:
        if node.type in _JS_FUNCTION_DECLS or node.type == "method_definition":
            return _field_text(node, "name") or None
        if node.type in _JS_FUNCTION_VALUES:
            parent = node.parent
            if parent is not None and parent.type == "variable_declarator":
                return _field_text(parent, "name") or None
        return None

    def _scope_of(self, frame: _Frame) -> tuple[str | None, str | None]:
        node = frame.node
        if node.type in _JS_CLASS_DECLS:
            return _field_text(node, "name") or frame.class_name, None
        # Anonymous callbacks stay attributed to the enclosing function
        name = self._function_name(node)
        if name is not None:
            return frame.class_name, name
        return frame.class_name, frame.function_name

    @staticmethod
    def _export_info(node: Any) -> dict[str, Any]:
        current = node.parent
        while current is not None and current.type in _JS_VARIABLE_DECLS | {"variable_declarator"}:
            current = current.parent
        if current is None or current.type != "export_statement":
            return {"exported": False}
        is_default = any(child.type == "default" for child in current.children)
        return {"exported": True, "exportType": "default" if is_default else "named"}

    @staticmethod
    def _signature(node: Any) -> str:
        body = node.child_by_field_name("body")
        if body is None:
            return _text(node).split("\n", 1)[0].strip()
        raw = node.text[: body.start_byte - node.start_byte]
        return " ".join(raw.decode("utf-8", errors="replace").split())

    @staticmethod
    def _parameters(node: Any) -> list[str]:
        params = node.child_by_field_name("parameters")
        if params is None:
            single = node.child_by_field_name("parameter")
            return [_text(single)] if single is not None else []
        names = []
        for child in params.named_children:
            pattern = child.child_by_field_name("pattern")
            names.append(_text(pattern) if pattern is not None else _text(child))
        return [n for n in names if n]

    def _function_metadata(self, node: Any) -> dict[str, Any]:
        meta: dict[str, Any] = {
            "async": any(child.type == "async" for child in node.children),
            "parameters": self._parameters(node),
            "signature": self._signature(node),
        }
        return_type = node.child_by_field_name("return_type")
        if return_type is not None:
            meta["returnType"] = _text(return_type).lstrip(":").strip()
        return meta

    def entities(self, root: Any, file_path: str) -> list[CandidateEntity]:
        found: list[CandidateEntity] = []

        def add(kind: EntityType, name: str, node: Any, metadata: dict[str, Any]) -> None:
            start, end = _lines(node)
            found.append(
                CandidateEntity(
                    type=kind,
                    name=name,
                    file_path=file_path,
                    start_line=start,
                    end_line=end,
                    language=self.language,
                    metadata=metadata,
                )
            )

        for frame in _walk(root, self._scope_of):
            node = frame.node
            kind = node.type
            if kind in _JS_FUNCTION_DECLS:
                name = _field_text(node, "name")
                if name:
                    meta = {**self._export_info(node), **self._function_metadata(node)}
                    meta["generator"] = kind == "generator_function_declaration"
                    add(EntityType.FUNCTION, name, node, meta)
            elif kind == "variable_declarator":
                value = node.child_by_field_name("value")
                name = _field_text(node, "name")
                if value is not None and value.type in _JS_FUNCTION_VALUES and name:
                    meta = {
                        **self._export_info(node),
                        **self._function_metadata(value),
                        "arrowFunction": value.type == "arrow_function",
                    }
                    add(EntityType.FUNCTION, name, node, meta)
            elif kind in _JS_CLASS_DECLS:
                name = _field_text(node, "name")
                if name:
                    meta = {**self._export_info(node), **self._heritage(node)}
                    meta["abstract"] = kind == "abstract_class_declaration"
                    add(EntityType.CLASS, name, node, meta)
            elif kind == "method_definition":
                name = _field_text(node, "name")
                if name:
                    meta = self._function_metadata(node)
                    meta["className"] = frame.class_name
                    meta["static"] = any(child.type == "static" for child in node.children)
                    modifier = next(
                        (c for c in node.children if c.type == "accessibility_modifier"), None
                    )
                    if modifier is not None:
                        meta["visibility"] = _text(modifier)
                    add(EntityType.METHOD, name, node, meta)
            elif kind == "interface_declaration":
                name = _field_text(node, "name")
                if name:
                    add(EntityType.TYPE, name, node, {**self._export_info(node), "kind": "interface"})
            elif kind == "type_alias_declaration":
                name = _field_text(node, "name")
                if name:
                    add(EntityType.TYPE, name, node, {**self._export_info(node), "kind": "type_alias"})
        return found

    @staticmethod
    def _heritage_nodes(class_node: Any) -> tuple[list[Any], list[Any]]:
        """Return (extends targets, implements targets) for a class node."""
        extends: list[Any] = []
        implements: list[Any] = []
        heritage = next((c for c in class_node.children if c.type == "class_heritage"), None)
        if heritage is None:
            return extends, implements
        for child in heritage.children:
            if child.type == "extends_clause":
                value = child.child_by_field_name("value")
                if value is not None:
                    extends.append(value)
            elif child.type == "implements_clause":
                implements.extend(child.named_children)
        if not extends and not implements:
            # JavaScript grammar: class_heritage is "extends" <expression>
            extends.extend(heritage.named_children)
        return extends, implements

    @staticmethod
    def _type_name(node: Any) -> str:
        if node.type in ("generic_type", "nested_type_identifier"):
            inner = node.child_by_field_name("name")
            if inner is not None:
                return _text(inner)
        if node.type == "member_expression":
            return _field_text(node, "property")
        return _text(node)

    def _heritage(self, class_node: Any) -> dict[str, Any]:
        extends, implements = self._heritage_nodes(class_node)
        meta: dict[str, Any] = {}
        if extends:
            meta["extends"] = self._type_name(extends[0])
        if implements:
            meta["implements"] = [self._type_name(n) for n in implements]
        return meta

    @staticmethod
    def _callee_name(call: Any) -> str | None:
        target = call.child_by_field_name("function")
        if target is None:
            return None
        if target.type == "identifier":
            return _text(target)
        if target.type == "member_expression":
            return _field_text(target, "property") or None
        return None

    def relationships(self, root: Any) -> list[CandidateRelationship]:
        found: list[CandidateRelationship] = []
        for frame in _walk(root, self._scope_of):
            node = frame.node
            if node.type in _JS_CLASS_DECLS:
                class_name = _field_text(node, "name")
                if not class_name:
                    continue
                extends, implements = self._heritage_nodes(node)
                for parent in extends:
                    found.append(
                        CandidateRelationship(class_name, self._type_name(parent), RelationshipType.EXTENDS)
                    )
                for iface in implements:
                    found.append(
                        CandidateRelationship(class_name, self._type_name(iface), RelationshipType.IMPLEMENTS)
                    )
            elif node.type == "interface_declaration":
                name = _field_text(node, "name")
                clause = next(
                    (c for c in node.children if c.type in ("extends_type_clause", "extends_clause")),
                    None,
                )
                if name and clause is not None:
                    for parent in clause.named_children:
                        found.append(
                            CandidateRelationship(name, self._type_name(parent), RelationshipType.EXTENDS)
                        )
            elif node.type == "method_definition" and frame.class_name:
                name = _field_text(node, "name")
                if name:
                    found.append(
                        CandidateRelationship(frame.class_name, name, RelationshipType.CONTAINS)
                    )
            elif node.type == "call_expression" and frame.function_name:
                callee = self._callee_name(node)
                if callee:
                    found.append(
                        CandidateRelationship(
                            frame.function_name,
                            callee,
                            RelationshipType.CALLS,
                            {"line": node.start_point[0] + 1},
                        )
                    )
        return found


# =============================================================================
# Ruby
# =============================================================================

_RUBY_SCOPES = frozenset({"class", "module"})
_RUBY_METHODS = frozenset({"method", "singleton_method"})
_RUBY_MIXINS = frozenset({"include", "extend", "prepend"})


class _RubyExtraction:
    @staticmethod
    def _scope_of(frame: _Frame) -> tuple[str | None, str | None]:
        node = frame.node
        if node.type in _RUBY_SCOPES:
            return _field_text(node, "name") or frame.class_name, None
        if node.type in _RUBY_METHODS:
            return frame.class_name, _field_text(node, "name") or frame.function_name
        return frame.class_name, frame.function_name

    @staticmethod
    def _superclass(node: Any) -> str | None:
        superclass = node.child_by_field_name("superclass")
        if superclass is None or not superclass.named_children:
            return None
        return _text(superclass.named_children[-1])

    @staticmethod
    def _parameters(node: Any) -> list[str]:
        params = node.child_by_field_name("parameters")
        if params is None:
            return []
        return [_text(p) for p in params.named_children]

    def entities(self, root: Any, file_path: str) -> list[CandidateEntity]:
        found: list[CandidateEntity] = []
        for frame in _walk(root, self._scope_of):
            node = frame.node
            name = _field_text(node, "name") if node.type in _RUBY_SCOPES | _RUBY_METHODS else ""
            if not name:
                continue
            start, end = _lines(node)
            if node.type == "class":
                kind = EntityType.CLASS
                meta: dict[str, Any] = {}
                if superclass := self._superclass(node):
                    meta["extends"] = superclass
            elif node.type == "module":
                kind = EntityType.MODULE
                meta = {"kind": "module"}
            else:
                kind = EntityType.METHOD if frame.class_name else EntityType.FUNCTION
                meta = {
                    "parameters": self._parameters(node),
                    "static": node.type == "singleton_method",
                    "signature": _text(node).split("\n", 1)[0].strip(),
                }
                if frame.class_name:
                    meta["className"] = frame.class_name
            found.append(
                CandidateEntity(
                    type=kind,
                    name=name,
                    file_path=file_path,
                    start_line=start,
                    end_line=end,
                    language="ruby",
                    metadata=meta,
                )
            )
        return found

    def relationships(self, root: Any) -> list[CandidateRelationship]:
        found: list[CandidateRelationship] = []
        for frame in _walk(root, self._scope_of):
            node = frame.node
            if node.type == "class":
                name = _field_text(node, "name")
                superclass = self._superclass(node)
                if name and superclass:
                    found.append(CandidateRelationship(name, superclass, RelationshipType.EXTENDS))
            elif node.type in _RUBY_METHODS and frame.class_name:
                name = _field_text(node, "name")
                if name:
                    found.append(CandidateRelationship(frame.class_name, name, RelationshipType.CONTAINS))
            elif node.type == "call":
                method = _field_text(node, "method")
                context = frame.function_name or frame.class_name
                if not method or not context:
                    continue
                if method in _RUBY_MIXINS:
                    if frame.function_name or not frame.class_name:
                        continue
                    arguments = node.child_by_field_name("arguments")
                    for arg in arguments.named_children if arguments is not None else []:
                        if arg.type in ("constant", "scope_resolution"):
                            found.append(
                                CandidateRelationship(
                                    frame.class_name,
                                    _text(arg),
                                    RelationshipType.IMPLEMENTS,
                                    {"operation": method},
                                )
                            )
                elif frame.function_name:
                    receiver = node.child_by_field_name("receiver")
                    found.append(
                        CandidateRelationship(
                            frame.function_name,
                            method,
                            RelationshipType.CALLS,
                            {"receiver": _text(receiver) if receiver is not None else "self"},
                        )
                    )
        return found
