"""Canonical language definitions for the languages the graph understands.

This module defines the authoritative mapping of:
- File extensions → language names
- Language names → tree-sitter grammar names
- Test file patterns

Design decisions:
1. The language tag stored on an entity is the grammar-level name
   ("typescript", "tsx", "javascript", "ruby"), since TSX needs its own grammar
2. Extensions are case-insensitive (normalized to lowercase during lookup)
3. Compound suffixes (".d.ts") are checked before simple suffixes
"""

from __future__ import annotations

from dataclasses import dataclass
from fnmatch import fnmatch
from pathlib import Path


@dataclass(frozen=True, slots=True)
class Language:
    """Canonical definition for a language name.

    Attributes:
        name: Unique identifier (lowercase, e.g., "typescript", "ruby")
        extensions: File extensions including dot (e.g., ".ts", ".rb")
        grammar: Tree-sitter grammar name
        test_patterns: Glob patterns for test files
    """

    name: str
    extensions: frozenset[str]
    grammar: str
    test_patterns: tuple[str, ...] = ()


ALL_LANGUAGES: tuple[Language, ...] = (
    Language(
        name="typescript",
        extensions=frozenset({".ts", ".mts", ".cts"}),
        grammar="typescript",
        test_patterns=("*.test.ts", "*.spec.ts", "*_test.ts", "*_spec.ts"),
    ),
    Language(
        name="tsx",
        extensions=frozenset({".tsx"}),
        grammar="tsx",
        test_patterns=("*.test.tsx", "*.spec.tsx"),
    ),
    Language(
        name="javascript",
        extensions=frozenset({".js", ".jsx", ".mjs", ".cjs"}),
        grammar="javascript",
        test_patterns=("*.test.js", "*.spec.js", "*.test.jsx", "*.spec.jsx", "*_test.js"),
    ),
    Language(
        name="ruby",
        extensions=frozenset({".rb", ".rake"}),
        grammar="ruby",
        test_patterns=("*_spec.rb", "*_test.rb"),
    ),
)

LANGUAGES_BY_NAME: dict[str, Language] = {lang.name: lang for lang in ALL_LANGUAGES}

EXTENSION_TO_NAME: dict[str, str] = {
    ext: lang.name for lang in ALL_LANGUAGES for ext in lang.extensions
}

# Declaration files carry no bodies worth indexing
_SKIPPED_COMPOUND_SUFFIXES: tuple[str, ...] = (".d.ts", ".d.mts", ".d.cts")

# Directory segments that mark a whole subtree as tests
_TEST_DIR_SEGMENTS: frozenset[str] = frozenset({"__tests__", "test", "tests", "spec"})


def detect_language(path: str | Path) -> str | None:
    """Detect the language name for a file path.

    Returns:
        Language name, or None for unknown or skipped files.
    """
    p = Path(path) if isinstance(path, str) else path
    name_lower = p.name.lower()
    if name_lower.endswith(_SKIPPED_COMPOUND_SUFFIXES):
        return None
    return EXTENSION_TO_NAME.get(p.suffix.lower())


def get_grammar_name(name: str) -> str | None:
    """Get tree-sitter grammar name for a language name."""
    return LANGUAGES_BY_NAME[name].grammar if name in LANGUAGES_BY_NAME else None


def get_all_indexable_extensions() -> set[str]:
    """Get all known file extensions."""
    return set(EXTENSION_TO_NAME.keys())


def is_test_file(path: str | Path) -> bool:
    """Check if a file path looks like a test file.

    Matches the filename against every language's ``test_patterns`` and
    any directory segment against well-known test directories
    (``__tests__/``, ``test/``, ``tests/``, ``spec/``).
    """
    p = Path(path) if isinstance(path, str) else path
    name = p.name
    if any(part in _TEST_DIR_SEGMENTS for part in p.parts[:-1]):
        return True
    return any(
        fnmatch(name, pattern) for lang in ALL_LANGUAGES for pattern in lang.test_patterns
    )
