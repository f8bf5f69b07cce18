"""Canonical exclude patterns for directory discovery.

Tier 0 (HARDCODED_DIRS): Never traversed, not user-configurable.
    - VCS internals, codegraph data directories

Tier 1 (DEFAULT_PRUNABLE_DIRS): Excluded by default.
    - Dependencies, caches, build outputs
    - Users can re-include one by listing "!dirname" in ``index.ignore``

The combined PRUNABLE_DIRS = HARDCODED_DIRS | DEFAULT_PRUNABLE_DIRS.
"""

from __future__ import annotations

from collections.abc import Iterable
from fnmatch import fnmatch

HARDCODED_DIRS: frozenset[str] = frozenset(
    (
        # VCS internals
        ".git",
        ".svn",
        ".hg",
        ".bzr",
        # codegraph data
        ".codegraph",
    )
)

DEFAULT_PRUNABLE_DIRS: frozenset[str] = frozenset(
    (
        # -------------------------------------------------------------------------
        # JavaScript/Node.js ecosystem
        # -------------------------------------------------------------------------
        "node_modules",
        ".npm",
        ".yarn",
        ".pnpm-store",
        "bower_components",
        ".next",  # Next.js build
        ".nuxt",  # Nuxt.js build
        ".turbo",  # Turborepo cache
        # -------------------------------------------------------------------------
        # Ruby ecosystem
        # -------------------------------------------------------------------------
        ".bundle",
        "vendor",
        # -------------------------------------------------------------------------
        # Python tooling that tends to live next to JS/Ruby projects
        # -------------------------------------------------------------------------
        "venv",
        ".venv",
        "__pycache__",
        # -------------------------------------------------------------------------
        # Generic build/output directories
        # -------------------------------------------------------------------------
        "dist",
        "build",
        "out",
        "coverage",
        ".nyc_output",
        "tmp",
        # -------------------------------------------------------------------------
        # IDE/Editor directories
        # -------------------------------------------------------------------------
        ".idea",
        ".vscode",
        ".cache",
    )
)

PRUNABLE_DIRS: frozenset[str] = HARDCODED_DIRS | DEFAULT_PRUNABLE_DIRS


def is_hardcoded_dir(dirname: str) -> bool:
    """Check if directory is hardcoded (never traversable, not overridable)."""
    return dirname in HARDCODED_DIRS


def should_prune_dir(dirname: str, ignore: Iterable[str] = ()) -> bool:
    """Decide whether discovery should skip a directory by name.

    ``ignore`` holds gitignore-flavoured globs: ``name`` or ``name/`` adds a
    directory, ``!name`` re-includes a default-prunable one.
    """
    if is_hardcoded_dir(dirname):
        return True
    patterns = [p.rstrip("/") for p in ignore]
    if f"!{dirname}" in patterns:
        return False
    if dirname in DEFAULT_PRUNABLE_DIRS:
        return True
    return any(not p.startswith("!") and fnmatch(dirname, p) for p in patterns)


def is_ignored_path(rel_path: str, ignore: Iterable[str] = ()) -> bool:
    """Check a POSIX relative file path against ignore globs."""
    name = rel_path.rsplit("/", 1)[-1]
    for pattern in ignore:
        if pattern.startswith("!") or pattern.endswith("/"):
            continue
        if fnmatch(rel_path, pattern) or fnmatch(name, pattern):
            return True
    return False
