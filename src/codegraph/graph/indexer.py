"""Directory-level indexing on top of the per-file pipeline.

For each discovered file: hash it, ask the IncrementalUpdater whether the
hash changed, reprocess or skip, and record the new hash on success.
Files that disappeared since the last run are removed afterwards, then
staged cross-file edges are linked against the whole graph.

One bad file never aborts a run; its error is collected in the result.
Stored paths are absolute.
"""

from __future__ import annotations

import os
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

from codegraph.config.models import IndexConfig
from codegraph.core.errors import IndexingError
from codegraph.core.excludes import is_ignored_path, should_prune_dir
from codegraph.core.languages import detect_language, get_all_indexable_extensions
from codegraph.core.logging import get_logger
from codegraph.graph.linker import CrossFileLinker
from codegraph.graph.processor import FileProcessor
from codegraph.store.incremental import IncrementalUpdater, compute_file_hash

if TYPE_CHECKING:
    from codegraph.store.database import Database
    from codegraph.store.metrics import MetricsStore

log = get_logger("graph.indexer")

ProgressCallback = Callable[[int, int, str], None]

_BYTES_PER_MB = 1024 * 1024


@dataclass
class IndexResult:
    """Totals for one ``index_directory`` run."""

    root: str
    total_files: int = 0
    parsed: int = 0
    skipped: int = 0
    failed: int = 0
    removed: int = 0
    entities: int = 0
    relationships: int = 0
    cross_file_relationships: int = 0
    errors: list[dict[str, str]] = field(default_factory=list)
    duration_ms: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "root": self.root,
            "total_files": self.total_files,
            "parsed": self.parsed,
            "skipped": self.skipped,
            "failed": self.failed,
            "removed": self.removed,
            "entities": self.entities,
            "relationships": self.relationships,
            "cross_file_relationships": self.cross_file_relationships,
            "errors": self.errors,
            "duration_ms": round(self.duration_ms, 3),
        }


def discover_files(
    root: Path,
    *,
    extensions: Iterable[str] | None = None,
    ignore: Iterable[str] = (),
    max_file_size_mb: int | None = None,
) -> list[Path]:
    """Walk ``root`` and return indexable files, sorted.

    Prunes excluded directories in place so their subtrees are never
    visited.
    """
    wanted = {e.lower() for e in extensions} if extensions else get_all_indexable_extensions()
    ignore = list(ignore)
    max_bytes = max_file_size_mb * _BYTES_PER_MB if max_file_size_mb else None

    found: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if not should_prune_dir(d, ignore))
        rel_dir = Path(dirpath).relative_to(root).as_posix()
        for filename in filenames:
            path = Path(dirpath) / filename
            if path.suffix.lower() not in wanted or detect_language(path) is None:
                continue
            rel_path = filename if rel_dir == "." else f"{rel_dir}/{filename}"
            if is_ignored_path(rel_path, ignore):
                continue
            if max_bytes is not None:
                try:
                    if path.stat().st_size > max_bytes:
                        log.debug("file_too_large", path=rel_path)
                        continue
                except OSError:
                    continue
            found.append(path)
    found.sort()
    return found


class DirectoryIndexer:
    """Incrementally indexes a directory into one graph database."""

    def __init__(
        self,
        db: Database,
        config: IndexConfig | None = None,
        *,
        processor: FileProcessor | None = None,
        metrics: MetricsStore | None = None,
    ) -> None:
        self._db = db
        self.config = config or IndexConfig()
        self.processor = processor or FileProcessor(db)
        self.updater = IncrementalUpdater(db)
        self.linker = CrossFileLinker(db)
        self.metrics = metrics

    def index_directory(
        self,
        root: Path | str,
        extensions: Iterable[str] | None = None,
        ignore: Iterable[str] | None = None,
        on_progress: ProgressCallback | None = None,
        project_id: str | None = None,
    ) -> IndexResult:
        """Bring the graph in line with the files under ``root``.

        Raises:
            IndexingError: If ``root`` is missing or not a directory.
        """
        root = Path(root).expanduser().resolve()
        if not root.exists():
            raise IndexingError.directory_not_found(str(root))
        if not root.is_dir():
            raise IndexingError.not_a_directory(str(root))

        start = time.perf_counter()
        result = IndexResult(root=str(root))
        files = discover_files(
            root,
            extensions=extensions if extensions is not None else self.config.extensions,
            ignore=[*self.config.ignore, *(ignore or [])],
            max_file_size_mb=self.config.max_file_size_mb,
        )
        result.total_files = len(files)
        log.info("index_started", root=str(root), files=len(files))

        for i, path in enumerate(files, 1):
            self._index_one(path, result)
            if on_progress is not None:
                on_progress(i, len(files), str(path))

        removed = self.updater.remove_stale_files(str(p) for p in files)
        result.removed = sum(1 for r in removed if r.action == "deleted")
        if result.parsed or result.removed:
            result.cross_file_relationships = self.linker.link().created
        result.duration_ms = (time.perf_counter() - start) * 1000

        log.info(
            "index_complete",
            root=str(root),
            parsed=result.parsed,
            skipped=result.skipped,
            failed=result.failed,
            removed=result.removed,
            cross_file=result.cross_file_relationships,
            duration_ms=round(result.duration_ms, 1),
        )
        if self.metrics is not None:
            self.metrics.insert_parse_stats(
                project_id or root.name,
                files_total=result.total_files,
                files_success=result.parsed + result.skipped,
                files_error=result.failed,
                entities_extracted=result.entities,
                relationships_extracted=result.relationships + result.cross_file_relationships,
                duration_ms=round(result.duration_ms, 3),
            )
        return result

    def _index_one(self, path: Path, result: IndexResult) -> None:
        file_path = str(path)
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            result.failed += 1
            result.errors.append({"file_path": file_path, "error": f"Cannot read file: {e}"})
            return

        if not self.updater.should_reparse(file_path, compute_file_hash(content)):
            result.skipped += 1
            log.debug("file_unchanged", path=file_path)
            return

        processed = self.processor.process_file(path, content)
        if not processed.success:
            result.failed += 1
            result.errors.append({"file_path": file_path, "error": processed.error or "unknown"})
            log.warning("file_failed", path=file_path, error=processed.error)
            return

        self.updater.mark_file_updated(
            file_path, processed.file_hash or compute_file_hash(content), processed.language or ""
        )
        result.parsed += 1
        result.entities += len(processed.entities)
        result.relationships += len(processed.relationships)
