"""Graph construction: per-file processing, directory indexing and cross-file linking."""

from codegraph.graph.indexer import DirectoryIndexer, IndexResult, discover_files
from codegraph.graph.linker import CrossFileLinker, LinkResult, pick_target
from codegraph.graph.processor import FileProcessor, FileProcessResult, NameIndex

__all__ = [
    "CrossFileLinker",
    "DirectoryIndexer",
    "FileProcessResult",
    "FileProcessor",
    "IndexResult",
    "LinkResult",
    "NameIndex",
    "discover_files",
    "pick_target",
]
