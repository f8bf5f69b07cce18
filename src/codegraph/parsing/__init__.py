"""Parser/extractor contracts.

The tree-sitter implementations live in ``codegraph.parsing.treesitter``
and are imported on demand.
"""

from codegraph.parsing.contracts import (
    CandidateEntity,
    CandidateRelationship,
    GraphExtractor,
    ParseOutcome,
    SourceParser,
)

__all__ = [
    "CandidateEntity",
    "CandidateRelationship",
    "GraphExtractor",
    "ParseOutcome",
    "SourceParser",
]
