"""codegraph - code knowledge graph with incremental indexing and structural queries."""

__version__ = "0.1.0"
