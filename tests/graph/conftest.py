"""Fake parser/extractor pair driving the graph pipeline without tree-sitter.

Source files are tiny line-oriented scripts::

    def add
    def Calc class
    call calc add
    rel Calc add contains

``def NAME [TYPE] [export]`` declares an entity on that line; ``call SRC
DST`` and ``rel SRC DST TYPE`` declare candidate edges. A line reading
``!error`` makes parsing fail.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from codegraph.parsing.contracts import CandidateEntity, CandidateRelationship, ParseOutcome
from codegraph.store.database import Database
from codegraph.graph.processor import FileProcessor


class ScriptParser:
    def __init__(self) -> None:
        self.calls: list[str] = []

    def parse_file(self, path: Path, content: str | None = None) -> ParseOutcome:
        self.calls.append(str(path))
        if content is None:
            content = path.read_text(encoding="utf-8")
        if "!error" in content:
            return ParseOutcome.failed(str(path), "syntax error")
        lines = content.splitlines()
        return ParseOutcome.ok(str(path), lines, "typescript", content)


class ScriptExtractor:
    def extract_entities(self, root: Any, file_path: str, language: str) -> list[CandidateEntity]:
        found = []
        for lineno, line in enumerate(root, 1):
            parts = line.split()
            if not parts or parts[0] != "def":
                continue
            name = parts[1]
            kind = parts[2] if len(parts) > 2 and parts[2] != "export" else "function"
            metadata = {"exported": True} if "export" in parts else None
            found.append(
                CandidateEntity(
                    type=kind,
                    name=name,
                    file_path=file_path,
                    start_line=lineno,
                    end_line=lineno,
                    language=language,
                    metadata=metadata,
                )
            )
        return found

    def extract_relationships(self, root: Any, language: str) -> list[CandidateRelationship]:
        found = []
        for line in root:
            parts = line.split()
            if parts and parts[0] == "call":
                found.append(CandidateRelationship(parts[1], parts[2], "calls"))
            elif parts and parts[0] == "rel":
                found.append(CandidateRelationship(parts[1], parts[2], parts[3]))
        return found


@pytest.fixture
def script_parser() -> ScriptParser:
    return ScriptParser()


@pytest.fixture
def processor(db: Database, script_parser: ScriptParser) -> FileProcessor:
    return FileProcessor(db, parser=script_parser, extractor=ScriptExtractor())
