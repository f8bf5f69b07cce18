"""Tests for cg index, end to end through tree-sitter."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from codegraph.cli.main import cli

pytest.importorskip("tree_sitter")
pytest.importorskip("tree_sitter_typescript")

runner = CliRunner()

MATH_TS = """\
export function add(a: number, b: number): number {
  return a + b;
}

export function calc(x: number): number {
  return add(x, 1);
}
"""


class TestIndexCommand:
    def test_index_then_query(self, isolated_repo: Path, db_file: Path) -> None:
        (isolated_repo / "src").mkdir()
        (isolated_repo / "src" / "math.ts").write_text(MATH_TS)

        result = runner.invoke(cli, ["index", str(isolated_repo), "--db", str(db_file), "--json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["parsed"] == 1
        assert data["entities"] >= 2

        callers = runner.invoke(cli, ["callers", "add", "--db", str(db_file), "--json"])
        assert [e["name"] for e in json.loads(callers.stdout)["callers"]] == ["calc"]

    def test_second_run_skips(self, isolated_repo: Path, db_file: Path) -> None:
        (isolated_repo / "math.ts").write_text(MATH_TS)
        runner.invoke(cli, ["index", str(isolated_repo), "--db", str(db_file), "--json"])

        result = runner.invoke(cli, ["index", str(isolated_repo), "--db", str(db_file), "--json"])

        data = json.loads(result.stdout)
        assert data["parsed"] == 0
        assert data["skipped"] == 1

    def test_text_summary(self, isolated_repo: Path, db_file: Path) -> None:
        (isolated_repo / "math.ts").write_text(MATH_TS)
        result = runner.invoke(cli, ["index", str(isolated_repo), "--db", str(db_file)])
        assert result.exit_code == 0, result.output
        assert "1 file parsed" in result.output

    def test_missing_directory(self, isolated_repo: Path) -> None:
        result = runner.invoke(cli, ["index", str(isolated_repo / "nope")])
        assert result.exit_code == 2


UTILS_TS = """\
export function formatDate(date: Date): string {
  return date.toISOString();
}
"""

SERVICE_TS = """\
import { formatDate } from "./utils";

export function processData(items: Date[]): string[] {
  return items.map((d) => formatDate(d));
}
"""


class TestCrossFileIndex:
    def test_callers_across_files(self, isolated_repo: Path, db_file: Path) -> None:
        (isolated_repo / "utils.ts").write_text(UTILS_TS)
        (isolated_repo / "service.ts").write_text(SERVICE_TS)

        result = runner.invoke(cli, ["index", str(isolated_repo), "--db", str(db_file), "--json"])

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["cross_file_relationships"] >= 1
        callers = runner.invoke(cli, ["callers", "formatDate", "--db", str(db_file), "--json"])
        assert [e["name"] for e in json.loads(callers.stdout)["callers"]] == ["processData"]
        radius = runner.invoke(
            cli,
            [
                "blast-radius",
                str((isolated_repo / "utils.ts").resolve()),
                "--db",
                str(db_file),
                "--json",
            ],
        )
        names = [a["entity"]["name"] for a in json.loads(radius.stdout)["affected_entities"]]
        assert "processData" in names

    def test_text_summary_reports_linked_edges(self, isolated_repo: Path, db_file: Path) -> None:
        (isolated_repo / "utils.ts").write_text(UTILS_TS)
        (isolated_repo / "service.ts").write_text(SERVICE_TS)
        result = runner.invoke(cli, ["index", str(isolated_repo), "--db", str(db_file)])
        assert result.exit_code == 0, result.output
        assert "linked across files" in result.output
