"""Tests for cg status and cg metrics."""

from __future__ import annotations

import json
from pathlib import Path

from click.testing import CliRunner

from codegraph import __version__
from codegraph.cli.main import cli

runner = CliRunner()


class TestMainGroup:
    def test_version(self) -> None:
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help_lists_commands(self) -> None:
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        for command in ("index", "callers", "blast-radius", "cycles", "dead-code", "status"):
            assert command in result.output


class TestStatusCommand:
    def test_json(self, seeded_db: Path) -> None:
        result = runner.invoke(cli, ["status", "--db", str(seeded_db), "--json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["database"] == str(seeded_db)
        assert data["entity_count"] == 4
        assert data["relationship_count"] == 3
        assert data["relationships_by_type"]["calls"] == 3

    def test_text(self, seeded_db: Path) -> None:
        result = runner.invoke(cli, ["status", "--db", str(seeded_db)])
        assert result.exit_code == 0
        assert "Entities: 4" in result.output

    def test_default_database_location(self, isolated_repo: Path) -> None:
        result = runner.invoke(cli, ["status", "--json"])
        assert result.exit_code == 0, result.output
        assert (isolated_repo / ".codegraph" / "graph.db").exists()
        assert json.loads(result.stdout)["entity_count"] == 0


class TestMetricsCommand:
    def test_tool_calls_recorded(self, seeded_db: Path) -> None:
        runner.invoke(cli, ["callers", "add", "--db", str(seeded_db), "--json"])
        runner.invoke(cli, ["callers", "calc", "--db", str(seeded_db), "--json"])

        result = runner.invoke(cli, ["metrics", "--tool", "what_calls", "--db", str(seeded_db), "--json"])

        assert result.exit_code == 0, result.output
        (tool,) = json.loads(result.stdout)["tools"]
        assert tool["tool_name"] == "what_calls"
        assert tool["call_count"] == 2
        assert tool["success_count"] == 2

    def test_failed_call_recorded(self, seeded_db: Path) -> None:
        runner.invoke(cli, ["cycles", "--max", "-1", "--db", str(seeded_db)])

        result = runner.invoke(cli, ["metrics", "--db", str(seeded_db), "--json"])

        (tool,) = json.loads(result.stdout)["tools"]
        assert tool["error_count"] == 1

    def test_disabled_by_config(self, seeded_db: Path, isolated_repo: Path) -> None:
        (isolated_repo / ".codegraph").mkdir()
        (isolated_repo / ".codegraph" / "config.yaml").write_text("metrics:\n  enabled: false\n")
        runner.invoke(cli, ["callers", "add", "--db", str(seeded_db), "--json"])

        result = runner.invoke(cli, ["metrics", "--db", str(seeded_db), "--json"])

        assert json.loads(result.stdout)["tools"] == []

    def test_nothing_recorded(self, db_file: Path) -> None:
        result = runner.invoke(cli, ["metrics", "--db", str(db_file)])
        assert result.exit_code == 0
        assert "No metrics recorded yet" in result.output
