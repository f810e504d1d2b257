"""Tests for the covtree CLI."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from pathlib import Path

import pytest
from click.testing import CliRunner

from covtree.cli.main import cli

runner = CliRunner()

LCOV = "SF:src/foo.ts\nDA:1,1\nDA:2,0\nend_of_record\nSF:src/bar.ts\nDA:1,1\nend_of_record\n"


@pytest.fixture
def project(tmp_path: Path) -> Path:
    root = tmp_path / "app"
    for rel, content in {
        "src/foo.ts": "",
        "src/bar.ts": "",
        "coverage/lcov.info": LCOV,
    }.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    return root


class TestCli:
    def test_help(self) -> None:
        result = runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        assert "report" in result.output
        assert "detect" in result.output

    def test_version(self) -> None:
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert "0.1.0" in result.output


class TestReportCommand:
    def test_json_output(self, project: Path) -> None:
        result = runner.invoke(cli, ["report", str(project), "--json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["summary"]["total_files"] == 2
        assert data["summary"]["total_lines"] == 3
        assert data["summary"]["covered_lines"] == 2
        (app,) = data["projects"]
        assert app["label"] == "app"
        (src,) = app["children"]
        assert [c["label"] for c in src["children"]] == ["bar.ts", "foo.ts"]
        assert data["diagnostics"] == []

    def test_tree_output(self, project: Path) -> None:
        result = runner.invoke(cli, ["report", str(project)])

        assert result.exit_code == 0, result.output
        assert "app" in result.stdout
        assert "foo.ts 50%" in result.stdout
        assert "bar.ts 100%" in result.stdout
        assert result.stdout.index("bar.ts") < result.stdout.index("foo.ts")

    def test_defaults_to_current_directory(
        self, project: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(project)

        result = runner.invoke(cli, ["report", "--json"])

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["summary"]["total_projects"] == 1

    def test_no_coverage_files(self, tmp_path: Path) -> None:
        result = runner.invoke(cli, ["report", str(tmp_path)])

        assert result.exit_code == 0
        assert "No coverage files found" in result.stdout

    def test_diagnostics_in_json(self, project: Path) -> None:
        (project / "coverage" / "cov.xml").write_text("<coverage line-rate='1'><broken>")

        result = runner.invoke(cli, ["report", str(project), "--json"])

        diagnostics = json.loads(result.stdout)["diagnostics"]
        assert [(d["level"], d["subsystem"]) for d in diagnostics] == [("error", "parser")]

    def test_missing_root_rejected(self, tmp_path: Path) -> None:
        result = runner.invoke(cli, ["report", str(tmp_path / "nope")])

        assert result.exit_code != 0


class TestDetectCommand:
    def test_prints_formats(self, project: Path, tmp_path: Path) -> None:
        other = tmp_path / "notes.txt"
        other.write_text("just text")

        result = runner.invoke(cli, ["detect", str(project / "coverage" / "lcov.info"), str(other)])

        assert result.exit_code == 0
        lines = result.stdout.strip().splitlines()
        assert lines[0].endswith(": lcov")
        assert lines[1].endswith(": unknown")

    def test_undecodable_file_fails(self, tmp_path: Path) -> None:
        binary = tmp_path / "blob.bin"
        binary.write_bytes(b"\xff\xfe\x00\x80")

        result = runner.invoke(cli, ["detect", str(binary)])

        assert result.exit_code == 1
        assert "unreadable" in result.stderr

    def test_requires_files(self) -> None:
        result = runner.invoke(cli, ["detect"])

        assert result.exit_code != 0


class TestLoggingConfig:
    @pytest.fixture(autouse=True)
    def _close_log_handlers(self) -> Iterator[None]:
        yield
        root_logger = logging.getLogger()
        for handler in root_logger.handlers:
            handler.close()
        root_logger.handlers.clear()

    @staticmethod
    def _log_to_file(project: Path, level: str) -> Path:
        log_file = project / "out" / "covtree.log"
        (project / ".covtree").mkdir()
        (project / ".covtree" / "config.yaml").write_text(
            f"logging:\n  level: {level}\n  outputs:\n"
            f"    - destination: {log_file}\n      format: json\n"
        )
        return log_file

    def test_project_logging_outputs_applied(
        self, project: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        log_file = self._log_to_file(project, "DEBUG")
        monkeypatch.chdir(project)

        result = runner.invoke(cli, ["report", "--json"])

        assert result.exit_code == 0, result.output
        events = [json.loads(line)["event"] for line in log_file.read_text().splitlines()]
        assert "aggregation_started" in events
        assert "coverage_file_parsed" in events

    def test_configured_level_filters(
        self, project: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        log_file = self._log_to_file(project, "WARNING")
        monkeypatch.chdir(project)

        runner.invoke(cli, ["report", "--json"])

        assert "aggregation_started" not in log_file.read_text()

    def test_verbose_forces_debug(self, project: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        log_file = self._log_to_file(project, "WARNING")
        monkeypatch.chdir(project)

        runner.invoke(cli, ["-v", "report", "--json"])

        assert "coverage_file_parsed" in log_file.read_text()

    def test_env_var_level(self, project: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        log_file = self._log_to_file(project, "DEBUG")
        monkeypatch.chdir(project)
        monkeypatch.setenv("COVTREE__LOGGING__LEVEL", "ERROR")

        runner.invoke(cli, ["report", "--json"])

        assert "aggregation_started" not in log_file.read_text()

    def test_unreadable_config_warns_and_continues(
        self, project: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        (project / ".covtree").mkdir()
        (project / ".covtree" / "config.yaml").write_text("logging: [unclosed\n")
        monkeypatch.chdir(project)

        result = runner.invoke(cli, ["report", "--json"])

        assert result.exit_code == 0
        assert "using default logging" in result.stderr
        assert json.loads(result.stdout)["summary"]["total_files"] == 2
