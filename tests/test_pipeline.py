"""End-to-end tests for aggregate()."""

from pathlib import Path

import pytest
from structlog.testing import capture_logs

from covtree.config.models import CovtreeConfig
from covtree.config.thresholds import StaticThresholdSource
from covtree.core.errors import AggregationError, ErrorCode, InternalError
from covtree.core.logging import get_run_id
from covtree.diagnostics import CollectingDiagnosticSink
from covtree.discovery import ProjectRoot
from covtree.pipeline import aggregate
from covtree.tree.levels import CoverageLevel, CoverageLevelThresholds
from covtree.tree.nodes import FileNode

FOO_LCOV = "SF:src/foo.ts\nDA:1,1\nDA:2,0\nend_of_record\n"

FOO_COBERTURA = """\
<?xml version="1.0" ?>
<coverage line-rate="1">
  <packages><package name="src"><classes>
    <class name="foo" filename="src/foo.ts">
      <lines><line number="1" hits="1"/><line number="2" hits="3"/></lines>
    </class>
  </classes></package></packages>
</coverage>
"""

FOO_JACOCO = """\
<report name="svc">
  <package name="com/example">
    <sourcefile name="Foo.java">
      <line nr="1" mi="0" ci="1" mb="0" cb="0"/>
      <line nr="2" mi="1" ci="0" mb="0" cb="0"/>
      <line nr="3" mi="1" ci="0" mb="0" cb="0"/>
      <counter type="LINE" missed="2" covered="1"/>
    </sourcefile>
  </package>
</report>
"""


def _write(root: Path, files: dict[str, str]) -> Path:
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    return root


def _leaves(tree) -> dict[str, FileNode]:
    return {n.path: n for n in tree.iter_nodes() if isinstance(n, FileNode)}


@pytest.fixture
def source(thresholds: CoverageLevelThresholds) -> StaticThresholdSource:
    return StaticThresholdSource(thresholds)


class TestAggregate:
    def test_lcov_scenario(
        self, tmp_path: Path, sink: CollectingDiagnosticSink, source: StaticThresholdSource
    ) -> None:
        _write(tmp_path, {"src/foo.ts": "", "coverage/lcov.info": FOO_LCOV})

        tree = aggregate([tmp_path], thresholds=source, sink=sink, max_workers=2)

        (project,) = tree.children
        assert project.path == str(tmp_path.resolve())
        assert project.label == tmp_path.name
        (src,) = project.children
        (foo,) = src.children
        assert foo.path == str(tmp_path.resolve() / "src" / "foo.ts")
        assert (foo.total_lines_count, foo.covered_lines_count) == (2, 1)
        assert foo.level == CoverageLevel.MEDIUM
        assert (tree.total_lines_count, tree.covered_lines_count) == (2, 1)
        assert sink.diagnostics == []

    def test_idempotent(self, tmp_path: Path, source: StaticThresholdSource) -> None:
        _write(tmp_path, {"src/foo.ts": "", "coverage/lcov.info": FOO_LCOV})

        first = aggregate([tmp_path], thresholds=source)
        second = aggregate([tmp_path], thresholds=source)

        assert first == second
        assert first is not second

    def test_later_report_wins(
        self, tmp_path: Path, sink: CollectingDiagnosticSink, source: StaticThresholdSource
    ) -> None:
        # lcov.info is discovered before cov.xml
        _write(
            tmp_path,
            {
                "src/foo.ts": "",
                "coverage/lcov.info": FOO_LCOV,
                "coverage/cov.xml": FOO_COBERTURA,
            },
        )

        tree = aggregate([tmp_path], thresholds=source, sink=sink)

        (foo,) = _leaves(tree).values()
        assert (foo.total_lines_count, foo.covered_lines_count) == (2, 2)
        assert foo.level == CoverageLevel.HIGH

    def test_jacoco_paths_reconciled(
        self, tmp_path: Path, sink: CollectingDiagnosticSink, source: StaticThresholdSource
    ) -> None:
        _write(
            tmp_path,
            {
                "src/main/java/com/example/Foo.java": "",
                "coverage/jacoco.xml": FOO_JACOCO,
            },
        )

        tree = aggregate([tmp_path], thresholds=source, sink=sink)

        leaves = _leaves(tree)
        expected = str(tmp_path.resolve() / "src/main/java/com/example/Foo.java")
        assert list(leaves) == [expected]
        assert leaves[expected].level == CoverageLevel.LOW
        assert sink.diagnostics == []

    def test_absolute_report_paths_made_relative(
        self, tmp_path: Path, sink: CollectingDiagnosticSink, source: StaticThresholdSource
    ) -> None:
        root = tmp_path.resolve()
        lcov = f"SF:{root / 'src' / 'foo.ts'}\nDA:1,1\nend_of_record\n"
        _write(root, {"src/foo.ts": "", "coverage/lcov.info": lcov})

        tree = aggregate([root], thresholds=source, sink=sink)

        assert list(_leaves(tree)) == [str(root / "src" / "foo.ts")]

    def test_no_project_roots_raises(self) -> None:
        with pytest.raises(AggregationError) as exc_info:
            aggregate([])
        assert exc_info.value.code == ErrorCode.AGGREGATION_NO_PROJECT_ROOTS

    def test_no_coverage_files_warns_and_returns_empty_tree(
        self, tmp_path: Path, sink: CollectingDiagnosticSink
    ) -> None:
        _write(tmp_path, {"src/foo.ts": ""})

        tree = aggregate([tmp_path], sink=sink)

        assert tree.children == ()
        assert tree.total_lines_count == 0
        assert [d.message for d in sink.for_subsystem("discovery")] == ["no_coverage_files_found"]

    def test_root_without_reports_contributes_no_node(
        self, tmp_path: Path, sink: CollectingDiagnosticSink, source: StaticThresholdSource
    ) -> None:
        app = _write(tmp_path / "app", {"src/foo.ts": "", "coverage/lcov.info": FOO_LCOV})
        docs = _write(tmp_path / "docs", {"index.md": ""})

        tree = aggregate(
            [ProjectRoot.from_path(app), ProjectRoot.from_path(docs)], thresholds=source, sink=sink
        )

        assert [p.label for p in tree.children] == ["app"]
        assert sink.for_subsystem("discovery") == []

    def test_malformed_report_skipped_others_continue(
        self, tmp_path: Path, sink: CollectingDiagnosticSink, source: StaticThresholdSource
    ) -> None:
        _write(
            tmp_path,
            {
                "src/foo.ts": "",
                "coverage/lcov.info": FOO_LCOV,
                "coverage/coverage.xml": "<coverage line-rate='1'><unclosed>",
            },
        )

        tree = aggregate([tmp_path], thresholds=source, sink=sink)

        assert tree.total_lines_count == 2
        (error,) = sink.for_subsystem("parser")
        assert error.level == "error"
        assert error.source.endswith("coverage.xml")

    def test_unknown_format_skipped_with_warning(
        self, tmp_path: Path, sink: CollectingDiagnosticSink, source: StaticThresholdSource
    ) -> None:
        _write(tmp_path, {"coverage/cov.xml": "<html></html>"})

        tree = aggregate([tmp_path], thresholds=source, sink=sink)

        assert tree.total_lines_count == 0
        (warning,) = sink.for_subsystem("detector")
        assert warning.message == "coverage_format_unknown"

    def test_unreadable_report_reported(
        self, tmp_path: Path, sink: CollectingDiagnosticSink, source: StaticThresholdSource
    ) -> None:
        _write(tmp_path, {"coverage/lcov.info": FOO_LCOV})

        def loader(path: Path) -> str:
            raise PermissionError(f"denied: {path}")

        tree = aggregate([tmp_path], loader=loader, thresholds=source, sink=sink)

        assert tree.total_lines_count == 0
        (error,) = sink.for_subsystem("loader")
        assert error.message == "coverage_file_unreadable"

    def test_unexpected_worker_failure_wrapped(
        self, tmp_path: Path, source: StaticThresholdSource
    ) -> None:
        _write(tmp_path, {"coverage/lcov.info": FOO_LCOV})

        def loader(path: Path) -> str:  # noqa: ARG001
            raise RuntimeError("boom")

        with pytest.raises(InternalError) as exc_info:
            aggregate([tmp_path], loader=loader, thresholds=source)
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    def test_config_thresholds_used_by_default(self, tmp_path: Path) -> None:
        _write(
            tmp_path,
            {
                "src/foo.ts": "",
                "coverage/lcov.info": FOO_LCOV,
                ".covtree/config.yaml": "coverage:\n  sufficient_coverage_threshold: 40\n"
                "  low_coverage_threshold: 10\n",
            },
        )

        tree = aggregate([tmp_path])

        (foo,) = _leaves(tree).values()
        assert foo.level == CoverageLevel.HIGH

    def test_explicit_config_applies_to_every_root(self, tmp_path: Path) -> None:
        _write(tmp_path, {"src/foo.ts": "", "reports/out.info": FOO_LCOV})
        config = CovtreeConfig.model_validate(
            {
                "coverage": {
                    "coverage_file_paths": ["reports"],
                    "coverage_file_names": ["*.info"],
                    "sufficient_coverage_threshold": 100,
                    "low_coverage_threshold": 60,
                }
            }
        )

        tree = aggregate([tmp_path], config=config)

        (foo,) = _leaves(tree).values()
        assert foo.level == CoverageLevel.LOW

    def test_run_id_cleared_after_run(self, tmp_path: Path) -> None:
        aggregate([tmp_path])

        assert get_run_id() is None


class TestWorkerCount:
    @staticmethod
    def _started_workers(logs: list[dict]) -> int:
        (started,) = [e for e in logs if e["event"] == "aggregation_started"]
        return started["max_workers"]

    def test_env_var_sets_workers(
        self, tmp_path: Path, source: StaticThresholdSource, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        _write(tmp_path, {"src/foo.ts": "", "coverage/lcov.info": FOO_LCOV})
        monkeypatch.setenv("COVTREE__EXECUTION__MAX_WORKERS", "1")

        with capture_logs() as logs:
            aggregate([tmp_path], thresholds=source)

        assert self._started_workers(logs) == 1

    def test_project_yaml_sets_workers(
        self, tmp_path: Path, source: StaticThresholdSource
    ) -> None:
        _write(tmp_path, {".covtree/config.yaml": "execution:\n  max_workers: 2\n"})

        with capture_logs() as logs:
            aggregate([tmp_path], thresholds=source)

        assert self._started_workers(logs) == 2

    def test_explicit_argument_wins(
        self, tmp_path: Path, source: StaticThresholdSource, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("COVTREE__EXECUTION__MAX_WORKERS", "1")

        with capture_logs() as logs:
            aggregate([tmp_path], thresholds=source, max_workers=3)

        assert self._started_workers(logs) == 3

    def test_unreadable_config_falls_back_to_default(
        self, tmp_path: Path, sink: CollectingDiagnosticSink
    ) -> None:
        _write(tmp_path, {".covtree/config.yaml": "execution: [unclosed\n"})

        with capture_logs() as logs:
            aggregate([tmp_path], sink=sink)

        assert self._started_workers(logs) == CovtreeConfig().execution.max_workers
        assert [d.message for d in sink.for_subsystem("config")] == ["config_unreadable"]
