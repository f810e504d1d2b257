"""Aggregation entry point.

    raw text -> detect_format -> parse_content -> normalize_sections
             -> merge_sections (per root) -> reconcile_paths -> TreeBuilder

Every call rebuilds the tree from scratch; nothing is cached between runs.
Per-file problems become diagnostics and never abort the run.
"""

from __future__ import annotations

import contextvars
import time
from collections.abc import Callable, Iterable, Sequence
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, TypeVar

import structlog

from covtree.config.loader import load_config
from covtree.config.models import CovtreeConfig, ExecutionConfig
from covtree.config.thresholds import ConfigThresholdSource, ThresholdSource
from covtree.core.errors import AggregationError, ConfigError, CovtreeError, InternalError
from covtree.core.logging import clear_run_id, set_run_id
from covtree.coverage.merge import merge_sections
from covtree.coverage.models import CoverageSection, ProjectCoverage
from covtree.coverage.normalize import normalize_sections
from covtree.coverage.parsers import CoverageFormat, detect_format, parse_content
from covtree.coverage.reconcile import reconcile_paths
from covtree.diagnostics import DiagnosticSink, LoggingDiagnosticSink
from covtree.discovery import (
    ContentLoader,
    FileDiscovery,
    GlobFileDiscovery,
    ProjectRoot,
    coverage_patterns,
    read_text_file,
)
from covtree.tree.builder import TreeBuilder
from covtree.tree.levels import CoverageLevelThresholds
from covtree.tree.nodes import RootNode

logger = structlog.get_logger()

T = TypeVar("T")


@dataclass(slots=True)
class _RootResult:
    root: ProjectRoot
    thresholds: CoverageLevelThresholds
    report_count: int = 0
    coverage: ProjectCoverage = field(default_factory=dict)


def _submit(executor: Executor, fn: Callable[..., T], *args: Any) -> Future[T]:
    """Submit with a copy of the caller's context (run id) per task."""
    return executor.submit(contextvars.copy_context().run, fn, *args)


def _execution_config(
    roots: Sequence[ProjectRoot], config: CovtreeConfig | None
) -> ExecutionConfig:
    """Pool sizing comes from the given config, else from the first root's config."""
    if config is not None:
        return config.execution
    try:
        return load_config(roots[0].path).execution
    except ConfigError:
        # Reported per root as config_unreadable once the run starts
        return ExecutionConfig()


class _Aggregation:
    """State of one aggregate() call."""

    def __init__(
        self,
        *,
        discovery: FileDiscovery | None,
        loader: ContentLoader,
        thresholds: ThresholdSource,
        sink: DiagnosticSink,
        config: CovtreeConfig | None,
        parse_pool: Executor,
    ) -> None:
        self._discovery = discovery
        self._loader = loader
        self._thresholds = thresholds
        self._sink = sink
        self._config = config
        self._parse_pool = parse_pool

    def _root_config(self, root: ProjectRoot) -> CovtreeConfig:
        if self._config is not None:
            return self._config
        try:
            return load_config(root.path)
        except ConfigError as e:
            self._sink.error("config", "config_unreadable", source=str(root.path), error=str(e))
            return CovtreeConfig()

    def process_root(self, root: ProjectRoot) -> _RootResult:
        config = self._root_config(root)
        ignore = config.coverage.ignored_path_globs
        discovery = self._discovery or GlobFileDiscovery(ignore)
        patterns = coverage_patterns(
            config.coverage.coverage_file_paths, config.coverage.coverage_file_names
        )

        reports = discovery.coverage_files(root.path, patterns)
        result = _RootResult(
            root=root,
            thresholds=self._thresholds.thresholds(root.path),
            report_count=len(reports),
        )
        if not reports:
            logger.debug("no_coverage_files_in_root", root=str(root.path))
            return result

        # Parse concurrently; merge in discovery order
        futures = [_submit(self._parse_pool, self.load_report, root, path) for path in reports]
        merged = merge_sections(future.result() for future in futures)

        project_files = discovery.project_files(root.path, ignore)
        reconciliation = reconcile_paths(merged, project_files, root.path, sink=self._sink)
        result.coverage = reconciliation.coverage

        logger.info(
            "project_root_aggregated",
            root=str(root.path),
            reports=len(reports),
            files=len(result.coverage),
            unmatched=len(reconciliation.unmatched),
            ambiguous=len(reconciliation.ambiguous),
        )
        return result

    def load_report(self, root: ProjectRoot, path: Path) -> list[CoverageSection]:
        source = str(path)
        try:
            content = self._loader(path)
        except (OSError, UnicodeDecodeError) as e:
            self._sink.error("loader", "coverage_file_unreadable", source=source, error=str(e))
            return []

        fmt = detect_format(content)
        if fmt is CoverageFormat.UNKNOWN:
            self._sink.warning("detector", "coverage_format_unknown", source=source)
            return []

        parsed = parse_content(fmt, content, filename=source)
        if parsed.error is not None:
            self._sink.error(
                "parser",
                "coverage_parse_failed",
                source=source,
                format=fmt.value,
                error=str(parsed.error),
            )
            return []

        logger.debug(
            "coverage_file_parsed", source=source, format=fmt.value, sections=len(parsed.sections)
        )
        return normalize_sections(parsed.sections, root.path, source=source, sink=self._sink)


def aggregate(
    project_roots: Iterable[ProjectRoot | Path | str],
    *,
    discovery: FileDiscovery | None = None,
    loader: ContentLoader = read_text_file,
    thresholds: ThresholdSource | None = None,
    sink: DiagnosticSink | None = None,
    config: CovtreeConfig | None = None,
    max_workers: int | None = None,
) -> RootNode:
    """Aggregate all coverage reports under the given project roots into a tree.

    Args:
        project_roots: Workspace folders (ProjectRoot or plain paths).
        discovery: File discovery; defaults to GlobFileDiscovery with each
            root's ignored path globs.
        loader: Reads report content; must raise OSError on failure.
        thresholds: Threshold source; defaults to each root's config (or
            ``config`` when given).
        sink: Receives diagnostics; defaults to logging them.
        config: Use this config for every root instead of loading each
            root's own.
        max_workers: Worker threads; defaults to ``execution.max_workers`` of
            ``config``, or of the first root's loaded config.

    Returns:
        Immutable RootNode with one FolderNode per root that has reports.

    Raises:
        AggregationError: No project roots supplied.
        InternalError: A worker failed unexpectedly.
    """
    roots: Sequence[ProjectRoot] = [
        root if isinstance(root, ProjectRoot) else ProjectRoot.from_path(root)
        for root in project_roots
    ]
    if not roots:
        raise AggregationError.no_project_roots()

    sink = sink or LoggingDiagnosticSink()
    if thresholds is None:
        thresholds = (
            ConfigThresholdSource() if config is None else ConfigThresholdSource(lambda _: config)
        )
    workers = max_workers or _execution_config(roots, config).max_workers

    run_id = set_run_id()
    start = time.perf_counter()
    logger.info("aggregation_started", run_id=run_id, roots=len(roots), max_workers=workers)
    try:
        with (
            ThreadPoolExecutor(max_workers=workers, thread_name_prefix="covtree-root") as root_pool,
            ThreadPoolExecutor(
                max_workers=workers, thread_name_prefix="covtree-parse"
            ) as parse_pool,
        ):
            run = _Aggregation(
                discovery=discovery,
                loader=loader,
                thresholds=thresholds,
                sink=sink,
                config=config,
                parse_pool=parse_pool,
            )
            futures = [_submit(root_pool, run.process_root, root) for root in roots]
            results: list[_RootResult] = []
            for root, future in zip(roots, futures, strict=True):
                try:
                    results.append(future.result())
                except CovtreeError:
                    raise
                except Exception as e:
                    raise InternalError.unexpected(
                        f"aggregation of {root.path} failed: {e}", root=str(root.path)
                    ) from e

        if not any(result.report_count for result in results):
            sink.warning(
                "discovery",
                "no_coverage_files_found",
                roots=[str(root.path) for root in roots],
            )

        builder = TreeBuilder(sink=sink)
        for result in results:
            if result.report_count:
                builder.add_project(result.root, result.coverage, result.thresholds)
        tree = builder.build()

        logger.info(
            "aggregation_complete",
            run_id=run_id,
            projects=len(tree.children),
            total_lines=tree.total_lines_count,
            covered_lines=tree.covered_lines_count,
            elapsed_ms=round((time.perf_counter() - start) * 1000, 1),
        )
        return tree
    finally:
        clear_run_id()
