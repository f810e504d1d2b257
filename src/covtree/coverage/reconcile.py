"""Reconcile reported section paths with the files actually present.

Reports disagree with the working tree in many ways: paths relative to a
source root rather than the project root (JaCoCo), absolute paths from the CI
machine, different casing on case-insensitive file systems. Each reported path
is matched against the project's file listing by trailing path segments:

1. project files whose relative path ends with the reported path
   (case-sensitive, then case-insensitive)
2. otherwise, project files whose relative path is a trailing part of the
   reported path (extra leading segments); the longest one wins

Exactly one candidate replaces the reported path. Zero or several leave the
reported path untouched and are flagged; an ambiguous match is never guessed.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from pathlib import Path

import structlog

from covtree.coverage.models import ProjectCoverage
from covtree.coverage.paths import has_suffix, split_segments, strip_root, to_posix
from covtree.diagnostics import DiagnosticSink

logger = structlog.get_logger()

SUBSYSTEM = "reconciler"


@dataclass(slots=True)
class Reconciliation:
    """Reconciled coverage plus the paths that could not be resolved."""

    coverage: ProjectCoverage = field(default_factory=dict)
    unmatched: list[str] = field(default_factory=list)
    ambiguous: dict[str, list[str]] = field(default_factory=dict)  # reported -> candidates


class _FileIndex:
    """Project files (root-relative, ``/``-separated) indexed by lowercased basename."""

    def __init__(self, project_files: Iterable[str | Path], project_root: Path | str) -> None:
        self._by_name: dict[str, list[str]] = {}
        for file in project_files:
            rel = strip_root(str(file), str(project_root))
            if rel is None:
                # Already relative, or outside the root: keep as given
                rel = "/".join(split_segments(str(file)))
            if not rel:
                continue
            name = rel.rsplit("/", 1)[-1].lower()
            self._by_name.setdefault(name, []).append(rel)

    def candidates(self, reported: str) -> list[str]:
        name = reported.rsplit("/", 1)[-1].lower()
        return self._by_name.get(name, [])


def find_matches(reported: str, index: _FileIndex) -> list[str]:
    """Return the project files the reported path may refer to."""
    segments = split_segments(reported)
    if not segments:
        return []
    path = "/".join(segments)
    candidates = index.candidates(path)

    for ignore_case in (False, True):
        matches = [rel for rel in candidates if has_suffix(rel, path, ignore_case=ignore_case)]
        if matches:
            return sorted(matches)

    # Reported path carries extra leading segments (e.g. a CI checkout prefix)
    contained = [rel for rel in candidates if has_suffix(path, rel, ignore_case=True)]
    if not contained:
        return []
    longest = max(len(rel) for rel in contained)
    return sorted(rel for rel in contained if len(rel) == longest)


def reconcile_paths(
    coverage: ProjectCoverage,
    project_files: Iterable[str | Path],
    project_root: Path | str,
    *,
    sink: DiagnosticSink,
) -> Reconciliation:
    """Re-key coverage by the project files the reported paths resolve to.

    Args:
        coverage: Merged coverage of one project root.
        project_files: Every file under the project root (absolute or
            root-relative). Must be complete before reconciliation starts.
        project_root: The project root.
        sink: Diagnostic sink for unmatched/ambiguous paths.

    Returns:
        Reconciliation with coverage keyed by canonical root-relative paths
        (or the reported path when it could not be resolved).
    """
    index = _FileIndex(project_files, project_root)
    result = Reconciliation()

    for reported, section in coverage.items():
        matches = find_matches(reported, index)
        key = to_posix(reported)

        if len(matches) == 1:
            key = matches[0]
            if key != reported:
                logger.debug("path_reconciled", reported=reported, matched=key)
        elif not matches:
            result.unmatched.append(reported)
            sink.warning(SUBSYSTEM, "path_unmatched", file=reported)
        else:
            result.ambiguous[reported] = matches
            sink.warning(SUBSYSTEM, "path_ambiguous", file=reported, candidates=matches)

        if key in result.coverage:
            sink.warning(SUBSYSTEM, "path_collision", file=key, reported=reported)
        result.coverage[key] = section if section.file == key else replace(section, file=key)

    return result
