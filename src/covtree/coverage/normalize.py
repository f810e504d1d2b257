"""Section normalization.

Brings parsed sections into canonical shape before merging:

1. found/hit derived from details when a format leaves them out
2. absolute paths under the project root made root-relative
3. sections without a file path dropped
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace
from pathlib import Path

from covtree.coverage.models import CoverageCounts, CoverageSection
from covtree.coverage.paths import is_absolute, strip_root, to_posix
from covtree.diagnostics import DiagnosticSink

SUBSYSTEM = "normalizer"


def recompute_counts(counts: CoverageCounts) -> CoverageCounts:
    """Derive found/hit from details when they are missing or zero.

    Counts without details are returned unchanged: there is nothing to
    derive from.
    """
    if not counts.details:
        return counts
    if counts.found and counts.hit:
        return counts
    return replace(counts, found=counts.derived_found, hit=counts.derived_hit)


def _enforce_hit_le_found(counts: CoverageCounts) -> tuple[CoverageCounts, bool]:
    """Repair ``hit > found``. Returns (counts, repaired)."""
    if counts.found is None or counts.hit is None or counts.hit <= counts.found:
        return counts, False
    if counts.details:
        return replace(counts, found=counts.derived_found, hit=counts.derived_hit), True
    return replace(counts, hit=counts.found), True


def normalize_path(file: str, project_root: Path | str) -> str:
    """Separators to ``/``; absolute paths under ``project_root`` made relative."""
    posix = to_posix(file)
    if is_absolute(posix):
        relative = strip_root(posix, str(project_root))
        if relative is not None:
            return relative
    return posix


def normalize_section(
    section: CoverageSection,
    project_root: Path | str,
    *,
    source: str | None = None,
    sink: DiagnosticSink,
) -> CoverageSection:
    """Normalize one section (which must have a non-empty file path)."""
    counts: dict[str, CoverageCounts] = {}
    for name in ("lines", "functions", "branches"):
        fixed, repaired = _enforce_hit_le_found(recompute_counts(getattr(section, name)))
        if repaired:
            sink.warning(
                SUBSYSTEM,
                "section_hit_exceeds_found",
                source=source,
                file=section.file,
                kind=name,
            )
        counts[name] = fixed

    return replace(
        section,
        file=normalize_path(section.file, project_root),
        lines=counts["lines"],
        functions=counts["functions"],
        branches=counts["branches"],
    )


def normalize_sections(
    sections: Iterable[CoverageSection],
    project_root: Path | str,
    *,
    source: str | None = None,
    sink: DiagnosticSink,
) -> list[CoverageSection]:
    """Normalize every section of one report, dropping those without a path.

    Args:
        sections: Parsed sections of one report.
        project_root: Absolute project root the report belongs to.
        source: Report file name, for diagnostics.
        sink: Diagnostic sink for dropped/repaired sections.
    """
    normalized: list[CoverageSection] = []
    for section in sections:
        if not section.file or not section.file.strip():
            sink.warning(SUBSYSTEM, "section_without_file", source=source)
            continue
        normalized.append(normalize_section(section, project_root, source=source, sink=sink))
    return normalized
