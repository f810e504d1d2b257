"""Coverage merging with later-wins semantics.

All reports discovered under one project root fold into a single
ProjectCoverage mapping, in discovery order:

    result[section.file] = section

A later report for the same file supersedes an earlier one. Counts are never
summed across reports: the same test run is often exported in more than one
format, and summing would count it twice.
"""

from collections.abc import Iterable

from covtree.coverage.models import CoverageSection, ProjectCoverage


def merge_sections(section_lists: Iterable[Iterable[CoverageSection]]) -> ProjectCoverage:
    """Merge per-report section lists into one mapping keyed by file path.

    Args:
        section_lists: One list of normalized sections per report, in
            discovery order.

    Returns:
        Mapping of file path to the last section reported for it.
    """
    merged: ProjectCoverage = {}
    for sections in section_lists:
        for section in sections:
            merged[section.file] = section
    return merged
