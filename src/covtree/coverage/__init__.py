"""Coverage report ingestion: detection, parsing, normalization, merging, reconciliation."""

from covtree.coverage.merge import merge_sections
from covtree.coverage.models import (
    BranchDetail,
    CoverageCounts,
    CoverageParseError,
    CoverageSection,
    FunctionDetail,
    LineDetail,
    ProjectCoverage,
)
from covtree.coverage.normalize import normalize_section, normalize_sections
from covtree.coverage.parsers import (
    PARSER_BY_FORMAT,
    CoverageFormat,
    ParseResult,
    detect_format,
    parse_content,
)
from covtree.coverage.reconcile import Reconciliation, reconcile_paths

__all__ = [
    "BranchDetail",
    "CoverageCounts",
    "CoverageFormat",
    "CoverageParseError",
    "CoverageSection",
    "FunctionDetail",
    "LineDetail",
    "PARSER_BY_FORMAT",
    "ParseResult",
    "ProjectCoverage",
    "Reconciliation",
    "detect_format",
    "merge_sections",
    "normalize_section",
    "normalize_sections",
    "parse_content",
    "reconcile_paths",
]
