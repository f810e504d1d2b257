"""Coverage format detection and parser dispatch.

This module provides:
- CoverageFormat: the supported wire formats (plus UNKNOWN)
- detect_format: classify raw content by structural markers alone
- PARSER_BY_FORMAT: format -> parse function lookup table
- parse_content: parse without raising on malformed content
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum

from covtree.coverage.models import CoverageParseError, CoverageSection

from .base import ParserFunc
from .clover import parse_clover
from .cobertura import parse_cobertura
from .jacoco import parse_jacoco
from .lcov import parse_lcov


class CoverageFormat(Enum):
    """Supported coverage report formats."""

    CLOVER = "clover"
    JACOCO = "jacoco"
    COBERTURA = "cobertura"
    LCOV = "lcov"
    UNKNOWN = "unknown"


PARSER_BY_FORMAT: dict[CoverageFormat, ParserFunc] = {
    CoverageFormat.CLOVER: parse_clover,
    CoverageFormat.JACOCO: parse_jacoco,
    CoverageFormat.COBERTURA: parse_cobertura,
    CoverageFormat.LCOV: parse_lcov,
}

# Prolog constructs that may precede the root element
_XML_PROLOG_RE = re.compile(r"\s*(<\?.*?\?>|<!--.*?-->|<!DOCTYPE[^>]*>)", re.DOTALL)
_XML_ROOT_RE = re.compile(r"\s*<([A-Za-z_][\w.\-]*:)?([A-Za-z_][\w.\-]*)([^>]*)>", re.DOTALL)
_LCOV_RECORD_RE = re.compile(r"^(TN|SF|FN|FNDA|FNF|FNH|BRDA|BRF|BRH|DA|LF|LH|VER):")

__all__ = [
    "CoverageFormat",
    "PARSER_BY_FORMAT",
    "ParseResult",
    "ParserFunc",
    "detect_format",
    "parse_content",
    "parse_clover",
    "parse_cobertura",
    "parse_jacoco",
    "parse_lcov",
]


def _xml_root(content: str) -> tuple[str, str] | None:
    """Return (root element name, root start-tag attributes) of XML content."""
    pos = 0
    while match := _XML_PROLOG_RE.match(content, pos):
        pos = match.end()
    root = _XML_ROOT_RE.match(content, pos)
    if root is None:
        return None
    return root.group(2), root.group(3)


def _detect_xml(content: str) -> CoverageFormat:
    root = _xml_root(content)
    if root is None:
        return CoverageFormat.UNKNOWN
    name, attributes = root

    if name == "report":
        return CoverageFormat.JACOCO
    if name != "coverage":
        return CoverageFormat.UNKNOWN
    # Cobertura and Clover share the <coverage> root element
    if "line-rate=" in attributes or "lines-valid=" in attributes:
        return CoverageFormat.COBERTURA
    if "generated=" in attributes or "clover=" in attributes or "<project" in content:
        return CoverageFormat.CLOVER
    return CoverageFormat.COBERTURA


def _detect_lcov(content: str) -> CoverageFormat:
    has_source = False
    for raw in content.splitlines():
        line = raw.strip()
        if not line or line.startswith("#") or line == "end_of_record":
            continue
        if not _LCOV_RECORD_RE.match(line):
            return CoverageFormat.UNKNOWN
        if line.startswith("SF:"):
            has_source = True
            break
    return CoverageFormat.LCOV if has_source else CoverageFormat.UNKNOWN


def detect_format(content: str) -> CoverageFormat:
    """Classify raw report content without relying on the file name.

    Detection strategy:
    1. XML content: decided by the root element (<report> is JaCoCo;
       <coverage> is Cobertura or Clover depending on its attributes)
    2. Text content: LCOV when every record up to the first SF: follows
       the LCOV record grammar
    3. Anything else is UNKNOWN (not an error; callers skip it)
    """
    stripped = content.lstrip("\ufeff \t\r\n")
    if stripped.startswith("<"):
        return _detect_xml(stripped)
    return _detect_lcov(stripped)


@dataclass(frozen=True, slots=True)
class ParseResult:
    """Outcome of parsing one report: sections, or an error and no sections."""

    sections: list[CoverageSection] = field(default_factory=list)
    error: CoverageParseError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def parse_content(fmt: CoverageFormat, content: str, filename: str = "") -> ParseResult:
    """Parse report content with the parser registered for ``fmt``.

    Never raises for malformed content: failures are returned in
    ``ParseResult.error`` with an empty section list.

    Args:
        fmt: Detected (or forced) format.
        content: Raw report content.
        filename: Report name, used in error messages only.
    """
    parser = PARSER_BY_FORMAT.get(fmt)
    if parser is None:
        valid = ", ".join(sorted(f.value for f in PARSER_BY_FORMAT))
        return ParseResult(
            error=CoverageParseError(
                f"Unsupported coverage format {fmt.value!r} for {filename or '<content>'}. "
                f"Supported formats: {valid}"
            )
        )

    try:
        sections = parser(content)
    except CoverageParseError as e:
        prefix = f"{filename}: " if filename else ""
        return ParseResult(error=CoverageParseError(f"{prefix}{e}"))
    except RecursionError as e:
        # Pathologically nested XML
        return ParseResult(error=CoverageParseError(f"{filename}: too deeply nested: {e}"))
    return ParseResult(sections=sections)
