"""Parser signature and helpers shared by the format parsers."""

import xml.etree.ElementTree as ET
from collections.abc import Callable

from covtree.coverage.models import CoverageParseError, CoverageSection

# Each format is one plain function: raw content -> sections.
# Structural problems raise CoverageParseError.
ParserFunc = Callable[[str], list[CoverageSection]]

# Branch counts are expanded into one detail per branch
MAX_BRANCHES_PER_LINE = 4096


def to_int(value: str | None, what: str, *, default: int | None = 0) -> int:
    """Parse an integer attribute/field, mapping failures to CoverageParseError."""
    if value is None or value == "":
        if default is None:
            raise CoverageParseError(f"Missing {what}")
        return default
    try:
        return int(value)
    except ValueError:
        # Some tools write float hit counts (e.g. "1.0")
        try:
            as_float = float(value)
        except ValueError:
            raise CoverageParseError(f"Invalid {what}: {value!r}") from None
        if not as_float.is_integer():
            raise CoverageParseError(f"Invalid {what}: {value!r}") from None
        return int(as_float)


def parse_xml(content: str, format_name: str) -> ET.Element:
    """Parse XML content and strip namespaces from every tag."""
    try:
        root = ET.fromstring(content.lstrip("\ufeff"))
    except ET.ParseError as e:
        raise CoverageParseError(f"Invalid {format_name} XML: {e}") from e

    for elem in root.iter():
        if "}" in elem.tag:
            elem.tag = elem.tag.split("}", 1)[1]
    return root


def check_branch_count(count: int, line: int) -> int:
    """Reject branch counts no real report produces (corrupt or hostile input)."""
    if count < 0 or count > MAX_BRANCHES_PER_LINE:
        raise CoverageParseError(f"Implausible branch count {count} on line {line}")
    return count
