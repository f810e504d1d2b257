"""Clover XML format parser.

Clover is used by multiple tools:
- PHP: phpunit --coverage-clover
- JavaScript: istanbul/nyc clover reporter
- Kotlin: kover

Structure:
<coverage generated="..." clover="...">
  <project timestamp="...">
    <metrics ...aggregate stats.../>
    <package name="com.example">
      <file name="Foo.php" path="/path/to/Foo.php">
        <class name="FooClass" .../>
        <line num="1" type="stmt" count="1"/>
        <line num="5" type="cond" count="0" truecount="1" falsecount="0"/>
        <line num="10" type="method" name="bar" count="3"/>
        <metrics statements="10" coveredstatements="8" .../>
      </file>
    </package>
  </project>
</coverage>

Line types:
- stmt: statement line
- cond: conditional (branch)
- method: method declaration
"""

import xml.etree.ElementTree as ET

from covtree.coverage.models import (
    BranchDetail,
    CoverageCounts,
    CoverageParseError,
    CoverageSection,
    FunctionDetail,
    LineDetail,
)
from covtree.coverage.parsers.base import parse_xml, to_int


def _metric_counts(
    metrics: ET.Element | None,
    total_attr: str,
    covered_attr: str,
) -> tuple[int | None, int | None]:
    if metrics is None or metrics.get(total_attr) is None:
        return None, None
    return (
        to_int(metrics.get(total_attr), total_attr),
        to_int(metrics.get(covered_attr), covered_attr),
    )


def _parse_file(file_elem: ET.Element, title: str) -> CoverageSection:
    file_path = file_elem.get("path") or file_elem.get("name", "")

    lines: list[LineDetail] = []
    functions: list[FunctionDetail] = []
    branches: list[BranchDetail] = []

    for line in file_elem.findall("line"):
        num = to_int(line.get("num"), "line num", default=None)
        count = to_int(line.get("count"), f"count of line {num}")
        line_type = line.get("type", "stmt")

        if line_type == "method":
            functions.append(
                FunctionDetail(name=line.get("name", f"method_{num}"), line=num, hit=count)
            )
            continue

        lines.append(LineDetail(line=num, hit=count))
        if line_type == "cond":
            true_count = to_int(line.get("truecount"), f"truecount of line {num}")
            false_count = to_int(line.get("falsecount"), f"falsecount of line {num}")
            branches.append(BranchDetail(line=num, block=0, branch=0, taken=true_count))
            branches.append(BranchDetail(line=num, block=0, branch=1, taken=false_count))

    # File-level metrics are only used when there are no line elements to derive from
    metrics = file_elem.find("metrics")
    lines_found: int | None = None
    lines_hit: int | None = None
    fn_found: int | None = None
    fn_hit: int | None = None
    if not lines:
        lines_found, lines_hit = _metric_counts(metrics, "statements", "coveredstatements")
    if not functions:
        fn_found, fn_hit = _metric_counts(metrics, "methods", "coveredmethods")

    return CoverageSection(
        file=file_path,
        title=title,
        lines=CoverageCounts(found=lines_found, hit=lines_hit, details=tuple(lines)),
        functions=CoverageCounts(found=fn_found, hit=fn_hit, details=tuple(functions)),
        branches=CoverageCounts(details=tuple(branches)),
    )


def parse_clover(content: str) -> list[CoverageSection]:
    """Parse Clover XML content into sections."""
    root = parse_xml(content, "Clover")
    if root.tag != "coverage":
        raise CoverageParseError(f"Expected <coverage> root element, got <{root.tag}>")

    project = root.find("project")
    title = project.get("name", "") if project is not None else ""

    return [_parse_file(file_elem, title) for file_elem in root.iter("file")]
