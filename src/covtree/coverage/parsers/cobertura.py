"""Cobertura XML format parser.

Cobertura XML is used by many coverage tools across languages:
- Python: coverage.py
- .NET: coverlet
- Go: gocover-cobertura
- JavaScript: istanbul/nyc cobertura reporter

Structure:
<coverage line-rate="0.85" branch-rate="0.50" ...>
  <sources>
    <source>/abs/path/to/project</source>
  </sources>
  <packages>
    <package name="...">
      <classes>
        <class name="..." filename="..." line-rate="...">
          <methods>
            <method name="..." signature="..." line-rate="...">
              <lines>
                <line number="1" hits="1" branch="false"/>
              </lines>
            </method>
          </methods>
          <lines>
            <line number="1" hits="1"/>
            <line number="2" hits="0" branch="true" condition-coverage="50% (1/2)"/>
          </lines>
        </class>
      </classes>
    </package>
  </packages>
</coverage>
"""

from __future__ import annotations

import posixpath
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field

from covtree.coverage.models import (
    BranchDetail,
    CoverageCounts,
    CoverageParseError,
    CoverageSection,
    FunctionDetail,
    LineDetail,
)
from covtree.coverage.parsers.base import check_branch_count, parse_xml, to_int
from covtree.coverage.paths import is_absolute, to_posix

_CONDITION_RE = re.compile(r"\((\d+)/(\d+)\)")


@dataclass
class _FileAccumulator:
    """Classes sharing one filename (e.g. inner classes) collapse into one section."""

    lines: dict[int, int] = field(default_factory=dict)  # line -> hits
    functions: dict[str, FunctionDetail] = field(default_factory=dict)
    branches: dict[int, tuple[int, int]] = field(default_factory=dict)  # line -> (taken, total)


def _resolve_filename(filename: str, source: str | None) -> str:
    if source and not is_absolute(filename):
        return posixpath.join(to_posix(source), to_posix(filename))
    return filename


def _collect_class(cls: ET.Element, acc: _FileAccumulator) -> None:
    for method in cls.findall("./methods/method"):
        name = method.get("name", "")
        if not name or name in acc.functions:
            continue
        method_lines = method.findall("./lines/line")
        start_line = 0
        hits = 0
        if method_lines:
            start_line = to_int(method_lines[0].get("number"), f"line number of method {name}")
            hits = to_int(method_lines[0].get("hits"), f"hits of method {name}")
        acc.functions[name] = FunctionDetail(name=name, line=start_line, hit=hits)

    # Class-level lines only; method-level lines repeat them
    for line in cls.findall("./lines/line"):
        number = to_int(line.get("number"), "line number", default=None)
        hits = to_int(line.get("hits"), f"hits of line {number}")
        acc.lines[number] = max(acc.lines.get(number, 0), hits)

        if line.get("branch") == "true":
            match = _CONDITION_RE.search(line.get("condition-coverage", ""))
            if match:
                total = check_branch_count(int(match.group(2)), number)
                acc.branches[number] = (int(match.group(1)), total)


def _to_section(path: str, title: str, acc: _FileAccumulator) -> CoverageSection:
    branches = tuple(
        BranchDetail(line=line, block=0, branch=i, taken=1 if i < taken else 0)
        for line, (taken, total) in sorted(acc.branches.items())
        for i in range(total)
    )
    return CoverageSection(
        file=path,
        title=title,
        lines=CoverageCounts(
            details=tuple(LineDetail(line=n, hit=h) for n, h in sorted(acc.lines.items()))
        ),
        functions=CoverageCounts(details=tuple(acc.functions.values())),
        branches=CoverageCounts(details=branches),
    )


def parse_cobertura(content: str) -> list[CoverageSection]:
    """Parse Cobertura XML content into sections."""
    root = parse_xml(content, "Cobertura")
    if root.tag != "coverage":
        raise CoverageParseError(f"Expected <coverage> root element, got <{root.tag}>")

    sources = [
        s.text.strip() for s in root.findall("./sources/source") if s.text and s.text.strip()
    ]
    source = sources[0] if sources else None

    files: dict[str, _FileAccumulator] = {}
    titles: dict[str, str] = {}
    for package in root.iter("package"):
        for cls in package.iter("class"):
            filename = cls.get("filename", "")
            if not filename:
                # Keep it so the normalizer can report the invalid section
                files.setdefault("", _FileAccumulator())
                continue
            path = _resolve_filename(filename, source)
            titles.setdefault(path, package.get("name", ""))
            _collect_class(cls, files.setdefault(path, _FileAccumulator()))

    return [_to_section(path, titles.get(path, ""), acc) for path, acc in files.items()]
