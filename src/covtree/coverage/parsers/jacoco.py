"""JaCoCo XML format parser.

JaCoCo is the standard Java/Kotlin coverage tool, used via Maven and Gradle.

Structure:
<report name="...">
  <package name="com/example">
    <class name="com/example/Foo" sourcefilename="Foo.java">
      <method name="bar" desc="()V" line="10">
        <counter type="LINE" missed="5" covered="10"/>
        <counter type="METHOD" missed="0" covered="1"/>
      </method>
    </class>
    <sourcefile name="Foo.java">
      <line nr="1" mi="0" ci="1" mb="0" cb="0"/>
      <line nr="2" mi="1" ci="0" mb="1" cb="1"/>
      <counter type="LINE" missed="1" covered="1"/>
    </sourcefile>
  </package>
</report>

Files are reported as ``<package path>/<sourcefile name>``, i.e. relative to
a source root the report does not name. The path reconciler resolves them.
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
from covtree.coverage.parsers.base import check_branch_count, parse_xml, to_int


def _counter(elem: ET.Element, counter_type: str) -> tuple[int | None, int | None]:
    """(found, hit) from a <counter type=...> child, or (None, None)."""
    counter = elem.find(f"counter[@type='{counter_type}']")
    if counter is None:
        return None, None
    missed = to_int(counter.get("missed"), f"{counter_type} counter missed")
    covered = to_int(counter.get("covered"), f"{counter_type} counter covered")
    return missed + covered, covered


def _methods_by_sourcefile(package: ET.Element) -> dict[str, list[FunctionDetail]]:
    methods: dict[str, list[FunctionDetail]] = {}
    for cls in package.findall("class"):
        source_filename = cls.get("sourcefilename", "")
        if not source_filename:
            continue
        for method in cls.findall("method"):
            name = method.get("name", "")
            if not name:
                continue
            _, covered = _counter(method, "METHOD")
            methods.setdefault(source_filename, []).append(
                FunctionDetail(
                    name=name,
                    line=to_int(method.get("line"), f"line of method {name}"),
                    hit=covered or 0,
                )
            )
    return methods


def _parse_sourcefile(
    sourcefile: ET.Element,
    package_path: str,
    functions: list[FunctionDetail],
    title: str,
) -> CoverageSection:
    filename = sourcefile.get("name", "")
    file_path = f"{package_path}/{filename}" if package_path and filename else filename

    lines: list[LineDetail] = []
    branches: list[BranchDetail] = []
    for line in sourcefile.findall("line"):
        nr = to_int(line.get("nr"), "line nr", default=None)
        ci = to_int(line.get("ci"), f"ci of line {nr}")  # covered instructions
        mb = to_int(line.get("mb"), f"mb of line {nr}")  # missed branches
        cb = to_int(line.get("cb"), f"cb of line {nr}")  # covered branches

        lines.append(LineDetail(line=nr, hit=ci))
        for branch_id in range(check_branch_count(mb + cb, nr)):
            branches.append(
                BranchDetail(line=nr, block=0, branch=branch_id, taken=1 if branch_id < cb else 0)
            )

    lines_found, lines_hit = _counter(sourcefile, "LINE")
    fn_found, fn_hit = _counter(sourcefile, "METHOD")
    br_found, br_hit = _counter(sourcefile, "BRANCH")

    return CoverageSection(
        file=file_path,
        title=title,
        lines=CoverageCounts(found=lines_found, hit=lines_hit, details=tuple(lines)),
        functions=CoverageCounts(found=fn_found, hit=fn_hit, details=tuple(functions)),
        branches=CoverageCounts(found=br_found, hit=br_hit, details=tuple(branches)),
    )


def parse_jacoco(content: str) -> list[CoverageSection]:
    """Parse JaCoCo XML content into sections."""
    root = parse_xml(content, "JaCoCo")
    if root.tag != "report":
        raise CoverageParseError(f"Expected <report> root element, got <{root.tag}>")

    title = root.get("name", "")
    sections: list[CoverageSection] = []
    # Packages can be nested in <group> elements for multi-module builds
    for package in root.iter("package"):
        package_path = package.get("name", "")
        methods = _methods_by_sourcefile(package)
        for sourcefile in package.findall("sourcefile"):
            sections.append(
                _parse_sourcefile(
                    sourcefile,
                    package_path,
                    methods.get(sourcefile.get("name", ""), []),
                    title,
                )
            )
    return sections
