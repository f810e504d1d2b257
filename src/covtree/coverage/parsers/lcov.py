"""LCOV format parser.

LCOV format is a plain text format with records like:
- TN:<test name>
- SF:<source file path>
- FN:<line>,<name>            (LCOV 2.x: FN:<start>,<end>,<name>)
- FNDA:<hit count>,<name>
- FNF:<functions found>
- FNH:<functions hit>
- BRDA:<line>,<block>,<branch>,<taken>
- BRF:<branches found>
- BRH:<branches hit>
- DA:<line>,<hit count>[,<checksum>]
- LF:<lines found>
- LH:<lines hit>
- end_of_record

Used by: Jest/Istanbul, pytest-cov, cargo-llvm-cov, gcov, dart test
"""

from __future__ import annotations

from dataclasses import dataclass, field

from covtree.coverage.models import (
    BranchDetail,
    CoverageCounts,
    CoverageParseError,
    CoverageSection,
    FunctionDetail,
    LineDetail,
)
from covtree.coverage.parsers.base import to_int

# Records that are only valid between SF: and end_of_record
_RECORD_FIELDS = frozenset(
    ("FN", "FNDA", "FNF", "FNH", "BRDA", "BRF", "BRH", "DA", "LF", "LH", "VER", "FNL", "FNA")
)


@dataclass
class _Record:
    """In-progress SF: record."""

    file: str
    title: str
    lines: list[LineDetail] = field(default_factory=list)
    branches: list[BranchDetail] = field(default_factory=list)
    fn_lines: dict[str, int] = field(default_factory=dict)  # name -> line
    fn_hits: dict[str, int] = field(default_factory=dict)  # name -> hits
    counts: dict[str, int] = field(default_factory=dict)  # LF/LH/FNF/... -> value

    def to_section(self) -> CoverageSection:
        names = list(self.fn_lines) + [n for n in self.fn_hits if n not in self.fn_lines]
        functions = tuple(
            FunctionDetail(name=n, line=self.fn_lines.get(n, 0), hit=self.fn_hits.get(n, 0))
            for n in names
        )
        return CoverageSection(
            file=self.file,
            title=self.title,
            lines=CoverageCounts(
                found=self.counts.get("LF"),
                hit=self.counts.get("LH"),
                details=tuple(self.lines),
            ),
            functions=CoverageCounts(
                found=self.counts.get("FNF"),
                hit=self.counts.get("FNH"),
                details=functions,
            ),
            branches=CoverageCounts(
                found=self.counts.get("BRF"),
                hit=self.counts.get("BRH"),
                details=tuple(self.branches),
            ),
        )


def _hits(value: str, what: str) -> int:
    # '-' means "never executed" / "branch not taken"
    return 0 if value == "-" else to_int(value, what)


def parse_lcov(content: str) -> list[CoverageSection]:
    """Parse LCOV tracefile content into sections."""
    sections: list[CoverageSection] = []
    current: _Record | None = None
    title = ""

    for lineno, raw in enumerate(content.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue

        if line == "end_of_record":
            if current is not None:
                sections.append(current.to_section())
            current = None
            continue

        key, sep, value = line.partition(":")
        if not sep:
            raise CoverageParseError(f"line {lineno}: not an LCOV record: {line!r}")

        if key == "TN":
            title = value
            continue
        if key == "SF":
            if current is not None:
                # Missing end_of_record before the next file
                sections.append(current.to_section())
            current = _Record(file=value, title=title)
            continue

        if key not in _RECORD_FIELDS:
            # Unknown record types are skipped, as lcov itself does
            continue
        if current is None:
            raise CoverageParseError(f"line {lineno}: {key} record outside of an SF: block")

        parts = value.split(",")
        where = f"line {lineno}"
        if key == "DA":
            if len(parts) < 2:
                raise CoverageParseError(f"{where}: malformed DA record: {line!r}")
            current.lines.append(
                LineDetail(
                    line=to_int(parts[0], f"{where} DA line", default=None),
                    hit=_hits(parts[1], f"{where} DA hits"),
                )
            )
        elif key == "BRDA":
            if len(parts) < 4:
                raise CoverageParseError(f"{where}: malformed BRDA record: {line!r}")
            current.branches.append(
                BranchDetail(
                    line=to_int(parts[0], f"{where} BRDA line", default=None),
                    block=to_int(parts[1], f"{where} BRDA block"),
                    branch=to_int(parts[2], f"{where} BRDA branch"),
                    taken=_hits(parts[3], f"{where} BRDA taken"),
                )
            )
        elif key == "FN":
            if len(parts) < 2:
                raise CoverageParseError(f"{where}: malformed FN record: {line!r}")
            if len(parts) >= 3 and parts[1].isdigit():
                name = ",".join(parts[2:])
            else:
                name = ",".join(parts[1:])
            current.fn_lines[name] = to_int(parts[0], f"{where} FN line", default=None)
        elif key == "FNDA":
            if len(parts) < 2:
                raise CoverageParseError(f"{where}: malformed FNDA record: {line!r}")
            current.fn_hits[",".join(parts[1:])] = to_int(parts[0], f"{where} FNDA hits")
        elif key in ("LF", "LH", "FNF", "FNH", "BRF", "BRH"):
            current.counts[key] = to_int(value, f"{where} {key}", default=None)

    # Handle file without end_of_record
    if current is not None:
        sections.append(current.to_section())

    if not sections:
        raise CoverageParseError("No SF: records found")
    return sections
