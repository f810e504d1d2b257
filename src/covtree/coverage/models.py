"""Canonical coverage data model.

Every report format converts into a list of ``CoverageSection`` values, one
per source file. Counts may be absent (``None``) when a format does not
report them; the normalizer derives them from per-line details.
"""

from __future__ import annotations

from dataclasses import dataclass, field


class CoverageParseError(Exception):
    """Error parsing coverage data."""

    pass


@dataclass(frozen=True, slots=True)
class LineDetail:
    """Hit count of a single instrumented line (1-based)."""

    line: int
    hit: int


@dataclass(frozen=True, slots=True)
class FunctionDetail:
    """Function/method coverage."""

    name: str
    line: int
    hit: int


@dataclass(frozen=True, slots=True)
class BranchDetail:
    """Branch coverage at a specific line.

    Represents a single branch point (e.g., if/else, switch case).
    """

    line: int
    block: int
    branch: int
    taken: int

    @property
    def hit(self) -> int:
        return self.taken


@dataclass(frozen=True, slots=True)
class CoverageCounts:
    """found/hit totals plus optional per-item details.

    ``found``/``hit`` are None when the source format did not supply them.
    """

    found: int | None = None
    hit: int | None = None
    details: tuple[LineDetail | FunctionDetail | BranchDetail, ...] = ()

    @property
    def derived_found(self) -> int:
        return len(self.details)

    @property
    def derived_hit(self) -> int:
        return sum(1 for d in self.details if d.hit > 0)


@dataclass(frozen=True, slots=True)
class CoverageSection:
    """One source file's coverage facts within one report."""

    file: str
    title: str = ""
    lines: CoverageCounts = field(default_factory=CoverageCounts)
    functions: CoverageCounts = field(default_factory=CoverageCounts)
    branches: CoverageCounts = field(default_factory=CoverageCounts)

    @property
    def lines_found(self) -> int:
        return self.lines.found or 0

    @property
    def lines_hit(self) -> int:
        return self.lines.hit or 0


# Normalized file path -> section, unique per project root
ProjectCoverage = dict[str, CoverageSection]
