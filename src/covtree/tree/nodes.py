"""Immutable coverage tree nodes.

RootNode
 └── FolderNode (one per project root)
      ├── FolderNode (directory)
      │    └── FileNode
      └── FileNode

Folder and root counts are the sums over their children, computed once when
the node is created. Nodes are never mutated afterwards, so the sums cannot
go stale.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

from covtree.tree.levels import (
    CoverageLevel,
    CoverageLevelThresholds,
    classify,
    coverage_percent,
)


class _CoverageReadout:
    """Derived read accessors shared by all node kinds."""

    __slots__ = ()

    path: str
    label: str
    total_lines_count: int
    covered_lines_count: int

    @property
    def coverage_percent(self) -> float:
        return coverage_percent(self.covered_lines_count, self.total_lines_count)

    @property
    def description(self) -> str:
        """Percentage rounded to one decimal, e.g. ``66.7%`` or ``100%``."""
        return f"{round(self.coverage_percent, 1):g}%"

    @property
    def tooltip(self) -> str:
        return f"{self.label}: {self.description}"


@dataclass(frozen=True, slots=True)
class FileNode(_CoverageReadout):
    """Leaf: counts come straight from the reconciled coverage section."""

    path: str
    label: str
    thresholds: CoverageLevelThresholds
    total_lines_count: int
    covered_lines_count: int

    @property
    def children(self) -> tuple[CoverageNode, ...]:
        return ()

    @property
    def level(self) -> CoverageLevel:
        return classify(self.covered_lines_count, self.total_lines_count, self.thresholds)


def _sum_children(node: FolderNode | RootNode) -> None:
    object.__setattr__(node, "total_lines_count", sum(c.total_lines_count for c in node.children))
    object.__setattr__(
        node, "covered_lines_count", sum(c.covered_lines_count for c in node.children)
    )


class _Container:
    __slots__ = ()

    children: tuple[CoverageNode, ...]

    def sorted_children(self) -> list[CoverageNode]:
        """Children ordered by path, the order trees are displayed in."""
        return sorted(self.children, key=lambda node: node.path)

    def iter_nodes(self) -> Iterator[CoverageNode]:
        """All descendants, depth first, in construction order."""
        for child in self.children:
            yield child
            if isinstance(child, FolderNode):
                yield from child.iter_nodes()


@dataclass(frozen=True, slots=True)
class FolderNode(_Container, _CoverageReadout):
    """Directory or project root; counts are the sum over its children."""

    path: str
    label: str
    thresholds: CoverageLevelThresholds
    children: tuple[CoverageNode, ...] = ()
    total_lines_count: int = field(init=False, default=0)
    covered_lines_count: int = field(init=False, default=0)

    def __post_init__(self) -> None:
        _sum_children(self)

    @property
    def level(self) -> CoverageLevel:
        return classify(self.covered_lines_count, self.total_lines_count, self.thresholds)


@dataclass(frozen=True, slots=True)
class RootNode(_Container, _CoverageReadout):
    """Synthetic top-level container across all project roots.

    Project roots may use different thresholds, so the root has no level.
    """

    path: str = ""
    label: str = ""
    children: tuple[FolderNode, ...] = ()
    total_lines_count: int = field(init=False, default=0)
    covered_lines_count: int = field(init=False, default=0)

    def __post_init__(self) -> None:
        _sum_children(self)


CoverageNode = FileNode | FolderNode
