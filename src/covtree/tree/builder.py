"""Builds the immutable coverage tree from reconciled per-root coverage.

The builder owns its in-progress node map; nothing is shared between builds.
Folders are drafted as mutable segment maps while paths are walked and frozen
bottom-up into FolderNode/RootNode on ``build()``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import structlog

from covtree.coverage.models import ProjectCoverage
from covtree.coverage.paths import is_absolute, split_segments, to_posix
from covtree.diagnostics import DiagnosticSink
from covtree.discovery import ProjectRoot
from covtree.tree.levels import CoverageLevelThresholds
from covtree.tree.nodes import CoverageNode, FileNode, FolderNode, RootNode

logger = structlog.get_logger()

SUBSYSTEM = "tree"


@dataclass
class _DraftFolder:
    path: str
    label: str
    thresholds: CoverageLevelThresholds
    # segment -> draft folder or finished file node, in insertion order
    children: dict[str, _DraftFolder | FileNode] = field(default_factory=dict)

    def freeze(self) -> FolderNode:
        return FolderNode(
            path=self.path,
            label=self.label,
            thresholds=self.thresholds,
            children=tuple(
                child.freeze() if isinstance(child, _DraftFolder) else child
                for child in self.children.values()
            ),
        )


class TreeBuilder:
    """Assembles RootNode -> project FolderNode -> FolderNode* -> FileNode.

    Usage::

        builder = TreeBuilder(sink=sink)
        builder.add_project(ProjectRoot.from_path("/work/app"), coverage, thresholds)
        root = builder.build()
    """

    def __init__(self, *, sink: DiagnosticSink) -> None:
        self._sink = sink
        self._projects: list[_DraftFolder] = []

    def add_project(
        self,
        root: ProjectRoot,
        coverage: ProjectCoverage,
        thresholds: CoverageLevelThresholds,
    ) -> None:
        """Add one project root and all of its files.

        Args:
            root: The project root (absolute path and display name).
            coverage: Reconciled coverage keyed by root-relative path.
            thresholds: Classification thresholds of this project root.
        """
        project = _DraftFolder(path=str(root.path), label=root.name, thresholds=thresholds)
        self._projects.append(project)
        for file_path, section in coverage.items():
            self._add_file(project, file_path, section.lines_found, section.lines_hit)

    def build(self) -> RootNode:
        root = RootNode(children=tuple(project.freeze() for project in self._projects))
        logger.debug(
            "coverage_tree_built",
            projects=len(root.children),
            total_lines=root.total_lines_count,
            covered_lines=root.covered_lines_count,
        )
        return root

    def _node_path(self, project: _DraftFolder, file_path: str, segments: list[str]) -> str:
        if is_absolute(file_path):
            # Unreconciled path outside the project root: keep it as reported
            anchor = "/" if to_posix(file_path).startswith("/") else ""
            return anchor + "/".join(segments)
        return os.path.join(project.path, *segments)

    def _add_file(self, project: _DraftFolder, file_path: str, total: int, covered: int) -> None:
        segments = split_segments(file_path)
        if not segments:
            self._sink.warning(SUBSYSTEM, "file_path_empty", file=file_path)
            return

        parent = project
        for depth, segment in enumerate(segments[:-1], start=1):
            existing = parent.children.get(segment)
            if existing is None:
                existing = _DraftFolder(
                    path=self._node_path(project, file_path, segments[:depth]),
                    label=segment,
                    thresholds=project.thresholds,
                )
                parent.children[segment] = existing
            elif isinstance(existing, FileNode):
                self._sink.warning(
                    SUBSYSTEM, "folder_conflicts_with_file", file=file_path, conflict=existing.path
                )
                return
            parent = existing

        name = segments[-1]
        existing = parent.children.get(name)
        if isinstance(existing, _DraftFolder):
            self._sink.warning(
                SUBSYSTEM, "file_conflicts_with_folder", file=file_path, conflict=existing.path
            )
            return
        if existing is not None:
            self._sink.warning(SUBSYSTEM, "duplicate_file", file=file_path)

        absolute = self._node_path(project, file_path, segments)
        if not Path(absolute).exists():
            self._sink.warning(
                SUBSYSTEM,
                "file_missing",
                file=absolute,
                hint="check that the project root matches the root the report was generated in",
            )
        parent.children[name] = FileNode(
            path=absolute,
            label=name,
            thresholds=project.thresholds,
            total_lines_count=total,
            covered_lines_count=covered,
        )


__all__ = ["CoverageNode", "TreeBuilder"]
