"""Coverage tree: nodes, classification and assembly."""

from covtree.tree.builder import TreeBuilder
from covtree.tree.levels import (
    CoverageLevel,
    CoverageLevelThresholds,
    classify,
    coverage_percent,
)
from covtree.tree.nodes import CoverageNode, FileNode, FolderNode, RootNode
from covtree.tree.report import build_summary

__all__ = [
    "CoverageLevel",
    "CoverageLevelThresholds",
    "CoverageNode",
    "FileNode",
    "FolderNode",
    "RootNode",
    "TreeBuilder",
    "build_summary",
    "classify",
    "coverage_percent",
]
