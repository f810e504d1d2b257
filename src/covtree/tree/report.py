"""Structured summary of a coverage tree.

Output schema for build_summary:
{
    "summary": {
        "total_projects": int,
        "total_files": int,
        "total_lines": int,
        "covered_lines": int,
        "line_coverage_percent": float,
        "levels": {"low": int, "medium": int, "high": int}  # file counts
    },
    "projects": [
        {
            "path": str,
            "label": str,
            "total_lines": int,
            "covered_lines": int,
            "coverage_percent": float,
            "level": "low" | "medium" | "high",
            "children": [...]  # same shape; files have no "children"
        },
        ...
    ]
}
"""

from typing import Any

from covtree.tree.levels import CoverageLevel
from covtree.tree.nodes import CoverageNode, FileNode, RootNode


def node_to_dict(node: CoverageNode) -> dict[str, Any]:
    """Serialize a node and its descendants, children ordered by path."""
    data: dict[str, Any] = {
        "path": node.path,
        "label": node.label,
        "total_lines": node.total_lines_count,
        "covered_lines": node.covered_lines_count,
        "coverage_percent": round(node.coverage_percent, 2),
        "level": node.level.value,
    }
    if not isinstance(node, FileNode):
        data["children"] = [node_to_dict(child) for child in node.sorted_children()]
    return data


def build_summary(root: RootNode, *, include_tree: bool = True) -> dict[str, Any]:
    """Build a structured summary dict suitable for JSON serialization.

    Args:
        root: The aggregated coverage tree.
        include_tree: Whether to include the per-project node tree.
    """
    files = [node for node in root.iter_nodes() if isinstance(node, FileNode)]
    levels = {level.value: 0 for level in CoverageLevel}
    for file in files:
        levels[file.level.value] += 1

    result: dict[str, Any] = {
        "summary": {
            "total_projects": len(root.children),
            "total_files": len(files),
            "total_lines": root.total_lines_count,
            "covered_lines": root.covered_lines_count,
            "line_coverage_percent": round(root.coverage_percent, 2),
            "levels": levels,
        }
    }
    if include_tree:
        result["projects"] = [node_to_dict(project) for project in root.sorted_children()]
    return result
