"""covtree report command - aggregate coverage and print the tree."""

import json
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.tree import Tree

from covtree.core.errors import CovtreeError
from covtree.diagnostics import CollectingDiagnosticSink
from covtree.discovery import ProjectRoot
from covtree.pipeline import aggregate
from covtree.tree.levels import CoverageLevel
from covtree.tree.nodes import CoverageNode, FileNode, RootNode
from covtree.tree.report import build_summary

LEVEL_STYLES = {
    CoverageLevel.LOW: "red",
    CoverageLevel.MEDIUM: "yellow",
    CoverageLevel.HIGH: "green",
}


def _node_label(node: CoverageNode) -> str:
    style = LEVEL_STYLES[node.level]
    name = escape(node.label)
    if not isinstance(node, FileNode):
        name = f"[bold]{name}[/bold]"
    return f"{name} [{style}]{node.description}[/{style}]"


def _add_children(branch: Tree, node: CoverageNode) -> None:
    for child in node.sorted_children() if not isinstance(node, FileNode) else ():
        _add_children(branch.add(_node_label(child)), child)


def render_tree(root: RootNode) -> Tree:
    """Rich tree of all projects, children ordered by path and coloured by level."""
    tree = Tree(
        f"[bold]Coverage[/bold] {root.description} "
        f"[dim]({root.covered_lines_count}/{root.total_lines_count} lines)[/dim]"
    )
    for project in root.sorted_children():
        _add_children(tree.add(_node_label(project)), project)
    return tree


@click.command()
@click.argument(
    "roots",
    nargs=-1,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def report_command(roots: tuple[Path, ...], as_json: bool) -> None:
    """Aggregate coverage reports and print the coverage tree.

    ROOTS are project root directories (default: current directory).
    """
    project_roots = [ProjectRoot.from_path(root) for root in roots or (Path.cwd(),)]
    sink = CollectingDiagnosticSink()
    try:
        tree = aggregate(project_roots, sink=sink)
    except CovtreeError as e:
        raise click.ClickException(str(e)) from e

    if as_json:
        summary = build_summary(tree)
        summary["diagnostics"] = [
            {
                "level": d.level,
                "subsystem": d.subsystem,
                "message": d.message,
                "source": d.source,
            }
            for d in sink.diagnostics
        ]
        click.echo(json.dumps(summary, indent=2))
        return

    console = Console()
    if not tree.children:
        console.print("[yellow]No coverage files found[/yellow]")
    else:
        console.print(render_tree(tree))

    diagnostics = sink.diagnostics
    if diagnostics:
        errors = sum(1 for d in diagnostics if d.level == "error")
        Console(stderr=True).print(
            f"[dim]{len(diagnostics) - errors} warning(s), {errors} error(s)[/dim]",
            highlight=False,
        )
