"""covtree detect command - print the detected format of report files."""

from pathlib import Path

import click

from covtree.coverage.parsers import detect_format
from covtree.discovery import read_text_file


@click.command()
@click.argument(
    "files",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.pass_context
def detect_command(ctx: click.Context, files: tuple[Path, ...]) -> None:
    """Print the coverage format of each FILE (clover, jacoco, cobertura, lcov or unknown)."""
    failed = False
    for path in files:
        try:
            content = read_text_file(path)
        except (OSError, UnicodeDecodeError) as e:
            click.echo(f"{path}: unreadable ({e})", err=True)
            failed = True
            continue
        click.echo(f"{path}: {detect_format(content).value}")
    if failed:
        ctx.exit(1)
