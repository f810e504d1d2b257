"""covtree CLI."""

from covtree.cli.main import cli

__all__ = ["cli"]
