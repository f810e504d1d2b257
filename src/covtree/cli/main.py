"""covtree CLI - covtree command."""

from pathlib import Path

import click

from covtree.cli.detect import detect_command
from covtree.cli.report import report_command
from covtree.config.loader import load_config
from covtree.config.models import LoggingConfig
from covtree.core.errors import ConfigError
from covtree.core.logging import configure_logging


def _logging_config(verbose: bool) -> LoggingConfig:
    """Logging section of the working directory's config; -v forces DEBUG."""
    try:
        config = load_config(Path.cwd()).logging
    except ConfigError as e:
        click.echo(f"Warning: {e} (using default logging)", err=True)
        config = LoggingConfig()
    if verbose:
        config = config.model_copy(update={"level": "DEBUG"})
    return config


@click.group()
@click.version_option(version="0.1.0", prog_name="covtree")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """covtree - Aggregate LCOV, Clover, JaCoCo and Cobertura reports into a coverage tree."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    configure_logging(config=_logging_config(verbose))


cli.add_command(report_command, name="report")
cli.add_command(detect_command, name="detect")


if __name__ == "__main__":
    cli()
