#!/usr/bin/env python3
"""sitekit CLI - Task runner for Jekyll + esbuild sites."""
from typing import Optional

import typer
from rich.console import Console

from sitekit.cli_docker_commands import register_docker_commands
from sitekit.cli_site_commands import register_site_commands
from sitekit.cli_start_commands import register_start_commands
from sitekit.cli_support import setup_file_logging
from sitekit.core.logger import get_logger

app = typer.Typer(
    name="sitekit",
    help="""sitekit - Task runner for Jekyll + esbuild sites

Settings live in sitekit.yml.

Quick start:
  sitekit dev      # Serve with live reload
  sitekit build    # Production build
  sitekit deploy   # Build and rsync to the server
""",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()
logger = get_logger(__name__)


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[str] = typer.Option(
        None, "--config", "-c", help="Config file path (default: sitekit.yml or $SITEKIT_CONFIG)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging and tracebacks"),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="Also log to this file"),
):
    """Global options shared by every command."""
    ctx.obj = {"config": config, "verbose": verbose}
    if log_file or verbose:
        setup_file_logging(log_file=log_file, verbose=verbose)


register_site_commands(app, console)
register_docker_commands(app, console)
register_start_commands(app, console)

if __name__ == "__main__":
    app()
