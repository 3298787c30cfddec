"""Shared utilities for sitekit CLI modules."""
from __future__ import annotations

import os
from typing import Callable, Optional

import typer
from rich.console import Console

from sitekit.core.config import ConfigError, SiteConfig
from sitekit.core.tasks import DeployError, SiteTasks
from sitekit.core.tools import MissingDependency, ToolError, ToolRunner


def is_mock() -> bool:
    """Return True when CLI runs in mock mode."""
    return os.environ.get("SITEKIT_MOCK") == "1"


def setup_file_logging(log_file: Optional[str] = None, verbose: bool = False) -> None:
    """Set up file logging for CLI commands.

    Args:
        log_file: Path to log file (optional)
        verbose: Enable verbose logging
    """
    from sitekit.core.logger import setup_file_logging as _setup_file_logging
    _setup_file_logging(log_file=log_file, verbose=verbose)


def get_runner(mock: Optional[bool] = None) -> ToolRunner:
    """Return a ToolRunner with mock defaults."""
    if mock is None:
        mock = is_mock()
    return ToolRunner(mock=mock)


def load_config(ctx: typer.Context, console: Console) -> SiteConfig:
    """Load sitekit.yml using the global --config option."""
    options = ctx.obj or {}
    try:
        return SiteConfig.load(options.get("config"))
    except ConfigError as e:
        handle_cli_error(e, console, verbose=options.get("verbose", False))


def run_site_task(
    ctx: typer.Context,
    console: Console,
    action: Callable[[SiteTasks], object],
    success: Optional[str] = None,
) -> None:
    """Run one SiteTasks action with the CLI's error handling.

    Missing tools and failing commands exit 1; Ctrl-C exits 130 after the
    action's own cleanup has run.
    """
    verbose = (ctx.obj or {}).get("verbose", False)
    tasks = SiteTasks(load_config(ctx, console), runner=get_runner())
    try:
        action(tasks)
    except KeyboardInterrupt:
        print_warning(console, "Interrupted")
        raise typer.Exit(130)
    except (MissingDependency, ToolError, DeployError) as e:
        handle_cli_error(e, console, verbose=verbose)

    if success:
        print_success(console, success)


def handle_cli_error(
    e: Exception,
    console: Console,
    verbose: bool = False,
    exit_code: int = 1
) -> None:
    """Handle CLI errors with consistent formatting.

    Args:
        e: Exception to handle
        console: Rich console for output
        verbose: Show exception traceback if True
        exit_code: Exit code to use
    """
    console.print(f"[red]Error:[/red] {e}")
    if verbose:
        console.print_exception()
    raise typer.Exit(exit_code)


def print_success(console: Console, message: str, prefix: str = "✓") -> None:
    """Print success message with consistent formatting."""
    console.print(f"[green]{prefix}[/green] {message}")


def print_error(console: Console, message: str, prefix: str = "✗") -> None:
    """Print error message with consistent formatting."""
    console.print(f"[red]{prefix}[/red] {message}")


def print_warning(console: Console, message: str, prefix: str = "⚠") -> None:
    """Print warning message with consistent formatting."""
    console.print(f"[yellow]{prefix}[/yellow] {message}")


def print_info(console: Console, message: str, prefix: str = "ℹ") -> None:
    """Print info message with consistent formatting."""
    console.print(f"[cyan]{prefix}[/cyan] {message}")
