"""`start` command - bootstrap site sources from the starter template."""
import typer
from rich.console import Console

from sitekit.bootstrap import BootstrapError, TemplateBootstrapper
from sitekit.bootstrap.core import CONFIRM_TOKEN
from sitekit.cli_support import (
    get_runner,
    handle_cli_error,
    load_config,
    print_info,
    print_success,
    print_warning,
)
from sitekit.core.tools import MissingDependency

# Module-level console instance (will be set by register function)
console: Console = Console()


def _ask_confirmation() -> str:
    try:
        return typer.prompt(
            f"Are you sure you want to run 'start'? {CONFIRM_TOKEN}/no",
            default="",
            show_default=False,
        )
    except typer.Abort:
        return ""


def start(ctx: typer.Context):
    """Start a new project from the starter template (runs once).

    Clones the starter repository, converts it for Jekyll and merges it into
    the source directory. Enable with `enable_start: true` in sitekit.yml;
    it switches itself off after a successful run.
    """
    verbose = (ctx.obj or {}).get("verbose", False)
    config = load_config(ctx, console)
    bootstrapper = TemplateBootstrapper(config, confirm=_ask_confirmation, runner=get_runner())

    try:
        result = bootstrapper.run()
    except BootstrapError as e:
        if e.exit_code == 0:
            print_info(console, str(e))
            raise typer.Exit(0)
        handle_cli_error(f"{e.stage}: {e}", console, verbose=verbose, exit_code=e.exit_code)
    except MissingDependency as e:
        handle_cli_error(f"guard: {e}", console, verbose=verbose)

    if result.mocked:
        print_info(console, f"MOCK: starter not merged into {result.destination}")
        return

    for warning in result.warnings:
        print_warning(console, warning)
    print_success(console, f"Starter merged into {result.destination}")


def register_start_commands(app: typer.Typer, shared_console: Console):
    """Register the start command with the main Typer app.

    Args:
        app: Main Typer application
        shared_console: Shared Rich console instance
    """
    global console
    console = shared_console

    app.command()(start)
