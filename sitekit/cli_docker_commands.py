"""Container CLI commands - up, down, bash, prune."""
import typer
from rich.console import Console

from sitekit.cli_support import run_site_task

# Module-level console instance (will be set by register function)
console: Console = Console()


def up(ctx: typer.Context):
    """Start the docker-compose stack in the background."""
    run_site_task(ctx, console, lambda tasks: tasks.up(), success="Containers started")


def down(ctx: typer.Context):
    """Stop and remove the docker-compose stack."""
    run_site_task(ctx, console, lambda tasks: tasks.down(), success="Containers stopped")


def shell(ctx: typer.Context):
    """Open a bash shell in the site container."""
    run_site_task(ctx, console, lambda tasks: tasks.shell())


def prune(ctx: typer.Context):
    """Remove all unused docker images, containers and volumes."""
    run_site_task(ctx, console, lambda tasks: tasks.prune(), success="Docker pruned")


def register_docker_commands(app: typer.Typer, shared_console: Console):
    """Register container commands with the main Typer app.

    Args:
        app: Main Typer application
        shared_console: Shared Rich console instance
    """
    global console
    console = shared_console

    app.command()(up)
    app.command()(down)
    app.command("bash")(shell)
    app.command()(prune)
