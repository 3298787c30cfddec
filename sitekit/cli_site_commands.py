"""Site CLI commands - dev, build, deploy, backup, preview, watch, clean."""
import typer
from rich.console import Console

from sitekit.cli_support import print_success, run_site_task

# Module-level console instance (will be set by register function)
console: Console = Console()


def dev(ctx: typer.Context):
    """Serve the site with live reload and bundle scripts on change."""
    run_site_task(ctx, console, lambda tasks: tasks.dev())


def build(ctx: typer.Context):
    """Bundle scripts with esbuild, then build the site with Jekyll."""
    run_site_task(ctx, console, lambda tasks: tasks.build(), success="Build complete")


def deploy(ctx: typer.Context):
    """Clean build and rsync the output directory to the deploy server."""
    run_site_task(ctx, console, lambda tasks: tasks.deploy(), success="Deployed")


def backup(ctx: typer.Context):
    """Archive the project with 7z, excluding dist/ and node_modules/."""

    def _backup(tasks):
        archive = tasks.backup()
        print_success(console, f"Backup written to {archive.name}")

    run_site_task(ctx, console, _backup)


def preview(ctx: typer.Context):
    """Serve the site on the configured preview host and port."""
    run_site_task(ctx, console, lambda tasks: tasks.preview())


def watch(ctx: typer.Context):
    """Rebuild site and scripts on change without serving."""
    run_site_task(ctx, console, lambda tasks: tasks.watch())


def clean(ctx: typer.Context):
    """Remove generated site files (jekyll clean)."""
    run_site_task(ctx, console, lambda tasks: tasks.clean(), success="Cleaned")


def register_site_commands(app: typer.Typer, shared_console: Console):
    """Register site commands with the main Typer app.

    Args:
        app: Main Typer application
        shared_console: Shared Rich console instance
    """
    global console
    console = shared_console

    app.command()(dev)
    app.command()(build)
    app.command()(deploy)
    app.command()(backup)
    app.command()(preview)
    app.command()(watch)
    app.command()(clean)
