"""Logging for sitekit: one console handler on the package logger, optional log file.

Module loggers are left at NOTSET and propagate to the ``sitekit`` logger,
so its level alone decides what gets through.
"""
import logging
import tempfile
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

console = Console()

PACKAGE_LOGGER = "sitekit"

LOG_DIR = Path(".sitekit")
LOG_FILE = LOG_DIR / "sitekit.log"

_file_logging_configured = False


def _package_logger() -> logging.Logger:
    package = logging.getLogger(PACKAGE_LOGGER)
    if not any(isinstance(h, RichHandler) for h in package.handlers):
        handler = RichHandler(console=console, show_path=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
        handler.setLevel(logging.INFO)
        package.addHandler(handler)
        package.setLevel(logging.INFO)
    return package


def set_verbose(verbose: bool) -> None:
    """Switch the package logger and its console handler between INFO and DEBUG."""
    level = logging.DEBUG if verbose else logging.INFO
    package = _package_logger()
    package.setLevel(level)
    for handler in package.handlers:
        if isinstance(handler, RichHandler):
            handler.setLevel(level)


def setup_file_logging(log_file: str = None, verbose: bool = False):
    """Add a file handler to the package logger.

    Args:
        log_file: Path to log file (defaults to .sitekit/sitekit.log)
        verbose: Also record debug messages (rule counts, command lines)

    Falls back to the system temp dir when the log directory cannot be created.
    """
    global _file_logging_configured

    if _file_logging_configured:
        return

    target_log_file = Path(log_file) if log_file else LOG_FILE
    try:
        target_log_file.parent.mkdir(parents=True, exist_ok=True)
    except PermissionError:
        target_log_file = Path(tempfile.gettempdir()) / "sitekit.log"

    file_handler = logging.FileHandler(target_log_file)
    file_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    file_handler.setFormatter(logging.Formatter(
        "%(asctime)s | %(name)s | %(levelname)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))

    package = _package_logger()
    package.addHandler(file_handler)
    set_verbose(verbose)

    _file_logging_configured = True
    package.info(f"sitekit logging initialized: {target_log_file}")


def get_logger(name: str) -> logging.Logger:
    """Return the logger for *name* (typically __name__).

    The console handler lives on the ``sitekit`` logger; this only makes sure
    it is installed.
    """
    _package_logger()
    return logging.getLogger(name)
