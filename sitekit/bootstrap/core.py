"""Bootstrap a site source tree from a remote starter template."""
import shutil
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterator, List, Optional

from sitekit.bootstrap.partials import ENTRY_NAME, normalize_style_partials
from sitekit.bootstrap.rules import HTML_RULES, STYLESHEET_RULES, rewrite_file
from sitekit.core.config import ConfigError, SiteConfig
from sitekit.core.logger import get_logger
from sitekit.core.tools import ToolError, ToolRunner

logger = get_logger(__name__)

CONFIRM_TOKEN = "yes"

# Relative to the fetched template
PRUNED_TEMPLATE_PATHS = (".git", "trunk", ".gitignore", "readme.md")

# Relative to the destination source directory
PRUNED_DESTINATION_PATHS = ("assets/images/favicon.ico",)


class BootstrapError(Exception):
    """Base class for fatal bootstrap errors."""

    stage = "start"
    exit_code = 1


class FeatureDisabled(BootstrapError):
    """`enable_start` is off in the configuration."""

    stage = "guard"


class OperationCancelled(BootstrapError):
    """The user did not confirm."""

    stage = "confirm"
    exit_code = 0


class FetchFailed(BootstrapError):
    """Cloning the starter repository failed."""

    stage = "fetch"


class MergeFailed(BootstrapError):
    """Copying the template into the source directory failed."""

    stage = "merge"


class DisableFailed(BootstrapError):
    """The template was merged but `enable_start: false` could not be saved."""

    stage = "disable"


@dataclass
class BootstrapResult:
    """Outcome of a successful bootstrap."""

    destination: Path
    renamed: List[Path] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    mocked: bool = False


@contextmanager
def scratch_directory(prefix: str = "sitekit_starter_") -> Iterator[Path]:
    """Yield a fresh temp directory that is removed on every exit path.

    A failure to remove it is logged and never replaces the exception that
    is already propagating.
    """
    path = Path(tempfile.mkdtemp(prefix=prefix))
    try:
        yield path
    finally:
        try:
            shutil.rmtree(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove scratch directory {path}: {e}")


def _remove(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    elif path.exists() or path.is_symlink():
        path.unlink()


class TemplateBootstrapper:
    """Fetches the starter template, adapts it for Jekyll, and merges it in.

    Args:
        config: Loaded site configuration; its flag is disabled on success
        confirm: Callable returning the user's answer to the confirmation prompt
        runner: Tool runner used for the clone (mock mode skips the network)
        project_dir: Directory the source directory is resolved against
    """

    def __init__(
        self,
        config: SiteConfig,
        confirm: Callable[[], str],
        runner: Optional[ToolRunner] = None,
        project_dir: Optional[Path] = None,
    ):
        self.config = config
        self.confirm = confirm
        self.runner = runner or ToolRunner()
        self.project_dir = project_dir or Path.cwd()

    @property
    def destination(self) -> Path:
        return self.project_dir / self.config.starter_dir

    def run(self) -> BootstrapResult:
        """Run the guarded pipeline end to end.

        Raises:
            FeatureDisabled: The feature flag is off
            OperationCancelled: The answer was not exactly ``yes``
            MissingDependency: git is not on PATH
            FetchFailed: The clone failed
            MergeFailed: Copying into the source directory failed
            DisableFailed: The flag could not be written back

        In mock mode nothing past the guard touches the filesystem or the flag.
        """
        self.check_guard()

        result = BootstrapResult(destination=self.destination)
        if self.runner.mock:
            logger.info(
                f"MOCK: Would clone {self.config.starter_repo} and merge it into {self.destination}"
            )
            result.mocked = True
            return result

        with scratch_directory() as scratch:
            self.fetch(scratch)
            self.prune(scratch)

            logger.info("Renaming style files...")
            result.renamed = normalize_style_partials(scratch / "styles")

            result.warnings = self.rewrite_entry_points(scratch)
            self.merge(scratch)

        self.disable()
        logger.info("Project setup completed!")
        return result

    def disable(self) -> None:
        try:
            self.config.disable_start()
        except (OSError, ConfigError) as e:
            raise DisableFailed(
                f"Starter merged, but could not set enable_start: false in {self.config.path}: {e}"
            ) from e

    def check_guard(self) -> None:
        if not self.config.enable_start:
            raise FeatureDisabled("Command 'start' is disabled.")

        try:
            answer = self.confirm()
        except EOFError:
            answer = ""
        if answer != CONFIRM_TOKEN:
            raise OperationCancelled("Operation canceled.")

        self.runner.require("git")

    def fetch(self, scratch: Path) -> None:
        logger.info("Cloning starter project to temporary directory...")
        try:
            self.runner.run(["git", "clone", self.config.starter_repo, str(scratch)])
        except ToolError as e:
            raise FetchFailed(f"Failed to clone repository: {e}") from e

    def prune(self, scratch: Path) -> None:
        logger.info("Cleaning tmp files...")
        targets = [scratch / rel for rel in PRUNED_TEMPLATE_PATHS]
        targets += [self.destination / rel for rel in PRUNED_DESTINATION_PATHS]
        for target in targets:
            _remove(target)

    def rewrite_entry_points(self, scratch: Path) -> List[str]:
        """Rewrite index.scss and index.html where present.

        Returns:
            Warning messages for files that could not be rewritten
        """
        warnings: List[str] = []

        index_scss = scratch / "styles" / ENTRY_NAME
        if index_scss.is_file():
            logger.info(f"Updating {ENTRY_NAME}...")
            if not rewrite_file(index_scss, STYLESHEET_RULES):
                warnings.append(f"Failed to update {ENTRY_NAME}")

        index_html = scratch / "index.html"
        if index_html.is_file():
            logger.info("Updating index.html...")
            if not rewrite_file(index_html, HTML_RULES):
                warnings.append("Failed to update index.html")

        return warnings

    def merge(self, scratch: Path) -> None:
        logger.info("Merging into target directory...")
        try:
            self.destination.mkdir(parents=True, exist_ok=True)
            shutil.copytree(scratch, self.destination, dirs_exist_ok=True)
        except (OSError, shutil.Error) as e:
            raise MergeFailed(f"Failed to copy files to {self.destination}: {e}") from e
