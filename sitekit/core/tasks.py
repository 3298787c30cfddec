"""Site tasks: Jekyll, esbuild, rsync, 7z and docker-compose invocations."""
import shlex
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, List, Optional

from sitekit.core.config import SiteConfig
from sitekit.core.logger import get_logger
from sitekit.core.tools import ToolError, ToolRunner, expand_sources

logger = get_logger(__name__)


class DeployError(Exception):
    """Raised when syncing the built site to the server fails."""
    pass


class SiteTasks:
    """Command sequences behind the site subcommands.

    Every public method checks its tools first and raises MissingDependency
    before running anything.
    """

    def __init__(
        self,
        config: SiteConfig,
        runner: Optional[ToolRunner] = None,
        project_dir: Optional[Path] = None,
    ):
        self.config = config
        self.runner = runner or ToolRunner()
        self.project_dir = project_dir or Path.cwd()

    # Command lines

    def esbuild_cmd(self, watch: bool = False) -> List[str]:
        cmd = [
            "esbuild",
            *expand_sources(self.config.js_sources),
            "--bundle",
            f"--outdir={self.config.js_output_dir}",
            "--minify",
        ]
        if watch:
            cmd.append("--watch")
        return cmd

    def backup_cmd(self, now: Optional[datetime] = None) -> List[str]:
        dir_name = self.project_dir.name
        stamp = (now or datetime.now()).strftime(self.config.backup_date_format)
        return [
            "7z",
            "a",
            *shlex.split(self.config.backup_compression_options),
            f"-x!{dir_name}/dist",
            f"-x!{dir_name}/node_modules",
            f"./{dir_name}-{stamp}.7z",
            str(self.project_dir),
        ]

    # Building blocks

    def build_js(self) -> None:
        self.runner.run(self.esbuild_cmd())

    def build_jekyll(self) -> None:
        self.runner.run(["jekyll", "build"])

    @contextmanager
    def clean_on_interrupt(self) -> Iterator[None]:
        """Run `jekyll clean` if the wrapped block is interrupted.

        The interrupt is always re-raised, even when the clean itself fails.
        """
        try:
            yield
        except KeyboardInterrupt:
            logger.info("Interrupted, cleaning generated files...")
            try:
                self.runner.run(["jekyll", "clean"])
            except ToolError as e:
                logger.warning(f"jekyll clean failed: {e}")
            raise

    # Site commands

    def dev(self) -> None:
        """Serve with live reload while esbuild watches the scripts."""
        self.runner.require("jekyll", "esbuild")
        with self.clean_on_interrupt():
            self.runner.run_together(
                [
                    "jekyll", "serve",
                    "--host", "0.0.0.0",
                    "--watch", "--force_polling", "--livereload", "--incremental",
                    "--config", self.config.jekyll_config,
                ],
                self.esbuild_cmd(watch=True),
            )

    def build(self) -> None:
        self.runner.require("jekyll", "esbuild")
        self.build_js()
        self.build_jekyll()

    def deploy(self) -> None:
        """Clean build, rsync the output to the server, clean again."""
        self.runner.require("jekyll", "esbuild", "rsync")
        with self.clean_on_interrupt():
            self.clean()
            self.build_js()
            self.build_jekyll()
            rsync = [
                "rsync",
                *shlex.split(self.config.rsync_options),
                self.config.output_dir,
                self.config.deploy_server,
            ]
            try:
                self.runner.run(rsync)
            except ToolError as e:
                raise DeployError(f"Deploy failed: rsync error ({e})") from e
            self.clean()

    def backup(self, now: Optional[datetime] = None) -> Path:
        """Archive the project directory, skipping dist/ and node_modules/.

        Returns:
            Path of the archive
        """
        self.runner.require("7z", "jekyll")
        self.clean()
        cmd = self.backup_cmd(now)
        self.runner.run(cmd)
        return self.project_dir / cmd[-2]

    def preview(self) -> None:
        self.runner.require("jekyll")
        with self.clean_on_interrupt():
            self.runner.run([
                "jekyll", "serve", "--watch",
                "--host", self.config.preview_host,
                "--port", str(self.config.preview_port),
            ])

    def watch(self) -> None:
        """Rebuild the site and the scripts on change, without serving."""
        self.runner.require("esbuild", "jekyll")
        with self.clean_on_interrupt():
            self.runner.run_together(
                ["jekyll", "build", "--watch", "--force_polling"],
                self.esbuild_cmd(watch=True),
            )

    def clean(self) -> None:
        self.runner.require("jekyll")
        self.runner.run(["jekyll", "clean"])

    # Container commands

    def up(self) -> None:
        self.runner.require("docker-compose")
        if self.config.fix_permissions:
            self.runner.run(["sudo", "chmod", "-R", "777", "."])
        self.runner.run(["docker-compose", "up", "-d"])

    def down(self) -> None:
        self.runner.require("docker-compose")
        self.runner.run(["docker-compose", "down"])

    def shell(self) -> None:
        """Open an interactive bash in the compose service."""
        self.runner.require("docker-compose")
        self.runner.run(["docker-compose", "exec", self.config.compose_service, "bash"])

    def prune(self) -> None:
        self.runner.require("docker")
        self.runner.run(["docker", "system", "prune", "-af", "--volumes"])
