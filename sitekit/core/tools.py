"""External tool invocation: dependency checks and process runners."""
import glob
import shlex
import shutil
import subprocess
from typing import List, Optional, Sequence

from sitekit.core.logger import get_logger

logger = get_logger(__name__)


class MissingDependency(Exception):
    """Raised when one or more required executables are not on PATH."""

    def __init__(self, tools: Sequence[str]):
        self.tools = list(tools)
        super().__init__(f"{' '.join(self.tools)} is not installed")


class ToolError(Exception):
    """Raised when an external command exits non-zero or cannot start."""

    def __init__(self, command: Sequence[str], returncode: Optional[int] = None, detail: str = ""):
        self.command = list(command)
        self.returncode = returncode
        message = f"'{shlex.join(self.command)}' failed"
        if returncode is not None:
            message += f" with exit status {returncode}"
        if detail:
            message += f": {detail}"
        super().__init__(message)


def check_deps(*tools: str) -> None:
    """Verify that every tool resolves on PATH.

    Raises:
        MissingDependency: Listing all tools that were not found
    """
    missing = [tool for tool in tools if shutil.which(tool) is None]
    if missing:
        raise MissingDependency(missing)


def expand_sources(pattern: str) -> List[str]:
    """Expand a glob the way the shell would; unmatched patterns pass through."""
    matches = sorted(glob.glob(pattern))
    return matches or [pattern]


class ToolRunner:
    """Runs external commands, or only logs them in mock mode."""

    def __init__(self, mock: bool = False):
        self.mock = mock

    def require(self, *tools: str) -> None:
        """check_deps() unless in mock mode, where nothing is executed anyway."""
        if self.mock:
            logger.debug(f"MOCK: Skipping dependency check for {', '.join(tools)}")
            return
        check_deps(*tools)

    def run(self, cmd: List[str], capture: bool = False) -> str:
        """Run a command to completion.

        Args:
            cmd: Command and arguments
            capture: Capture and return stdout instead of streaming it

        Returns:
            Captured stdout (empty string when not capturing)

        Raises:
            ToolError: If the command fails or the executable is missing
        """
        if self.mock:
            logger.info(f"MOCK: Would run {shlex.join(cmd)}")
            return ""

        logger.debug(f"Running {shlex.join(cmd)}")
        try:
            result = subprocess.run(cmd, capture_output=capture, text=True, check=True)
        except subprocess.CalledProcessError as e:
            stderr = e.stderr.strip() if e.stderr else ""
            raise ToolError(cmd, e.returncode, stderr) from e
        except FileNotFoundError as e:
            raise ToolError(cmd, detail=str(e)) from e

        return result.stdout if capture else ""

    def run_together(self, *cmds: List[str]) -> None:
        """Start every command at once and wait for all of them.

        On KeyboardInterrupt the remaining processes are terminated and the
        interrupt is re-raised so callers can run their own cleanup.

        Raises:
            ToolError: If any command exits non-zero
        """
        if self.mock:
            for cmd in cmds:
                logger.info(f"MOCK: Would start {shlex.join(cmd)}")
            return

        processes: List[subprocess.Popen] = []
        try:
            for cmd in cmds:
                logger.debug(f"Starting {shlex.join(cmd)}")
                processes.append(subprocess.Popen(cmd))
            returncodes = [proc.wait() for proc in processes]
        except KeyboardInterrupt:
            _terminate(processes)
            raise
        except FileNotFoundError as e:
            _terminate(processes)
            raise ToolError(cmds[len(processes)], detail=str(e)) from e

        for cmd, code in zip(cmds, returncodes):
            if code != 0:
                raise ToolError(cmd, code)


def _terminate(processes: List[subprocess.Popen]) -> None:
    for proc in processes:
        if proc.poll() is None:
            proc.terminate()
    for proc in processes:
        try:
            proc.wait(timeout=5)
        except subprocess.TimeoutExpired:
            proc.kill()
