"""Shared test fixtures for sitekit tests."""
from pathlib import Path
from typing import List

import pytest
import yaml

from sitekit.core.tools import ToolError, ToolRunner

STARTER_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
\t<!-- <base href="/"> -->
\t<link rel="stylesheet" href="styles/index.css">
\t<meta property="og:image" content="assets/images/og.jpg">
</head>
<body>
\t<img src="assets/logo.png" alt="">
\t<script src="scripts/app.js" type="module"></script>
</body>
</html>
"""


def populate_starter(root: Path) -> None:
    """Write a small starter template tree under *root*."""
    (root / ".git").mkdir(parents=True)
    (root / ".git" / "HEAD").write_text("ref: refs/heads/main\n")
    (root / "trunk").mkdir()
    (root / "trunk" / "old.html").write_text("legacy")
    (root / ".gitignore").write_text("node_modules\n")
    (root / "readme.md").write_text("# starter\n")
    (root / "styles").mkdir()
    (root / "styles" / "index.css").write_text('@import url("reset.css");\nbody { margin: 0; }\n')
    (root / "styles" / "reset.css").write_text("* { box-sizing: border-box; }\n")
    (root / "scripts").mkdir()
    (root / "scripts" / "app.js").write_text("console.log('hi')\n")
    (root / "index.html").write_text(STARTER_HTML)


class FakeRunner(ToolRunner):
    """Records commands; `git clone` writes the starter tree instead of fetching."""

    def __init__(self, clone_fails: bool = False):
        super().__init__(mock=False)
        self.clone_fails = clone_fails
        self.commands: List[List[str]] = []

    def require(self, *tools: str) -> None:
        pass

    def run(self, cmd, capture=False):
        self.commands.append(list(cmd))
        if cmd[:2] == ["git", "clone"]:
            if self.clone_fails:
                raise ToolError(cmd, 128, "repository not found")
            populate_starter(Path(cmd[3]))
        return ""

    def run_together(self, *cmds):
        self.commands.extend(list(cmd) for cmd in cmds)


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def config_file(tmp_path):
    """sitekit.yml in tmp_path with `start` enabled."""
    path = tmp_path / "sitekit.yml"
    path.write_text(yaml.safe_dump({
        "deploy_server": "deploy@example.com:public_html/",
        "enable_start": True,
        "starter_dir": "src",
    }, sort_keys=False))
    return path


@pytest.fixture
def all_tools_present(monkeypatch):
    monkeypatch.setattr("sitekit.core.tools.shutil.which", lambda tool: f"/usr/bin/{tool}")


@pytest.fixture
def starter_html():
    return STARTER_HTML
