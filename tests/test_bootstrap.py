"""Tests for the starter template bootstrapper."""
import shutil
from pathlib import Path

import pytest
import yaml

from sitekit.bootstrap import (
    DisableFailed,
    FeatureDisabled,
    FetchFailed,
    MergeFailed,
    OperationCancelled,
    TemplateBootstrapper,
)
from sitekit.bootstrap.core import scratch_directory
from sitekit.core.config import ConfigError, SiteConfig
from sitekit.core.tools import MissingDependency, ToolRunner

from conftest import FakeRunner, populate_starter


@pytest.fixture
def scratch_dirs(tmp_path, monkeypatch):
    """Route scratch directories under tmp_path and record them."""
    created = []
    root = tmp_path / "scratch"
    root.mkdir()

    def fake_mkdtemp(prefix="tmp"):
        path = root / f"{prefix}{len(created)}"
        path.mkdir()
        created.append(path)
        return str(path)

    monkeypatch.setattr("sitekit.bootstrap.core.tempfile.mkdtemp", fake_mkdtemp)
    return created


@pytest.fixture
def existing_source(tmp_path):
    """A src/ directory with a page and a stale favicon."""
    src = tmp_path / "src"
    (src / "assets" / "images").mkdir(parents=True)
    (src / "assets" / "images" / "favicon.ico").write_bytes(b"old")
    (src / "about.html").write_text("about")
    return src


def _bootstrapper(config_file, tmp_path, runner, answer="yes"):
    config = SiteConfig.load(str(config_file))
    return TemplateBootstrapper(config, confirm=lambda: answer, runner=runner, project_dir=tmp_path)


def _flag(config_file):
    return yaml.safe_load(config_file.read_text())["enable_start"]


def _tree(root: Path):
    return sorted(str(p.relative_to(root)) for p in root.rglob("*"))


class TestGuard:
    """Test the checks that run before anything is touched."""

    @pytest.mark.parametrize("answer", ["", "y", "Yes", "YES", "no", " yes", "yes "])
    def test_anything_but_yes_cancels(self, answer, tmp_path, config_file, fake_runner):
        """Declining leaves the filesystem exactly as it was."""
        before = _tree(tmp_path)
        bootstrapper = _bootstrapper(config_file, tmp_path, fake_runner, answer=answer)

        with pytest.raises(OperationCancelled) as exc:
            bootstrapper.run()

        assert exc.value.exit_code == 0
        assert fake_runner.commands == []
        assert _tree(tmp_path) == before
        assert _flag(config_file) is True

    def test_eof_cancels(self, tmp_path, config_file, fake_runner):
        def closed_stdin():
            raise EOFError

        config = SiteConfig.load(str(config_file))
        bootstrapper = TemplateBootstrapper(
            config, confirm=closed_stdin, runner=fake_runner, project_dir=tmp_path
        )
        with pytest.raises(OperationCancelled):
            bootstrapper.run()

    def test_disabled_flag_fails_before_prompting(self, tmp_path, fake_runner):
        asked = []
        config = SiteConfig(enable_start=False)
        bootstrapper = TemplateBootstrapper(
            config, confirm=lambda: asked.append(1) or "yes", runner=fake_runner, project_dir=tmp_path
        )

        with pytest.raises(FeatureDisabled) as exc:
            bootstrapper.run()

        assert exc.value.exit_code == 1
        assert asked == []
        assert fake_runner.commands == []

    def test_missing_git(self, tmp_path, config_file, monkeypatch):
        monkeypatch.setattr("sitekit.core.tools.shutil.which", lambda tool: None)
        bootstrapper = _bootstrapper(config_file, tmp_path, ToolRunner())

        with pytest.raises(MissingDependency) as exc:
            bootstrapper.run()

        assert exc.value.tools == ["git"]
        assert not (tmp_path / "src").exists()

    def test_quoted_false_flag_is_rejected(self, tmp_path, config_file, fake_runner):
        """`enable_start: "false"` must not be read as a truthy string."""
        config_file.write_text('enable_start: "false"\n')

        with pytest.raises(ConfigError, match="enable_start"):
            _bootstrapper(config_file, tmp_path, fake_runner)

        assert fake_runner.commands == []
        assert not (tmp_path / "src").exists()


class TestPipeline:
    """Test fetch, rewrite and merge."""

    def test_successful_run(self, tmp_path, config_file, existing_source, fake_runner, scratch_dirs):
        result = _bootstrapper(config_file, tmp_path, fake_runner).run()
        src = existing_source

        assert fake_runner.commands == [
            ["git", "clone", "https://github.com/agragregra/starter", str(scratch_dirs[0])]
        ]
        assert result.destination == src
        assert result.warnings == []

        # Pruned paths never reach the destination
        for name in (".git", "trunk", ".gitignore", "readme.md"):
            assert not (src / name).exists()
        assert not (src / "assets" / "images" / "favicon.ico").exists()

        # Existing files survive the merge
        assert (src / "about.html").read_text() == "about"

        assert (src / "styles" / "_reset.css").exists()
        assert not (src / "styles" / "index.css").exists()
        assert (src / "styles" / "index.scss").read_text() == (
            '---\n---\n\n@use "reset";\nbody { margin: 0; }\n'
        )

        html = (src / "index.html").read_text()
        assert html.startswith("---\n---\n{% include path.html -%}\n\n<!DOCTYPE html>")
        assert '<script src="{{ path }}scripts/dist/app.js" defer></script>' in html

        assert (src / "scripts" / "app.js").exists()
        assert not scratch_dirs[0].exists()

    def test_success_disables_start_and_keeps_other_keys(self, tmp_path, config_file, fake_runner):
        _bootstrapper(config_file, tmp_path, fake_runner).run()

        data = yaml.safe_load(config_file.read_text())
        assert data == {
            "deploy_server": "deploy@example.com:public_html/",
            "enable_start": False,
            "starter_dir": "src",
        }

    def test_rewrite_warning_still_disables(self, tmp_path, config_file, scratch_dirs):
        """A broken entry point is only a warning; the flag is still turned off."""

        class BrokenHtmlRunner(FakeRunner):
            def run(self, cmd, capture=False):
                super().run(cmd, capture)
                if cmd[:2] == ["git", "clone"]:
                    (Path(cmd[3]) / "index.html").write_bytes(b"\xff\xfe")
                return ""

        result = _bootstrapper(config_file, tmp_path, BrokenHtmlRunner()).run()

        assert result.warnings == ["Failed to update index.html"]
        assert (tmp_path / "src" / "styles" / "index.scss").exists()
        assert _flag(config_file) is False

    def test_template_without_styles(self, tmp_path, config_file, scratch_dirs):
        class BareRunner(FakeRunner):
            def run(self, cmd, capture=False):
                self.commands.append(list(cmd))
                (Path(cmd[3]) / "index.html").write_text("<p>hi</p>\n")
                return ""

        result = _bootstrapper(config_file, tmp_path, BareRunner()).run()

        assert result.renamed == []
        assert (tmp_path / "src" / "index.html").read_text().startswith("---\n")

    def test_failed_clone_leaves_everything(self, tmp_path, config_file, existing_source, scratch_dirs):
        before = _tree(existing_source)
        bootstrapper = _bootstrapper(config_file, tmp_path, FakeRunner(clone_fails=True))

        with pytest.raises(FetchFailed) as exc:
            bootstrapper.run()

        assert exc.value.stage == "fetch"
        assert _tree(existing_source) == before
        assert _flag(config_file) is True
        assert not scratch_dirs[0].exists()

    def test_merge_failure(self, tmp_path, config_file, fake_runner, scratch_dirs, monkeypatch):
        def broken_copytree(*args, **kwargs):
            raise shutil.Error([("a", "b", "disk full")])

        monkeypatch.setattr("sitekit.bootstrap.core.shutil.copytree", broken_copytree)

        with pytest.raises(MergeFailed):
            _bootstrapper(config_file, tmp_path, fake_runner).run()

        assert _flag(config_file) is True
        assert not scratch_dirs[0].exists()

    def test_interrupt_removes_scratch(self, tmp_path, config_file, scratch_dirs):
        class InterruptedRunner(FakeRunner):
            def run(self, cmd, capture=False):
                populate_starter(Path(cmd[3]))
                raise KeyboardInterrupt

        with pytest.raises(KeyboardInterrupt):
            _bootstrapper(config_file, tmp_path, InterruptedRunner()).run()

        assert not scratch_dirs[0].exists()
        assert _flag(config_file) is True

    def test_unwritable_config_reports_disable_stage(
        self, tmp_path, config_file, fake_runner, scratch_dirs, monkeypatch
    ):
        def read_only(self):
            raise PermissionError(13, "Permission denied", str(self.path))

        monkeypatch.setattr(SiteConfig, "disable_start", read_only)

        with pytest.raises(DisableFailed) as exc:
            _bootstrapper(config_file, tmp_path, fake_runner).run()

        assert exc.value.stage == "disable"
        assert exc.value.exit_code == 1
        assert "Permission denied" in str(exc.value)
        # The merge already happened and is kept
        assert (tmp_path / "src" / "index.html").exists()
        assert not scratch_dirs[0].exists()

    def test_mock_mode_touches_nothing(self, tmp_path, config_file, existing_source, scratch_dirs):
        """Mock mode stops after the guard: no prune, no merge, flag kept."""
        before = _tree(tmp_path)

        result = _bootstrapper(config_file, tmp_path, ToolRunner(mock=True)).run()

        assert result.mocked is True
        assert result.destination == existing_source
        assert (existing_source / "assets" / "images" / "favicon.ico").read_bytes() == b"old"
        assert _tree(tmp_path) == before
        assert scratch_dirs == []
        assert _flag(config_file) is True

    def test_mock_mode_does_not_create_source_dir(self, tmp_path, config_file):
        _bootstrapper(config_file, tmp_path, ToolRunner(mock=True)).run()

        assert not (tmp_path / "src").exists()
        assert _flag(config_file) is True


class TestScratchDirectory:
    """Test scratch directory lifetime."""

    def test_removed_after_use(self):
        with scratch_directory() as path:
            (path / "file").write_text("x")
        assert not path.exists()

    def test_cleanup_error_does_not_mask_original(self, monkeypatch):
        def failing_rmtree(path):
            raise PermissionError("busy")

        monkeypatch.setattr("sitekit.bootstrap.core.shutil.rmtree", failing_rmtree)

        with pytest.raises(ValueError, match="original"):
            with scratch_directory() as path:
                raise ValueError("original")

        monkeypatch.undo()
        shutil.rmtree(path)
