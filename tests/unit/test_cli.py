"""
Integration tests for CLI commands.

The working tree is an in-memory repository injected in place of git
discovery, so the commands run against a temporary directory.
"""

from pathlib import Path

import pytest
from typer.testing import CliRunner

import gitmeta.cli as cli
from gitmeta.cli import app
from gitmeta.core.codec import time_to_text
from gitmeta.core.config import GitMetaConfig
from gitmeta.infrastructure.vcs import VCSError
from gitmeta.services.container import ServicesContainer
from tests.support.tree_utils import STORE_NAME, make_attributes, make_repo, set_times

runner = CliRunner()

T1 = 1577934245


@pytest.fixture
def repo(tmp_path: Path, monkeypatch):
    repo = make_repo(tmp_path, {"a.txt": "a", "dir/b.txt": "b"})
    set_times(tmp_path / "a.txt", T1)

    def fake_create_services(config_path=None, start=None, config=None):
        return ServicesContainer(config=config or GitMetaConfig(), vcs=repo, attributes=make_attributes())

    monkeypatch.setattr(cli, "create_services", fake_create_services)
    return repo


class TestCLIHelp:
    """Test CLI help and usage information."""

    def test_main_help(self):
        result = runner.invoke(app, ["--help"])

        assert result.exit_code == 0
        for command in ("store", "update", "apply", "install"):
            assert command in result.stdout

    def test_update_has_no_fields_option(self):
        result = runner.invoke(app, ["update", "--help"])

        assert result.exit_code == 0
        assert "--fields" not in result.stdout


class TestCLICommands:
    def test_store_writes_file(self, repo):
        result = runner.invoke(app, ["store", "-f", "mtime,mode"])

        assert result.exit_code == 0
        store = repo.root / STORE_NAME
        lines = store.read_text(encoding="utf-8").splitlines()
        assert lines[1] == "<file>\t<type>\t<mtime>\t<mode>"
        assert lines[2].startswith(f"a.txt\tf\t{time_to_text(T1)}\t")

    def test_store_dry_run_prints_content(self, repo):
        result = runner.invoke(app, ["store", "--dry-run"])

        assert result.exit_code == 0
        assert "# generated by\tgit-store-meta\t2.0.0" in result.stdout
        assert f"a.txt\tf\t{time_to_text(T1)}" in result.stdout
        assert not (repo.root / STORE_NAME).exists()

    def test_custom_target(self, repo):
        (repo.root / "meta").mkdir()
        result = runner.invoke(app, ["store", "--target", "meta/store"])

        assert result.exit_code == 0
        assert (repo.root / "meta" / "store").is_file()

    def test_update_without_store_fails(self, repo):
        result = runner.invoke(app, ["update"])

        assert result.exit_code == 1
        assert "Error" in result.stdout

    def test_apply_without_store_is_noop(self, repo):
        result = runner.invoke(app, ["apply"])

        assert result.exit_code == 0
        assert "nothing to apply" in result.stdout

    def test_apply_on_dirty_tree_fails(self, repo):
        runner.invoke(app, ["store"])
        repo.dirty = True

        result = runner.invoke(app, ["apply"])

        assert result.exit_code == 1
        assert "--force" in result.stdout

    def test_apply_verbose_reports(self, repo):
        runner.invoke(app, ["store"])

        result = runner.invoke(app, ["apply", "-v", "-n"])

        assert result.exit_code == 0
        assert f"`a.txt' set mtime to '{time_to_text(T1)}'" in result.stdout

    def test_install(self, repo):
        result = runner.invoke(app, ["install"])

        assert result.exit_code == 0
        assert (repo.root / ".git" / "hooks" / "pre-commit").is_file()

    def test_install_twice_needs_force(self, repo):
        runner.invoke(app, ["install"])

        assert runner.invoke(app, ["install"]).exit_code == 1
        assert runner.invoke(app, ["install", "--force"]).exit_code == 0

    def test_config_file(self, repo, tmp_path):
        config = tmp_path / "gitmeta.yaml"
        config.write_text("store:\n  filename: .meta\n  default_fields: [mode]\n", encoding="utf-8")

        result = runner.invoke(app, ["--config", str(config), "store"])

        assert result.exit_code == 0
        assert (repo.root / ".meta").read_text(encoding="utf-8").splitlines()[1] == "<file>\t<type>\t<mode>"


class TestCLIErrorHandling:
    def test_outside_work_tree(self, monkeypatch):
        def failing_create_services(config_path=None, start=None, config=None):
            raise VCSError("current working directory is not in a git working tree")

        monkeypatch.setattr(cli, "create_services", failing_create_services)
        result = runner.invoke(app, ["store"])

        assert result.exit_code == 1
        assert "not in a git working tree" in result.stdout

    def test_missing_config_file(self, repo, tmp_path):
        result = runner.invoke(app, ["--config", str(tmp_path / "absent.yaml"), "store"])

        assert result.exit_code == 1
