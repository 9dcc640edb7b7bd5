"""Tests for PluginCatalog and PluginDispatcher"""
import json
import os

import pytest

from git_worktree_keeper.exceptions import PluginNotFoundError, SetupFailedError
from git_worktree_keeper.models.plugin import SetupOptions, ShareOutcome
from git_worktree_keeper.plugins import (
    PluginCatalog,
    PluginDispatcher,
    RustPlugin,
)


@pytest.fixture
def project(temp_dir):
    path = temp_dir / "project"
    path.mkdir()
    return path


class TestCatalog:
    """Test the plugin catalog."""

    def test_default_order(self, catalog):
        assert catalog.ids == ["javascript", "python", "rust"]
        assert catalog.enabled_ids == ["javascript", "python", "rust"]

    def test_enabled_subset_in_catalog_order(self, fake_runner):
        catalog = PluginCatalog.default(["rust", "javascript"], runner=fake_runner)
        assert catalog.enabled_ids == ["javascript", "rust"]
        assert catalog.is_enabled("rust")
        assert not catalog.is_enabled("python")

    def test_unknown_enabled_ids_ignored(self, fake_runner):
        catalog = PluginCatalog.default(["rust", "cobol"], runner=fake_runner)
        assert catalog.enabled_ids == ["rust"]

    def test_get_unknown_plugin(self, catalog):
        with pytest.raises(PluginNotFoundError) as exc_info:
            catalog.get("cobol")
        assert "cobol" in str(exc_info.value)

    def test_duplicate_ids_rejected(self, fake_runner):
        with pytest.raises(ValueError):
            PluginCatalog([RustPlugin(fake_runner), RustPlugin(fake_runner)])


class TestDetect:
    """Test detection across the enabled plugins."""

    def test_cargo_only(self, dispatcher, project):
        (project / "Cargo.toml").write_text('[package]\nname = "crab"\n')
        assert [p.id for p in dispatcher.detect(project)] == ["rust"]

    def test_package_json_and_requirements(self, dispatcher, project):
        (project / "package.json").write_text("{}")
        (project / "requirements.txt").write_text("")
        assert [p.id for p in dispatcher.detect(project)] == ["javascript", "python"]

    def test_nothing_detected(self, dispatcher, project):
        assert dispatcher.detect(project) == []

    def test_disabled_plugins_not_detected(self, fake_runner, project):
        (project / "package.json").write_text("{}")
        (project / "Cargo.toml").write_text("")
        dispatcher = PluginDispatcher(PluginCatalog.default(["rust"], runner=fake_runner))

        assert [p.id for p in dispatcher.detect(project)] == ["rust"]


class TestSetupWorktree:
    """Test setup through the dispatcher."""

    def test_shares_from_reference(self, dispatcher, temp_dir, project):
        reference = temp_dir / "main"
        (reference / "node_modules").mkdir(parents=True)
        (project / "package.json").write_text(json.dumps({"name": "app", "version": "0.1.0"}))

        report = dispatcher.setup_worktree(project, "javascript", SetupOptions(reference_dir=reference))

        assert report.share.outcome is ShareOutcome.SYMLINKED
        assert (project / "node_modules").resolve() == (reference / "node_modules").resolve()
        assert report.project.name == "app"

    def test_failure_is_reported_not_raised(self, dispatcher, project, caplog):
        (project / "package.json").write_text("{}")

        report = dispatcher.setup_worktree(project, "javascript")

        assert isinstance(report.error, SetupFailedError)
        assert "degraded" in caplog.text

    def test_unknown_plugin(self, dispatcher, project):
        with pytest.raises(PluginNotFoundError):
            dispatcher.setup_worktree(project, "cobol")

    def test_auto_setup_runs_every_match(self, make_runner, project):
        (project / "package.json").write_text("{}")
        (project / "Cargo.toml").write_text('[package]\nname = "crab"\n')
        runner = make_runner(tools=["npm", "cargo"])
        dispatcher = PluginDispatcher(PluginCatalog.default(["javascript", "rust"], runner=runner))

        reports = dispatcher.auto_setup(project)

        assert [r.plugin_id for r in reports] == ["javascript", "rust"]
        assert [call[0] for call in runner.calls] == [("npm", "install"), ("cargo", "check")]

    def test_auto_setup_nothing_detected(self, dispatcher, project):
        assert dispatcher.auto_setup(project) == []


class TestCleanupAndStatus:
    """Test cleanup and status fan-out."""

    def test_cleanup_fans_out(self, dispatcher, temp_dir, project):
        (temp_dir / "shared").mkdir()
        (project / "package.json").write_text("{}")
        (project / "node_modules").symlink_to(temp_dir / "shared", target_is_directory=True)
        (project / "Cargo.toml").write_text("")
        (project / "target").mkdir()

        removed = dispatcher.cleanup(project)

        assert [p.name for p in removed["javascript"]] == ["node_modules"]
        assert removed["rust"] == []
        assert (project / "target").is_dir()
        assert (temp_dir / "shared").is_dir()

    def test_cleanup_for_removal_can_be_undone(self, dispatcher, temp_dir, project):
        (temp_dir / "shared").mkdir()
        (project / "package.json").write_text("{}")
        (project / "node_modules").symlink_to("../shared", target_is_directory=True)

        undo = dispatcher.cleanup_for_removal(project)
        assert not (project / "node_modules").exists()

        undo()

        link = project / "node_modules"
        assert link.is_symlink()
        assert os.readlink(link) == "../shared"
        assert link.resolve() == temp_dir / "shared"

    def test_undo_leaves_existing_paths_alone(self, dispatcher, temp_dir, project):
        (temp_dir / "shared").mkdir()
        (project / "package.json").write_text("{}")
        (project / "node_modules").symlink_to("../shared", target_is_directory=True)

        undo = dispatcher.cleanup_for_removal(project)
        (project / "node_modules").mkdir()
        undo()

        assert not (project / "node_modules").is_symlink()

    def test_list_status_not_applicable(self, dispatcher, project):
        assert dispatcher.list_status(project, "rust") is None

    def test_list_all_status(self, dispatcher, project):
        (project / "Cargo.toml").write_text('[package]\nname = "crab"\nversion = "1.0.0"\n')

        statuses = dispatcher.list_all_status(project)

        assert [s.plugin_id for s in statuses] == ["rust"]
        assert statuses[0].project_name == "crab"

    def test_list_status_unknown_plugin(self, dispatcher, project):
        with pytest.raises(PluginNotFoundError):
            dispatcher.list_status(project, "cobol")
