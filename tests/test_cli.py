"""Smoke tests for the CLI commands."""

import pytest
from typer.testing import CliRunner

from workdesk.cli import app
from workdesk.config import get_config_path, load_config
from workdesk.runtime import build_runtime
from workdesk.workstreams import WorkstreamStatus, WorkstreamType

runner = CliRunner()


@pytest.fixture(autouse=True)
def wide_console(monkeypatch):
    """Keep rich tables from wrapping cell text."""
    monkeypatch.setenv("COLUMNS", "200")


@pytest.fixture
def runtime():
    """Runtime over the isolated home, as the CLI will build it."""
    return build_runtime()


class TestWorkstreamCommands:
    def test_help(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "trash" in result.stdout

    def test_list_empty(self):
        result = runner.invoke(app, ["list"])
        assert result.exit_code == 0
        assert "No workstreams found" in result.stdout

    def test_list_and_filters(self, runtime):
        runtime.workstreams.create(WorkstreamType.PR, "Fix CI")
        ask = runtime.workstreams.create(WorkstreamType.ASK, "Question")
        runtime.workstreams.update_status(ask.id, WorkstreamStatus.NEEDS_INPUT)

        result = runner.invoke(app, ["list"])
        assert result.exit_code == 0
        assert "Fix CI" in result.stdout
        assert "Question" in result.stdout

        result = runner.invoke(app, ["list", "--type", "pr"])
        assert "Fix CI" in result.stdout
        assert "Question" not in result.stdout

        result = runner.invoke(app, ["list", "--attention"])
        assert "Question" in result.stdout
        assert "Fix CI" not in result.stdout

    def test_show(self, runtime):
        workstream = runtime.workstreams.create(WorkstreamType.TICKET, "PROJ-7")
        result = runner.invoke(app, ["show", workstream.id])
        assert result.exit_code == 0
        assert "PROJ-7" in result.stdout
        assert "Type: ticket" in result.stdout

    def test_show_missing(self):
        result = runner.invoke(app, ["show", "ws_missing"])
        assert result.exit_code == 1
        assert "Workstream not found" in result.stdout

    def test_delete(self, runtime):
        workstream = runtime.workstreams.create(WorkstreamType.ASK, "Question")

        result = runner.invoke(app, ["delete", workstream.id, "--reason", "answered"])

        assert result.exit_code == 0
        assert "Moved 'Question' to trash" in result.stdout
        trashed = build_runtime().trash_bin.get(workstream.id)
        assert trashed.deletion_reason == "answered"

    def test_delete_missing(self):
        result = runner.invoke(app, ["delete", "ws_missing"])
        assert result.exit_code == 1


class TestTrashCommands:
    def test_list_empty(self):
        result = runner.invoke(app, ["trash", "list"])
        assert result.exit_code == 0
        assert "Trash is empty" in result.stdout

    def test_list(self, runtime):
        workstream = runtime.workstreams.create(WorkstreamType.ASK, "Old question")
        runtime.workstreams.delete(workstream.id)

        result = runner.invoke(app, ["trash", "list"])
        assert result.exit_code == 0
        assert "Old question" in result.stdout

    def test_search(self, runtime):
        workstream = runtime.workstreams.create(WorkstreamType.ASK, "Billing export")
        runtime.workstreams.delete(workstream.id)

        result = runner.invoke(app, ["trash", "search", "billing"])
        assert result.exit_code == 0
        assert "Billing export" in result.stdout
        assert "Score" in result.stdout

        result = runner.invoke(app, ["trash", "search", "billing", "--plain"])
        assert "Billing export" in result.stdout
        assert "Score" not in result.stdout

    def test_search_no_match(self):
        result = runner.invoke(app, ["trash", "search", "nothing"])
        assert result.exit_code == 0
        assert "No trashed workstreams match" in result.stdout

    def test_restore(self, runtime):
        workstream = runtime.workstreams.create(WorkstreamType.ASK, "Question")
        runtime.workstreams.delete(workstream.id)

        result = runner.invoke(app, ["trash", "restore", workstream.id])

        assert result.exit_code == 0
        assert "Restored 'Question'" in result.stdout
        assert build_runtime().workstreams.get(workstream.id) is not None

    def test_restore_missing(self):
        result = runner.invoke(app, ["trash", "restore", "ws_missing"])
        assert result.exit_code == 1
        assert "Not in trash" in result.stdout

    def test_purge_and_empty(self, runtime):
        first = runtime.workstreams.create(WorkstreamType.ASK, "a")
        second = runtime.workstreams.create(WorkstreamType.ASK, "b")
        runtime.workstreams.delete(first.id)
        runtime.workstreams.delete(second.id)

        result = runner.invoke(app, ["trash", "purge", first.id, "--yes"])
        assert result.exit_code == 0

        result = runner.invoke(app, ["trash", "empty", "--yes"])
        assert result.exit_code == 0
        assert "1 item(s) deleted" in result.stdout

    def test_empty_aborts_without_confirmation(self, runtime):
        workstream = runtime.workstreams.create(WorkstreamType.ASK, "a")
        runtime.workstreams.delete(workstream.id)

        result = runner.invoke(app, ["trash", "empty"], input="n\n")

        assert result.exit_code != 0
        assert build_runtime().trash_bin.get(workstream.id) is not None

    def test_stats(self):
        result = runner.invoke(app, ["trash", "stats"])
        assert result.exit_code == 0
        assert "Retention:" in result.stdout


class TestConfigCommands:
    def test_show(self):
        result = runner.invoke(app, ["config", "show"])
        assert result.exit_code == 0
        assert "Trash retention:" in result.stdout

    def test_set_retention(self):
        result = runner.invoke(app, ["config", "set-retention", "0"])
        assert result.exit_code == 0
        assert load_config().trash_retention_days == 1

    def test_set_poll_interval(self):
        result = runner.invoke(app, ["config", "set-poll-interval", "45"])
        assert result.exit_code == 0
        assert load_config().poll_interval_seconds == 45

    def test_set_poll_interval_rejects_zero(self):
        result = runner.invoke(app, ["config", "set-poll-interval", "0"])
        assert result.exit_code == 1

    def test_set_retention_keeps_malformed_config(self):
        config_path = get_config_path()
        config_path.parent.mkdir(parents=True)
        config_path.write_text("{broken")

        result = runner.invoke(app, ["config", "set-retention", "14"])

        assert result.exit_code == 1
        assert "malformed" in result.stdout
        assert config_path.read_text() == "{broken"
