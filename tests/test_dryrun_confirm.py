"""Tests for the dry-run short-circuit and destructive-action confirmation.

Exercised through ``gog tasks delete`` since it is the simplest destructive
command; every mutating command shares the same helpers.
"""

import json
from unittest.mock import patch

from typer.testing import CliRunner

from gogcli.cli import app

runner = CliRunner()

ACCOUNT = ["-a", "me@example.com"]
DELETE = ["tasks", "delete", "LIST1", "TASK1"]


def _delete_call(services):
    return services.service("tasks").tasks().delete


class TestDryRun:
    """Dry-run never builds a service or calls the mutating endpoint."""

    def test_json_payload(self, adapters, services):
        result = runner.invoke(app, [*ACCOUNT, "--json", "--dry-run", *DELETE], obj=adapters)

        assert result.exit_code == 0
        assert json.loads(result.stdout) == {
            "dry_run": True,
            "op": "tasks.delete",
            "request": {"tasklist_id": "LIST1", "task_id": "TASK1"},
        }
        assert services.builds == []

    def test_json_payload_ignores_transforms(self, adapters):
        result = runner.invoke(
            app, [*ACCOUNT, "--json", "--results-only", "--select", "op", "-n", *DELETE], obj=adapters
        )
        assert json.loads(result.stdout)["dry_run"] is True

    def test_plain_payload(self, adapters):
        result = runner.invoke(app, [*ACCOUNT, "--plain", "--noop", *DELETE], obj=adapters)

        lines = result.stdout.splitlines()
        assert lines[:2] == ["dry_run\ttrue", "op\ttasks.delete"]
        assert json.loads(lines[2].split("\t", 1)[1]) == {"tasklist_id": "LIST1", "task_id": "TASK1"}

    def test_human_payload(self, adapters):
        result = runner.invoke(app, [*ACCOUNT, "--dryrun", *DELETE], obj=adapters)

        assert result.exit_code == 0
        assert "Dry run: would tasks.delete" in result.stdout
        assert '"task_id": "TASK1"' in result.stdout

    def test_wins_over_force(self, adapters, services):
        result = runner.invoke(app, [*ACCOUNT, "--force", "--dry-run", *DELETE], obj=adapters)

        assert result.exit_code == 0
        assert services.builds == []

    def test_create_commands_short_circuit_too(self, adapters, services):
        result = runner.invoke(
            app, [*ACCOUNT, "--json", "-n", "tasks", "add", "LIST1", "--title", "Buy milk"], obj=adapters
        )

        assert result.exit_code == 0
        assert json.loads(result.stdout)["request"]["task"] == {"title": "Buy milk"}
        assert services.builds == []


class TestConfirm:
    def test_non_interactive_refuses(self, adapters, services):
        result = runner.invoke(app, [*ACCOUNT, *DELETE], obj=adapters)

        assert result.exit_code == 2
        assert "refusing to delete task TASK1 without --force" in result.output
        assert services.builds == []

    def test_no_input_refuses_even_on_tty(self, adapters):
        with patch("gogcli.confirm.is_interactive", return_value=True):
            result = runner.invoke(app, [*ACCOUNT, "--no-input", *DELETE], obj=adapters)
        assert result.exit_code == 2

    def test_force_deletes(self, adapters, services):
        result = runner.invoke(app, [*ACCOUNT, "--json", "-y", *DELETE], obj=adapters)

        assert result.exit_code == 0
        _delete_call(services).assert_called_with(tasklist="LIST1", task="TASK1")
        assert json.loads(result.stdout)["deleted"] is True

    def test_prompt_accepted(self, adapters, services):
        with patch("gogcli.confirm.is_interactive", return_value=True):
            result = runner.invoke(app, [*ACCOUNT, *DELETE], input="y\n", obj=adapters)

        assert result.exit_code == 0
        _delete_call(services).assert_called_with(tasklist="LIST1", task="TASK1")

    def test_prompt_declined_cancels(self, adapters, services):
        with patch("gogcli.confirm.is_interactive", return_value=True):
            result = runner.invoke(app, [*ACCOUNT, *DELETE], input="n\n", obj=adapters)

        assert result.exit_code == 1
        assert "cancelled" in result.output
        assert services.builds == []
