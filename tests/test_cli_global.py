"""Tests for the root callback, global flags and local commands."""

import json

import pytest
from typer.testing import CliRunner

from gogcli import config
from gogcli.cli import app, normalize_args

runner = CliRunner()


# ═══════════════════════════════════════════════════════════════════════════════
# exit-codes
# ═══════════════════════════════════════════════════════════════════════════════


class TestExitCodesCommand:
    """exit-codes output is stable in every mode."""

    @pytest.mark.parametrize(
        "flags",
        [
            ["--json"],
            ["--json", "--results-only"],
            ["--json", "--select", "ok"],
            ["--json", "--results-only", "--select", "usage"],
        ],
    )
    def test_json_ignores_transforms(self, adapters, flags):
        result = runner.invoke(app, [*flags, "agent", "exit-codes"], obj=adapters)

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["exit_codes"]["cancelled"] == 130
        assert len(data["exit_codes"]) == 11

    def test_top_level_alias(self, adapters):
        result = runner.invoke(app, ["--json", "exit-codes"], obj=adapters)
        assert result.exit_code == 0
        assert json.loads(result.stdout)["exit_codes"]["config"] == 10

    def test_plain_sorted_tsv(self, adapters):
        result = runner.invoke(app, ["--plain", "exit-codes"], obj=adapters)

        lines = result.stdout.splitlines()
        assert lines[0] == "auth_required\t4"
        assert [line.split("\t")[0] for line in lines] == sorted(line.split("\t")[0] for line in lines)

    def test_human(self, adapters):
        result = runner.invoke(app, ["exit-codes"], obj=adapters)
        assert "rate_limited: 7" in result.stdout


# ═══════════════════════════════════════════════════════════════════════════════
# Global flags
# ═══════════════════════════════════════════════════════════════════════════════


class TestGlobalFlags:
    def test_json_and_plain_conflict(self, adapters):
        result = runner.invoke(app, ["--json", "--plain", "exit-codes"], obj=adapters)
        assert result.exit_code == 2
        assert "cannot combine" in result.output

    def test_env_json(self, adapters, monkeypatch):
        monkeypatch.setenv("GOG_JSON", "1")
        result = runner.invoke(app, ["config", "path"], obj=adapters)
        assert result.exit_code == 0
        assert "path" in json.loads(result.stdout)

    def test_version(self, adapters):
        result = runner.invoke(app, ["--version"], obj=adapters)
        assert result.exit_code == 0
        assert result.stdout.startswith("gog ")

    def test_missing_account(self, adapters, services):
        result = runner.invoke(app, ["gmail", "labels", "list"], obj=adapters)
        assert result.exit_code == 2
        assert "missing --account" in result.output
        assert services.builds == []

    def test_account_from_env(self, adapters, services, monkeypatch):
        monkeypatch.setenv("GOG_ACCOUNT", "env@example.com")
        services.service("gmail").users().labels().list().execute.return_value = {"labels": []}

        result = runner.invoke(app, ["--json", "gmail", "labels", "list"], obj=adapters)

        assert result.exit_code == 0
        assert services.builds == [("gmail", "v1", "env@example.com")]

    def test_account_from_config(self, adapters, services):
        config.save_user_config({"account": "cfg@example.com"})
        services.service("gmail").users().labels().list().execute.return_value = {"labels": []}

        runner.invoke(app, ["--json", "gmail", "labels", "list"], obj=adapters)

        assert services.builds[0][2] == "cfg@example.com"


class TestCommandGates:
    """Gates run before the command body, so nothing is built."""

    def test_disabled_prefix_blocks(self, adapters, services):
        result = runner.invoke(
            app,
            ["--disable-commands", "gmail.messages", "-a", "me@example.com", "gmail", "messages", "list"],
            obj=adapters,
        )
        assert result.exit_code == 2
        assert "disabled" in result.output
        assert services.builds == []

    def test_disabled_sibling_allowed(self, adapters, services):
        services.service("gmail").users().labels().list().execute.return_value = {"labels": []}
        result = runner.invoke(
            app,
            ["--disable-commands", "gmail.send", "-a", "me@example.com", "--json", "gmail", "labels", "list"],
            obj=adapters,
        )
        assert result.exit_code == 0

    def test_enabled_allow_list(self, adapters):
        result = runner.invoke(app, ["--enable-commands", "gmail", "drive", "ls"], obj=adapters)
        assert result.exit_code == 2
        assert "not enabled" in result.output

    def test_env_deny_list(self, adapters, monkeypatch):
        monkeypatch.setenv("GOG_DISABLE_COMMANDS", "config")
        result = runner.invoke(app, ["config", "path"], obj=adapters)
        assert result.exit_code == 2

    def test_config_deny_list(self, adapters):
        config.save_user_config({"disable_commands": "time.now"})
        result = runner.invoke(app, ["time", "now"], obj=adapters)
        assert result.exit_code == 2


# ═══════════════════════════════════════════════════════════════════════════════
# Argument normalization
# ═══════════════════════════════════════════════════════════════════════════════


class TestNormalizeArgs:
    def test_hoists_global_flags(self):
        assert normalize_args(["gmail", "labels", "list", "--json", "-a", "me@x.com"]) == [
            "--json",
            "-a",
            "me@x.com",
            "gmail",
            "labels",
            "list",
        ]

    def test_hoists_equals_form(self):
        assert normalize_args(["drive", "ls", "--select=id,name"]) == ["--select=id,name", "drive", "ls"]

    def test_stops_at_double_dash(self):
        assert normalize_args(["sheets", "update", "--", "--json"]) == ["sheets", "update", "--", "--json"]

    def test_fields_rewritten_to_select(self):
        assert normalize_args(["drive", "ls", "--fields", "id"]) == ["--select", "id", "drive", "ls"]
        assert normalize_args(["drive", "ls", "--fields=id"]) == ["--select=id", "drive", "ls"]

    def test_fields_kept_for_calendar_events(self):
        args = ["calendar", "events", "--fields", "id,summary"]
        assert normalize_args(args) == args

    def test_command_options_untouched(self):
        assert normalize_args(["gmail", "send", "--to", "a@x.com", "-n"]) == [
            "-n",
            "gmail",
            "send",
            "--to",
            "a@x.com",
        ]

    def test_option_value_that_looks_global_stays_put(self):
        args = ["gmail", "send", "--subject", "-n", "--body", "hi"]
        assert normalize_args(args) == args

    def test_short_option_value_stays_put(self):
        assert normalize_args(["gmail", "send", "-s", "-y", "--to", "a@x.com", "-j"]) == [
            "-j",
            "gmail",
            "send",
            "-s",
            "-y",
            "--to",
            "a@x.com",
        ]

    def test_flag_option_does_not_swallow_global(self):
        assert normalize_args(["drive", "ls", "--all", "-n"]) == ["-n", "drive", "ls", "--all"]


# ═══════════════════════════════════════════════════════════════════════════════
# Local commands
# ═══════════════════════════════════════════════════════════════════════════════


class TestTimeNow:
    def test_json_in_utc(self, adapters):
        result = runner.invoke(app, ["--json", "time", "now", "--timezone", "UTC"], obj=adapters)

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["timezone"] == "UTC"
        assert data["utc_offset"] == "+00:00"
        assert data["current_time"].endswith("+00:00")

    def test_timezone_from_config(self, adapters):
        config.save_user_config({"timezone": "Asia/Kolkata"})
        result = runner.invoke(app, ["--json", "time", "now"], obj=adapters)
        assert json.loads(result.stdout)["utc_offset"] == "+05:30"

    def test_invalid_timezone(self, adapters):
        result = runner.invoke(app, ["time", "now", "--tz", "Nowhere/Else"], obj=adapters)
        assert result.exit_code == 2


class TestConfigCommands:
    def test_set_get_unset(self, adapters):
        assert runner.invoke(app, ["config", "set", "timezone", "UTC"], obj=adapters).exit_code == 0

        result = runner.invoke(app, ["--json", "config", "get", "timezone"], obj=adapters)
        assert json.loads(result.stdout) == {"key": "timezone", "value": "UTC"}

        result = runner.invoke(app, ["--json", "config", "unset", "timezone"], obj=adapters)
        assert json.loads(result.stdout)["removed"] is True
        assert config.get_setting("timezone") == ""

    def test_set_dry_run_writes_nothing(self, adapters):
        result = runner.invoke(app, ["--json", "--dry-run", "config", "set", "account", "a@b.c"], obj=adapters)

        assert result.exit_code == 0
        assert json.loads(result.stdout) == {
            "dry_run": True,
            "op": "config.set",
            "request": {"key": "account", "value": "a@b.c"},
        }
        assert config.load_user_config() == {}

    def test_unknown_key(self, adapters):
        result = runner.invoke(app, ["config", "get", "nope"], obj=adapters)
        assert result.exit_code == 2

    def test_list_human(self, adapters):
        result = runner.invoke(app, ["config", "list"], obj=adapters)
        assert "account: (not set)" in result.stdout
