"""Tests for the command allow/deny gates."""

import pytest

from gogcli.core.errors import UsageError
from gogcli.enabled_commands import (
    enforce_command_gates,
    enforce_disabled_commands,
    enforce_enabled_commands,
    parse_command_list,
)


class TestParseCommandList:
    def test_trims_lowercases_and_drops_empties(self):
        assert parse_command_list(" Gmail, ,CALENDAR ,") == {"gmail", "calendar"}

    def test_none_is_empty(self):
        assert parse_command_list(None) == set()


class TestEnabledCommands:
    """Allow-list applies to the top-level command only."""

    def test_empty_allows_everything(self):
        enforce_enabled_commands(["drive", "ls"], "")
        enforce_enabled_commands(["drive", "ls"], "   ")

    @pytest.mark.parametrize("wildcard", ["*", "all", "ALL", "gmail,*"])
    def test_wildcards_allow_everything(self, wildcard):
        enforce_enabled_commands(["drive", "ls"], wildcard)

    def test_listed_command_allowed_case_insensitively(self):
        enforce_enabled_commands(["Gmail", "send"], "calendar,GMAIL")

    def test_unlisted_command_rejected(self):
        with pytest.raises(UsageError) as exc_info:
            enforce_enabled_commands(["drive", "ls"], "gmail")
        assert exc_info.value.exit_code == 2
        assert "'drive' is not enabled" in str(exc_info.value)


class TestDisabledCommands:
    """Deny-list matches any prefix of the dotted command path."""

    def test_top_level_blocks_deeper_paths(self):
        with pytest.raises(UsageError):
            enforce_disabled_commands(["gmail", "messages", "list"], "gmail")

    def test_middle_prefix_blocks(self):
        with pytest.raises(UsageError) as exc_info:
            enforce_disabled_commands(["gmail", "messages", "list"], "gmail.messages")
        assert "gmail messages" in str(exc_info.value)

    def test_exact_leaf_blocks_only_itself(self):
        with pytest.raises(UsageError):
            enforce_disabled_commands(["gmail", "send"], "gmail.send")
        enforce_disabled_commands(["gmail", "messages", "list"], "gmail.send")

    def test_case_insensitive(self):
        with pytest.raises(UsageError):
            enforce_disabled_commands(["GMAIL", "Send"], "gmail.SEND")

    def test_sibling_not_blocked(self):
        enforce_disabled_commands(["calendar", "events"], "gmail")

    def test_empty_list_blocks_nothing(self):
        enforce_disabled_commands(["gmail", "send"], "  ")


def test_gates_combined_deny_wins_within_allowed():
    enforce_command_gates(["gmail", "labels", "list"], "gmail", "gmail.send")
    with pytest.raises(UsageError):
        enforce_command_gates(["gmail", "send"], "gmail", "gmail.send")
