"""
Command enable/disable gating.

Two independent lists restrict what may run:
- the allow-list names top-level commands (``gmail,calendar``); ``*`` or
  ``all`` allows everything;
- the deny-list names dot-separated command paths (``gmail.send``); any
  prefix of the invoked path blocks it.

Both are case-insensitive, and an empty or whitespace-only list imposes no
restriction.
"""

from __future__ import annotations

from collections.abc import Sequence

from .core.errors import UsageError


def parse_command_list(value: str | None) -> set[str]:
    out: set[str] = set()
    for part in (value or "").split(","):
        part = part.strip().lower()
        if part:
            out.add(part)
    return out


def enforce_enabled_commands(command: Sequence[str], enabled: str | None) -> None:
    """Raise UsageError unless the top-level command is allowed."""
    allow = parse_command_list(enabled)
    if not allow or "*" in allow or "all" in allow:
        return
    if not command:
        return

    top = command[0].lower()
    if top not in allow:
        raise UsageError(
            f"command {top!r} is not enabled (set --enable-commands to allow it)"
        )


def enforce_disabled_commands(command: Sequence[str], disabled: str | None) -> None:
    """Raise UsageError if any prefix of the command path is denied.

    e.g. ["gmail", "messages", "list"] checks "gmail.messages.list", then
    "gmail.messages", then "gmail".
    """
    deny = parse_command_list(disabled)
    if not deny or not command:
        return

    for i in range(len(command), 0, -1):
        prefix = ".".join(command[:i]).lower()
        if prefix in deny:
            raise UsageError(
                f"command {' '.join(command[:i])!r} is disabled (blocked by --disable-commands)"
            )


def enforce_command_gates(command: Sequence[str], enabled: str | None, disabled: str | None) -> None:
    enforce_enabled_commands(command, enabled)
    enforce_disabled_commands(command, disabled)
