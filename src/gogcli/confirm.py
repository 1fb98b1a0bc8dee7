"""Confirmation for destructive commands (delete/remove/unset)."""

from __future__ import annotations

import sys
from typing import Any

import typer

from .core.errors import CancelledError, UsageError
from .dryrun import dry_run_exit
from .runtime import Runtime


def is_interactive() -> bool:
    """True when a human can answer a prompt on stdin."""
    try:
        return sys.stdin.isatty()
    except (AttributeError, ValueError):
        return False


def confirm_destructive(
    runtime: Runtime,
    action: str,
    *,
    op: str | None = None,
    request: Any = None,
) -> None:
    """Ask before a destructive action unless --force is set.

    Dry-run wins over everything else so a forced dry run still never
    mutates. Without a terminal (or with --no-input) the command is refused
    instead of hanging on a prompt.
    """
    dry_run_exit(runtime, op or action, request)

    if runtime.flags.force:
        return

    if runtime.flags.no_input or not is_interactive():
        raise UsageError(
            f"refusing to {action} without --force (non-interactive)",
            suggested_action="Re-run with --force to skip confirmation",
        )

    if not typer.confirm(f"Proceed to {action}?", default=False, err=True):
        raise CancelledError("cancelled")
