"""
Request-scoped runtime passed to every command.

The root callback resolves global flags once and stores a ``Runtime`` on the
Typer context object; commands fetch it with ``get_runtime(ctx)``. Service
construction goes through the injected ``ServiceFactory`` so tests can swap
in fakes without touching module globals.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any

import click

from . import config
from .bootstrap import DefaultAdapters
from .core.errors import UsageError
from .output_mode import JSONTransform, Mode, write_json

ACCOUNT_ENV = "GOG_ACCOUNT"


@dataclass
class RootFlags:
    """Global flags shared by all commands."""

    account: str = ""
    json: bool = False
    plain: bool = False
    results_only: bool = False
    select: tuple[str, ...] = field(default_factory=tuple)
    dry_run: bool = False
    force: bool = False
    no_input: bool = False
    verbose: bool = False
    enable_commands: str = ""
    disable_commands: str = ""


@dataclass
class Runtime:
    flags: RootFlags
    mode: Mode
    adapters: DefaultAdapters

    @property
    def is_json(self) -> bool:
        return self.mode.json

    @property
    def is_plain(self) -> bool:
        return self.mode.plain

    @property
    def transform(self) -> JSONTransform:
        return JSONTransform(results_only=self.flags.results_only, select=self.flags.select)

    def write_json(self, value: Any, *, transform: bool = True) -> None:
        write_json(value, self.transform if transform else None)

    def require_account(self) -> str:
        """Resolve the account: --account, then GOG_ACCOUNT, then config."""
        account = self.flags.account.strip()
        if not account:
            account = os.environ.get(ACCOUNT_ENV, "").strip()
        if not account:
            account = config.get_setting("account")
        if not account:
            raise UsageError(
                "missing --account",
                suggested_action="Pass --account you@example.com or run: gog config set account <email>",
            )
        return account

    def service(self, api: str, version: str) -> Any:
        """Open a Google API service for the resolved account."""
        return self.adapters.services.build(api, version, self.require_account())


def get_runtime(ctx: click.Context) -> Runtime:
    runtime = ctx.find_object(Runtime)
    if runtime is None:
        raise RuntimeError("gog runtime not initialised (root callback did not run)")
    return runtime
