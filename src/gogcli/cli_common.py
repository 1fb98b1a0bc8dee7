"""
CLI Common Utilities.

Shared utilities, constants, and decorators used across all CLI modules.
This module is extracted to prevent circular imports and enable clean composition.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from functools import wraps
from typing import Any, TypeVar, cast

import click
import typer
from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from .core.errors import GogError
from .core.exit_codes import EXIT_CANCELLED, get_exit_code_for_exception
from .enabled_commands import enforce_command_gates
from .output_mode import write_kv, write_tsv
from .runtime import Runtime

F = TypeVar("F", bound=Callable[..., Any])

logger = logging.getLogger(__name__)

# ─────────────────────────────────────────────────────────────────────────────
# Shared Consoles
# ─────────────────────────────────────────────────────────────────────────────

console = Console(highlight=False)
err_console = Console(stderr=True, highlight=False)

_LOG_HANDLER_NAME = "gogcli-stderr"


def configure_logging(verbose: bool) -> None:
    """Route the ``gogcli`` logger to stderr; DEBUG with --verbose."""
    root = logging.getLogger("gogcli")
    root.setLevel(logging.DEBUG if verbose else logging.WARNING)
    if any(h.get_name() == _LOG_HANDLER_NAME for h in root.handlers):
        return
    handler = RichHandler(console=err_console, show_time=False, show_path=False)
    handler.set_name(_LOG_HANDLER_NAME)
    root.addHandler(handler)
    root.propagate = False


# ─────────────────────────────────────────────────────────────────────────────
# Error Boundary Decorator
# ─────────────────────────────────────────────────────────────────────────────


def _command_path(ctx: click.Context) -> list[str]:
    # Skip the program name (the root context's info_name).
    return ctx.command_path.split()[1:]


def _enforce_gates() -> None:
    ctx = click.get_current_context(silent=True)
    if ctx is None:
        return
    runtime = ctx.find_object(Runtime)
    if runtime is None:
        return
    enforce_command_gates(
        _command_path(ctx),
        runtime.flags.enable_commands,
        runtime.flags.disable_commands,
    )


def render_error(error: BaseException) -> None:
    message = str(error).strip()
    if message:
        err_console.print(f"[red]Error:[/red] {escape(message)}", soft_wrap=True)
    suggestion = getattr(error, "suggested_action", None)
    if suggestion:
        err_console.print(f"[dim]{escape(suggestion)}[/dim]", soft_wrap=True)


def handle_errors(func: F) -> F:
    """Decorator forming the command boundary.

    Enforces the enable/disable command gates before the command body runs,
    then maps every escaping exception to a stable exit code.
    """

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            _enforce_gates()
            return func(*args, **kwargs)
        except GogError as e:
            render_error(e)
            raise typer.Exit(e.exit_code)
        except KeyboardInterrupt:
            err_console.print("\n[dim]Operation cancelled.[/dim]")
            raise typer.Exit(EXIT_CANCELLED)
        except (typer.Exit, typer.Abort, click.ClickException, SystemExit):
            # Let typer exits pass through
            raise
        except Exception as e:
            logger.debug("command failed", exc_info=True)
            render_error(e)
            raise typer.Exit(get_exit_code_for_exception(e))

    return cast(F, wrapper)


# ─────────────────────────────────────────────────────────────────────────────
# Mode-aware printing
# ─────────────────────────────────────────────────────────────────────────────


def render_table(headers: Sequence[str], rows: Iterable[Sequence[Any]]) -> None:
    """Render an aligned table with a header row (human mode)."""
    table = Table(box=box.SIMPLE_HEAD, header_style="bold", show_edge=False, pad_edge=False)
    for header in headers:
        table.add_column(header, overflow="fold")
    for row in rows:
        table.add_row(*(Text("" if c is None else str(c)) for c in row))
    console.print(table)


def print_rows(runtime: Runtime, headers: Sequence[str], rows: Sequence[Sequence[Any]]) -> None:
    """TSV in plain mode, an aligned table otherwise."""
    if runtime.is_plain:
        write_tsv(headers, rows)
        return
    render_table(headers, rows)


def print_record(pairs: Iterable[tuple[str, Any]]) -> None:
    """Single records print as ``key\\tvalue`` in both text modes."""
    write_kv(pairs)


def print_hint(message: str) -> None:
    err_console.print(message, soft_wrap=True, markup=False)


def print_next_page_hint(next_page_token: str) -> None:
    if next_page_token:
        print_hint(f"# Next page: --page {next_page_token}")
