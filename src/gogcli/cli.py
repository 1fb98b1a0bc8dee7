"""
gog - Google Workspace in your terminal.

This module is the thin orchestrator: the root callback resolves the global
flags into a ``Runtime`` and each service group lives in ``commands/``:
- commands/gmail.py: send, messages, labels, threads, attachments, drafts, tracking
- commands/calendar.py: events, create, delete
- commands/drive.py, sheets.py, slides.py, tasks.py, groups.py
- commands/auth.py, config_cmd.py, time_cmd.py, agent.py: local utilities
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Sequence
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_installed_version

import click
import typer

from . import __version__, config
from .bootstrap import DefaultAdapters, get_default_adapters
from .cli_common import configure_logging, console, render_error
from .commands.agent import agent_app, exit_codes_cmd
from .commands.auth import auth_app
from .commands.calendar import calendar_app
from .commands.config_cmd import config_app
from .commands.drive import drive_app
from .commands.gmail import gmail_app
from .commands.groups import groups_app
from .commands.sheets import sheets_app
from .commands.slides import slides_app
from .commands.tasks import tasks_app
from .commands.time_cmd import time_app
from .core.errors import GogError
from .output_mode import resolve_mode, split_comma_list
from .runtime import RootFlags, Runtime

logger = logging.getLogger(__name__)

# ─────────────────────────────────────────────────────────────────────────────
# App Configuration
# ─────────────────────────────────────────────────────────────────────────────

app = typer.Typer(
    name="gog",
    help="Google Workspace from the command line: Gmail, Calendar, Drive, Sheets, Slides, Tasks, Groups.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _package_version() -> str:
    try:
        return get_installed_version("gogcli")
    except PackageNotFoundError:
        return __version__


# ─────────────────────────────────────────────────────────────────────────────
# Global Callback
# ─────────────────────────────────────────────────────────────────────────────


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    json_out: bool = typer.Option(
        False, "--json", "-j", "--machine", help="Output JSON to stdout (best for scripting)"
    ),
    plain: bool = typer.Option(
        False, "--plain", "-p", "--tsv", help="Output stable, parseable text (TSV; no colors)"
    ),
    results_only: bool = typer.Option(
        False, "--results-only", help="In JSON mode, emit only the primary result"
    ),
    select: str = typer.Option(
        "", "--select", "--pick", "--project", help="In JSON mode, keep only these comma-separated fields"
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", "-n", "--dryrun", "--noop", help="Do not make changes; print intended actions"
    ),
    force: bool = typer.Option(False, "--force", "-y", "--yes", help="Skip confirmations"),
    no_input: bool = typer.Option(
        False, "--no-input", "--non-interactive", help="Never prompt; fail instead"
    ),
    account: str = typer.Option("", "--account", "-a", "--acct", help="Account email for API commands"),
    enable_commands: str = typer.Option(
        "",
        "--enable-commands",
        envvar="GOG_ENABLE_COMMANDS",
        help="Comma-separated list of enabled top-level commands",
    ),
    disable_commands: str = typer.Option(
        "",
        "--disable-commands",
        envvar="GOG_DISABLE_COMMANDS",
        help="Comma-separated list of disabled commands (dot paths allowed)",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
    version: bool = typer.Option(False, "--version", help="Show version and exit.", is_eager=True),
) -> None:
    """Google Workspace from the command line."""
    if version:
        console.print(f"gog {_package_version()}", markup=False)
        raise typer.Exit()

    configure_logging(verbose)

    try:
        mode = resolve_mode(json_out, plain, stdout_is_tty=sys.stdout.isatty())
    except GogError as e:
        render_error(e)
        raise typer.Exit(e.exit_code)

    adapters = ctx.obj if isinstance(ctx.obj, DefaultAdapters) else get_default_adapters()
    flags = RootFlags(
        account=account.strip(),
        json=mode.json,
        plain=mode.plain,
        results_only=results_only,
        select=split_comma_list(select),
        dry_run=dry_run,
        force=force,
        no_input=no_input,
        verbose=verbose,
        enable_commands=enable_commands.strip() or config.get_setting("enable_commands"),
        disable_commands=disable_commands.strip() or config.get_setting("disable_commands"),
    )
    ctx.obj = Runtime(flags=flags, mode=mode, adapters=adapters)
    logger.debug("mode=%s flags=%s", mode, flags)

    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


# ─────────────────────────────────────────────────────────────────────────────
# Register Commands
# ─────────────────────────────────────────────────────────────────────────────

app.add_typer(gmail_app, name="gmail")
app.add_typer(calendar_app, name="calendar")
app.add_typer(drive_app, name="drive")
app.add_typer(sheets_app, name="sheets")
app.add_typer(slides_app, name="slides")
app.add_typer(tasks_app, name="tasks")
app.add_typer(groups_app, name="groups")

app.add_typer(auth_app, name="auth")
app.add_typer(config_app, name="config")
app.add_typer(time_app, name="time")
app.add_typer(agent_app, name="agent")
app.command(name="exit-codes")(exit_codes_cmd)


# ─────────────────────────────────────────────────────────────────────────────
# Argument normalization
# ─────────────────────────────────────────────────────────────────────────────

_GLOBAL_VALUE_FLAGS = frozenset(
    {
        "--select",
        "--pick",
        "--project",
        "--account",
        "-a",
        "--acct",
        "--enable-commands",
        "--disable-commands",
    }
)
_GLOBAL_BOOL_FLAGS = frozenset(
    {
        "--json",
        "-j",
        "--machine",
        "--plain",
        "-p",
        "--tsv",
        "--results-only",
        "--dry-run",
        "-n",
        "--dryrun",
        "--noop",
        "--force",
        "-y",
        "--yes",
        "--no-input",
        "--non-interactive",
        "--verbose",
        "-v",
        "--version",
    }
)

# Commands where --fields is a real API option rather than an alias of --select.
_FIELDS_PASSTHROUGH = (("calendar", "events"),)


def _command_words(args: Sequence[str]) -> list[str]:
    words: list[str] = []
    skip_next = False
    for tok in args:
        if skip_next:
            skip_next = False
            continue
        if tok.startswith("-"):
            skip_next = tok in _GLOBAL_VALUE_FLAGS
            continue
        words.append(tok.lower())
    return words


def _rewrite_fields(args: list[str]) -> list[str]:
    words = _command_words(args)
    if any(tuple(words[: len(p)]) == p for p in _FIELDS_PASSTHROUGH):
        return args
    out = []
    for tok in args:
        if tok == "--fields":
            out.append("--select")
        elif tok.startswith("--fields="):
            out.append("--select=" + tok[len("--fields=") :])
        else:
            out.append(tok)
    return out


def _value_options(command: click.Command) -> frozenset[str]:
    """Option names of ``command`` that consume the following token."""
    names: set[str] = set()
    for param in command.params:
        if isinstance(param, click.Option) and not param.is_flag and not param.count:
            names.update(param.opts)
    return frozenset(names)


def normalize_args(argv: Sequence[str]) -> list[str]:
    """Rewrite ``--fields`` and move global flags in front of the subcommand.

    Global flags may appear anywhere before ``--``; everything after ``--``
    is passed through untouched. The value of a subcommand option is never
    hoisted, even when it looks like a global flag (``--subject -n``).
    """
    args = list(argv)
    end = args.index("--") if "--" in args else len(args)
    head, tail = _rewrite_fields(args[:end]), args[end:]

    command = typer.main.get_command(app)
    hoisted: list[str] = []
    rest: list[str] = []
    i = 0
    while i < len(head):
        tok = head[i]
        name = tok.split("=", 1)[0]
        if name in _GLOBAL_VALUE_FLAGS:
            hoisted.append(tok)
            if "=" not in tok and i + 1 < len(head):
                i += 1
                hoisted.append(head[i])
        elif tok in _GLOBAL_BOOL_FLAGS:
            hoisted.append(tok)
        elif tok.startswith("-"):
            rest.append(tok)
            if "=" not in tok and name in _value_options(command) and i + 1 < len(head):
                i += 1
                rest.append(head[i])
        else:
            rest.append(tok)
            if isinstance(command, click.Group) and tok in command.commands:
                command = command.commands[tok]
        i += 1
    return hoisted + rest + tail


# ─────────────────────────────────────────────────────────────────────────────
# Entry Point
# ─────────────────────────────────────────────────────────────────────────────


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point for the CLI."""
    args = sys.argv[1:] if argv is None else list(argv)
    app(args=normalize_args(args), prog_name="gog")


if __name__ == "__main__":
    main()
