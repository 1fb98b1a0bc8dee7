"""
Provide agent-friendly helper commands.

- gog agent exit-codes   - Print the stable exit code table
- gog exit-codes         - Same, as a top-level shortcut
"""

from __future__ import annotations

import typer

from ..cli_common import handle_errors
from ..core.exit_codes import stable_exit_codes
from ..output_mode import write_kv
from ..runtime import get_runtime

agent_app = typer.Typer(
    name="agent",
    help="Agent-friendly helpers.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)


@handle_errors
def exit_codes_cmd(ctx: typer.Context) -> None:
    """Print stable exit codes for scripts and agents."""
    runtime = get_runtime(ctx)
    codes = stable_exit_codes()

    if runtime.is_json:
        # Always untransformed, even with --results-only/--select.
        runtime.write_json({"exit_codes": codes}, transform=False)
        return

    if runtime.is_plain:
        write_kv(sorted(codes.items()))
        return

    for key in sorted(codes):
        typer.echo(f"{key}: {codes[key]}")


agent_app.command("exit-codes")(exit_codes_cmd)
