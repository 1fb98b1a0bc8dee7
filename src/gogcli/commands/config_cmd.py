"""
Define config management commands.

Settings live in a flat JSON file; see ``gogcli.config`` for the layout.
"""

from __future__ import annotations

import typer

from .. import config
from ..cli_common import handle_errors
from ..dryrun import dry_run_exit
from ..runtime import get_runtime

config_app = typer.Typer(
    name="config",
    help="Read and write gog settings.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)

_NOT_SET = "(not set)"


@config_app.command("path")
@handle_errors
def config_path_cmd(ctx: typer.Context) -> None:
    """Print the config file path."""
    runtime = get_runtime(ctx)
    path = str(config.config_path())
    if runtime.is_json:
        runtime.write_json({"path": path})
        return
    typer.echo(path)


@config_app.command("list")
@handle_errors
def config_list_cmd(ctx: typer.Context) -> None:
    """List all config values."""
    runtime = get_runtime(ctx)
    cfg = config.load_user_config()
    path = str(config.config_path())

    if runtime.is_json:
        payload = {"path": path}
        for key in sorted(config.CONFIG_KEYS):
            payload[key] = str(cfg.get(key, "") or "")
        runtime.write_json(payload)
        return

    if runtime.is_plain:
        typer.echo(f"path\t{path}")
        for key in sorted(config.CONFIG_KEYS):
            typer.echo(f"{key}\t{cfg.get(key, '') or ''}")
        return

    typer.echo(f"Config file: {path}")
    for key in sorted(config.CONFIG_KEYS):
        typer.echo(f"{key}: {cfg.get(key) or _NOT_SET}")


@config_app.command("get")
@handle_errors
def config_get_cmd(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Config key"),
) -> None:
    """Get a config value."""
    runtime = get_runtime(ctx)
    key = config.validate_config_key(key)
    value = config.get_setting(key)

    if runtime.is_json:
        runtime.write_json({"key": key, "value": value})
        return
    typer.echo(value or _NOT_SET)


@config_app.command("set")
@handle_errors
def config_set_cmd(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Config key"),
    value: str = typer.Argument(..., help="Value to set"),
) -> None:
    """Set a config value."""
    runtime = get_runtime(ctx)
    key = config.validate_config_key(key)

    dry_run_exit(runtime, "config.set", {"key": key, "value": value})

    cfg = config.load_user_config()
    cfg[key] = value
    config.save_user_config(cfg)

    if runtime.is_json:
        runtime.write_json({"key": key, "value": value, "saved": True})
        return
    typer.echo(f"Set {key} = {value}")


@config_app.command("unset")
@handle_errors
def config_unset_cmd(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Config key"),
) -> None:
    """Unset a config value."""
    runtime = get_runtime(ctx)
    key = config.validate_config_key(key)

    dry_run_exit(runtime, "config.unset", {"key": key})

    cfg = config.load_user_config()
    removed = cfg.pop(key, None) is not None
    if removed:
        config.save_user_config(cfg)

    if runtime.is_json:
        runtime.write_json({"key": key, "value": "", "removed": removed})
        return
    typer.echo(f"Unset {key}")
