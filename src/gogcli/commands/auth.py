"""
Define authentication commands.

Only service-account impersonation is managed here. Interactive OAuth flows
that would create ``tokens/<email>.json`` are not part of gog.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import typer

from .. import config
from ..cli_common import handle_errors, print_hint, print_record
from ..confirm import confirm_destructive
from ..core.errors import UsageError
from ..dryrun import dry_run_exit
from ..runtime import Runtime, get_runtime

logger = logging.getLogger(__name__)

auth_app = typer.Typer(
    name="auth",
    help="Manage stored credentials.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)

service_account_app = typer.Typer(
    name="service-account",
    help="Service account keys used for domain-wide delegation.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)

auth_app.add_typer(service_account_app, name="service-account")


@dataclass(frozen=True)
class ServiceAccountInfo:
    client_email: str = ""
    client_id: str = ""


def parse_service_account_json(data: bytes) -> ServiceAccountInfo:
    try:
        parsed = json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise UsageError(f"invalid service account JSON: {e}") from e
    if not isinstance(parsed, dict) or parsed.get("type") != "service_account":
        raise UsageError("invalid service account JSON: expected type=service_account")

    def _str(key: str) -> str:
        value = parsed.get(key)
        return value.strip() if isinstance(value, str) else ""

    return ServiceAccountInfo(client_email=_str("client_email"), client_id=_str("client_id"))


def _require_email(email: str) -> str:
    email = email.strip()
    if not email:
        raise UsageError("empty email")
    return email


def _emit(runtime: Runtime, record: dict[str, Any]) -> None:
    if runtime.is_json:
        runtime.write_json(record)
        return
    print_record((k, v) for k, v in record.items() if v != "")


@service_account_app.command("set")
@handle_errors
def service_account_set_cmd(
    ctx: typer.Context,
    email: str = typer.Argument(..., help="Workspace user email to impersonate"),
    key: str = typer.Option(..., "--key", help="Path to service account JSON key file"),
) -> None:
    """Store a service account key for impersonation."""
    runtime = get_runtime(ctx)
    email = _require_email(email)
    key_path = config.expand_path(key)

    try:
        data = key_path.read_bytes()
    except OSError as e:
        raise UsageError(f"read service account key: {e.strerror or e}") from e

    info = parse_service_account_json(data)
    dest = config.service_account_path(email)

    dry_run_exit(
        runtime,
        "auth.service_account.set",
        {
            "email": email,
            "key_path": str(key_path),
            "dest_path": str(dest),
            "client_email": info.client_email,
            "client_id": info.client_id,
        },
    )

    config.write_private_file(dest, data)
    logger.debug("stored service account key for %s at %s", email, dest)

    _emit(
        runtime,
        {
            "stored": True,
            "email": email,
            "path": str(dest),
            "client_email": info.client_email,
            "client_id": info.client_id,
        },
    )
    if not runtime.is_json:
        print_hint(f"Service account configured. Use: gog <cmd> --account {email}")


@service_account_app.command("unset")
@handle_errors
def service_account_unset_cmd(
    ctx: typer.Context,
    email: str = typer.Argument(..., help="Impersonated user email"),
) -> None:
    """Remove a stored service account key."""
    runtime = get_runtime(ctx)
    email = _require_email(email)
    path: Path = config.service_account_path(email)

    confirm_destructive(
        runtime,
        f"remove stored service account for {email}",
        op="auth.service_account.unset",
        request={"email": email, "path": str(path)},
    )

    try:
        path.unlink()
        deleted = True
    except FileNotFoundError:
        deleted = False

    _emit(runtime, {"deleted": deleted, "email": email, "path": str(path)})


@service_account_app.command("status")
@handle_errors
def service_account_status_cmd(
    ctx: typer.Context,
    email: str = typer.Argument(..., help="Impersonated user email"),
) -> None:
    """Show whether a service account key is stored for an email."""
    runtime = get_runtime(ctx)
    email = _require_email(email)
    path = config.service_account_path(email)

    try:
        data = path.read_bytes()
    except FileNotFoundError:
        _emit(
            runtime,
            {
                "email": email,
                "path": str(path),
                "exists": False,
                "stored": False,
                "message": "no service account configured",
            },
        )
        return

    info = parse_service_account_json(data)
    _emit(
        runtime,
        {
            "email": email,
            "path": str(path),
            "exists": True,
            "stored": True,
            "client_email": info.client_email,
            "client_id": info.client_id,
        },
    )
