"""Dry-run short-circuit for mutating commands."""

from __future__ import annotations

from typing import Any

import typer

from .cli_common import console
from .output_mode import dumps_json, write_kv
from .runtime import Runtime


def dry_run_payload(op: str, request: Any) -> dict[str, Any]:
    return {"dry_run": True, "op": op, "request": request}


def dry_run_exit(runtime: Runtime, op: str, request: Any = None) -> None:
    """Print the intended operation and exit successfully when --dry-run is set.

    Call this from mutating commands before building any Google service, so
    dry runs never touch credentials or the network.
    """
    if not runtime.flags.dry_run:
        return

    if runtime.is_json:
        # Dry-run payloads are never reshaped by --results-only/--select.
        runtime.write_json(dry_run_payload(op, request), transform=False)
        raise typer.Exit(0)

    if runtime.is_plain:
        pairs: list[tuple[str, Any]] = [("dry_run", True), ("op", op)]
        if request is not None:
            pairs.append(("request_json", dumps_json(request, indent=None)))
        write_kv(pairs)
        raise typer.Exit(0)

    console.print(f"Dry run: would {op}", markup=False)
    if request is not None:
        console.print(dumps_json(request), markup=False, soft_wrap=True)
    raise typer.Exit(0)
