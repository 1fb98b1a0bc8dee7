"""
Output mode resolution and machine-readable writers.

Three modes:
- JSON: the exact result structure, optionally transformed by the global
  ``--results-only`` / ``--select`` flags.
- Plain: stable TSV on stdout (``key\\tvalue`` records, header + rows lists).
- Human: Rich tables and hints (see ``cli_common``).

The mode is resolved once per process from merged flags and environment and
then travels with the request-scoped ``Runtime``.
"""

from __future__ import annotations

import json
import os
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

import typer

from .core.errors import UsageError

TRUTHY = frozenset({"1", "true", "yes", "y", "on"})

# Envelope keys that are never the primary result.
_META_KEYS = frozenset(
    {
        "nextPageToken",
        "next_cursor",
        "has_more",
        "count",
        "query",
        "dry_run",
        "dryRun",
        "op",
        "action",
        "note",
        "notes",
    }
)

# Fallback result keys, most common first.
_KNOWN_RESULT_KEYS = (
    "files",
    "threads",
    "messages",
    "labels",
    "events",
    "calendars",
    "tasks",
    "tasklists",
    "lists",
    "groups",
    "members",
    "attachments",
    "slides",
    "values",
    "request",
)


def env_bool(key: str) -> bool:
    return os.environ.get(key, "").strip().lower() in TRUTHY


@dataclass(frozen=True)
class Mode:
    """Resolved output mode."""

    json: bool = False
    plain: bool = False


def from_flags(json_out: bool, plain_out: bool) -> Mode:
    if json_out and plain_out:
        raise UsageError("invalid output mode (cannot combine --json and --plain)")
    return Mode(json=json_out, plain=plain_out)


def from_env() -> Mode:
    return Mode(json=env_bool("GOG_JSON"), plain=env_bool("GOG_PLAIN"))


def resolve_mode(json_flag: bool, plain_flag: bool, *, stdout_is_tty: bool) -> Mode:
    """Merge flags and environment into a Mode.

    An explicit flag beats the opposite environment default, and
    ``GOG_AUTO_JSON`` switches to JSON when stdout is piped.
    """
    env = from_env()
    json_out = json_flag or (env.json and not plain_flag)
    plain_out = plain_flag or (env.plain and not json_flag)
    if env_bool("GOG_AUTO_JSON") and not json_out and not plain_out and not stdout_is_tty:
        json_out = True
    return from_flags(json_out, plain_out)


# ─────────────────────────────────────────────────────────────────────────────
# JSON transforms
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class JSONTransform:
    """Global JSON post-processing.

    results_only unwraps the top-level envelope and emits only the primary
    result (best-effort; drops metadata like nextPageToken). select projects
    objects to the requested dot paths; applied to a list, it projects each
    element.
    """

    results_only: bool = False
    select: tuple[str, ...] = field(default_factory=tuple)

    @property
    def active(self) -> bool:
        return self.results_only or bool(self.select)


def split_comma_list(value: str | None) -> tuple[str, ...]:
    if not value:
        return ()
    return tuple(part.strip() for part in value.split(",") if part.strip())


def apply_json_transform(value: Any, transform: JSONTransform) -> Any:
    # Round-trip so every value is a plain dict/list structure.
    generic = json.loads(json.dumps(value, default=str))
    if transform.results_only:
        generic = unwrap_primary(generic)
    if transform.select:
        generic = select_fields(generic, transform.select)
    return generic


def unwrap_primary(value: Any) -> Any:
    if not isinstance(value, dict):
        return value

    if "results" in value:
        return value["results"]

    candidates = [k for k in value if k not in _META_KEYS]
    if len(candidates) == 1:
        return value[candidates[0]]

    for key in candidates:
        if isinstance(value[key], list):
            return value[key]

    for key in _KNOWN_RESULT_KEYS:
        if key in value:
            return value[key]

    return value


def select_fields(value: Any, fields: Sequence[str]) -> Any:
    if isinstance(value, list):
        return [_select_from_item(item, fields) for item in value]
    return _select_from_item(value, fields)


def _select_from_item(value: Any, fields: Sequence[str]) -> Any:
    if not isinstance(value, dict):
        return value
    out: dict[str, Any] = {}
    for path in fields:
        found, item = get_at_path(value, path)
        if found:
            out[path] = item
    return out


def get_at_path(value: Any, path: str) -> tuple[bool, Any]:
    """Resolve a dot path; numeric segments index into lists."""
    path = path.strip()
    if not path:
        return False, None

    current = value
    for segment in path.split("."):
        segment = segment.strip()
        if not segment:
            return False, None
        if isinstance(current, dict):
            if segment not in current:
                return False, None
            current = current[segment]
        elif isinstance(current, list):
            if not segment.isdigit() or int(segment) >= len(current):
                return False, None
            current = current[int(segment)]
        else:
            return False, None
    return True, current


# ─────────────────────────────────────────────────────────────────────────────
# Writers
# ─────────────────────────────────────────────────────────────────────────────


def dumps_json(value: Any, *, indent: int | None = 2) -> str:
    return json.dumps(value, indent=indent, ensure_ascii=False, default=str)


def write_json(value: Any, transform: JSONTransform | None = None) -> None:
    """Write JSON to stdout, applying the transform when one is active."""
    if transform is not None and transform.active:
        value = apply_json_transform(value, transform)
    typer.echo(dumps_json(value))


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    text = str(value)
    return text.replace("\t", " ").replace("\r", " ").replace("\n", " ")


def write_kv(pairs: Iterable[tuple[str, Any]]) -> None:
    """Write ``key\\tvalue`` lines."""
    for key, value in pairs:
        typer.echo(f"{key}\t{_cell(value)}")


def write_rows(rows: Iterable[Sequence[Any]]) -> None:
    for row in rows:
        typer.echo("\t".join(_cell(c) for c in row))


def write_tsv(headers: Sequence[str], rows: Iterable[Sequence[Any]]) -> None:
    """Write a header line followed by tab-separated rows."""
    typer.echo("\t".join(headers))
    write_rows(rows)
