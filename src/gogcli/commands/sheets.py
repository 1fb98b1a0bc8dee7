"""
Define Google Sheets commands.

- gog sheets get <spreadsheetId> <range>
- gog sheets update <spreadsheetId> <range> <values>...
- gog sheets clear <spreadsheetId> <range>
"""

from __future__ import annotations

import json
from typing import Any

import typer

from ..cli_common import handle_errors, print_hint, print_record, print_rows
from ..core.errors import UsageError
from ..dryrun import dry_run_exit
from ..google_calls import execute
from ..output_mode import write_rows
from ..paging import fail_empty_exit
from ..runtime import get_runtime

sheets_app = typer.Typer(
    name="sheets",
    help="Google Sheets.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)

_INPUT_OPTIONS = ("RAW", "USER_ENTERED")


def _require(spreadsheet_id: str, cell_range: str) -> tuple[str, str]:
    spreadsheet_id = spreadsheet_id.strip()
    cell_range = cell_range.strip()
    if not spreadsheet_id:
        raise UsageError("empty spreadsheetId")
    if not cell_range:
        raise UsageError("empty range")
    return spreadsheet_id, cell_range


def parse_values(values: list[str], values_json: str) -> list[list[Any]]:
    """Rows from ``--values-json`` or positional ``a|b|c`` row strings."""
    if values_json.strip():
        if values:
            raise UsageError("use either positional values or --values-json, not both")
        try:
            parsed = json.loads(values_json)
        except json.JSONDecodeError as e:
            raise UsageError(f"invalid --values-json: {e}") from e
        if not isinstance(parsed, list) or not all(isinstance(row, list) for row in parsed):
            raise UsageError("invalid --values-json: expected a JSON array of arrays")
        return parsed
    if not values:
        raise UsageError("required: values (positional rows or --values-json)")
    return [row.split("|") for row in values]


@sheets_app.command("get")
@handle_errors
def sheets_get_cmd(
    ctx: typer.Context,
    spreadsheet_id: str = typer.Argument(..., help="Spreadsheet ID"),
    cell_range: str = typer.Argument(..., help="A1 range (e.g. Sheet1!A1:C10)"),
    render: str = typer.Option(
        "FORMATTED_VALUE", "--render", help="FORMATTED_VALUE, UNFORMATTED_VALUE or FORMULA"
    ),
    fail_empty: bool = typer.Option(False, "--fail-empty", help="Exit 3 when no values"),
) -> None:
    """Read values from a range."""
    runtime = get_runtime(ctx)
    spreadsheet_id, cell_range = _require(spreadsheet_id, cell_range)
    service = runtime.service("sheets", "v4")
    resp = execute(
        service.spreadsheets()
        .values()
        .get(spreadsheetId=spreadsheet_id, range=cell_range, valueRenderOption=render)
    )
    rows = resp.get("values") or []

    if runtime.is_json:
        runtime.write_json(
            {
                "range": resp.get("range", cell_range),
                "majorDimension": resp.get("majorDimension", "ROWS"),
                "values": rows,
            }
        )
        fail_empty_exit(fail_empty and not rows)
        return

    if not rows:
        print_hint("No data")
        fail_empty_exit(fail_empty)
        return

    if runtime.is_plain:
        write_rows(rows)
        return
    width = max(len(r) for r in rows)
    headers = [str(c) for c in rows[0]] + [""] * (width - len(rows[0]))
    print_rows(runtime, headers, [list(r) + [""] * (width - len(r)) for r in rows[1:]])


@sheets_app.command("update")
@handle_errors
def sheets_update_cmd(
    ctx: typer.Context,
    spreadsheet_id: str = typer.Argument(..., help="Spreadsheet ID"),
    cell_range: str = typer.Argument(..., help="A1 range"),
    values: list[str] = typer.Argument(None, help="Rows as 'a|b|c'"),
    values_json: str = typer.Option("", "--values-json", help="Rows as a JSON array of arrays"),
    input_option: str = typer.Option("USER_ENTERED", "--input", help="RAW or USER_ENTERED"),
) -> None:
    """Write values to a range."""
    runtime = get_runtime(ctx)
    spreadsheet_id, cell_range = _require(spreadsheet_id, cell_range)
    input_option = input_option.strip().upper()
    if input_option not in _INPUT_OPTIONS:
        raise UsageError(f"invalid --input {input_option!r} (expected RAW or USER_ENTERED)")
    rows = parse_values(list(values or []), values_json)

    dry_run_exit(
        runtime,
        "sheets.update",
        {
            "spreadsheet_id": spreadsheet_id,
            "range": cell_range,
            "value_input_option": input_option,
            "values": rows,
        },
    )

    service = runtime.service("sheets", "v4")
    resp = execute(
        service.spreadsheets()
        .values()
        .update(
            spreadsheetId=spreadsheet_id,
            range=cell_range,
            valueInputOption=input_option,
            body={"values": rows},
        )
    )
    if runtime.is_json:
        runtime.write_json(resp)
        return
    print_record(
        [
            ("updated_range", resp.get("updatedRange", "")),
            ("updated_rows", resp.get("updatedRows", 0)),
            ("updated_columns", resp.get("updatedColumns", 0)),
            ("updated_cells", resp.get("updatedCells", 0)),
        ]
    )


@sheets_app.command("clear")
@handle_errors
def sheets_clear_cmd(
    ctx: typer.Context,
    spreadsheet_id: str = typer.Argument(..., help="Spreadsheet ID"),
    cell_range: str = typer.Argument(..., help="A1 range"),
) -> None:
    """Clear values in a range."""
    runtime = get_runtime(ctx)
    spreadsheet_id, cell_range = _require(spreadsheet_id, cell_range)

    dry_run_exit(runtime, "sheets.clear", {"spreadsheet_id": spreadsheet_id, "range": cell_range})

    service = runtime.service("sheets", "v4")
    resp = execute(
        service.spreadsheets().values().clear(spreadsheetId=spreadsheet_id, range=cell_range, body={})
    )
    cleared = resp.get("clearedRange", cell_range)
    if runtime.is_json:
        runtime.write_json({"clearedRange": cleared, "spreadsheetId": spreadsheet_id})
        return
    print_record([("cleared_range", cleared)])
