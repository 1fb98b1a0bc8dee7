"""Local time utilities (no API access)."""

from __future__ import annotations

from datetime import datetime

import typer

from .. import config
from ..cli_common import handle_errors, print_record
from ..runtime import get_runtime
from ..timezones import format_utc_offset, load_zone

time_app = typer.Typer(
    name="time",
    help="Local time utilities.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)


@time_app.command("now")
@handle_errors
def time_now_cmd(
    ctx: typer.Context,
    timezone: str | None = typer.Option(
        None, "--timezone", "--tz", help="Timezone (e.g., America/New_York, UTC)"
    ),
) -> None:
    """Show the current time."""
    runtime = get_runtime(ctx)

    tz_name = (timezone or "").strip() or config.get_setting("timezone")
    if tz_name:
        now = datetime.now(load_zone(tz_name))
    else:
        now = datetime.now().astimezone()
        tz_name = now.tzname() or "Local"

    formatted = now.strftime("%A, %B %d, %Y %I:%M %p")
    record = {
        "timezone": tz_name,
        "current_time": now.isoformat(timespec="seconds"),
        "utc_offset": format_utc_offset(now),
        "formatted": formatted,
    }

    if runtime.is_json:
        runtime.write_json(record)
        return
    print_record(record.items())
