"""
Define Google Calendar commands.

- gog calendar events [calendarId]       - List events
- gog calendar create <calendarId>       - Create an event
- gog calendar delete <calendarId> <id>  - Delete an event
"""

from __future__ import annotations

from typing import Any

import typer

from ..cli_common import handle_errors, print_hint, print_next_page_hint, print_record, print_rows
from ..confirm import confirm_destructive
from ..core.errors import UsageError
from ..dryrun import dry_run_exit
from ..google_calls import execute, execute_delete
from ..mail import split_csv
from ..paging import fail_empty_exit, fetch_pages
from ..runtime import get_runtime
from ..timezones import extract_timezone, fixed_offset_zone_name

calendar_app = typer.Typer(
    name="calendar",
    help="Google Calendar.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)

_SEND_UPDATES = ("all", "externalOnly", "none")


def build_event_time(value: str, *, all_day: bool, recurring: bool = False) -> dict[str, str]:
    """Start/end payload for an event.

    Timed events get an IANA ``timeZone`` when the offset maps to a known
    zone. Recurring events need one to expand correctly, so a whole-hour
    ``Etc/GMT`` zone is used when nothing better matches.
    """
    value = value.strip()
    if all_day:
        return {"date": value}
    out = {"dateTime": value}
    zone = extract_timezone(value)
    if not zone and recurring:
        zone = fixed_offset_zone_name(value)
    if zone:
        out["timeZone"] = zone
    return out


def build_recurrence(rules: list[str]) -> list[str]:
    out = []
    for rule in rules:
        rule = rule.strip()
        if not rule:
            continue
        if not rule.upper().startswith(("RRULE:", "EXRULE:", "RDATE:", "EXDATE:")):
            rule = f"RRULE:{rule}"
        out.append(rule)
    return out


def _validate_send_updates(value: str) -> str:
    value = value.strip()
    if value and value not in _SEND_UPDATES:
        raise UsageError(f"invalid --send-updates {value!r} (expected {', '.join(_SEND_UPDATES)})")
    return value


def _event_when(time: dict[str, Any] | None) -> str:
    time = time or {}
    return str(time.get("dateTime") or time.get("date") or "")


@calendar_app.command("events")
@handle_errors
def calendar_events_cmd(
    ctx: typer.Context,
    calendar_id: str = typer.Argument("primary", help="Calendar ID"),
    time_min: str = typer.Option("", "--from", help="Start of range (RFC3339)"),
    time_max: str = typer.Option("", "--to", help="End of range (RFC3339)"),
    query: str = typer.Option("", "--query", "-q", help="Free text search"),
    fields: str = typer.Option("", "--fields", help="API partial response fields"),
    max_results: int = typer.Option(10, "--max", help="Max results per page", min=1),
    page: str = typer.Option("", "--page", help="Page token"),
    all_pages: bool = typer.Option(False, "--all", help="Fetch all pages"),
    fail_empty: bool = typer.Option(False, "--fail-empty", help="Exit 3 when no results"),
) -> None:
    """List events from a calendar."""
    runtime = get_runtime(ctx)
    calendar_id = calendar_id.strip() or "primary"
    service = runtime.service("calendar", "v3")

    def fetch(token: str) -> tuple[list[dict[str, Any]], str | None]:
        params: dict[str, Any] = {
            "calendarId": calendar_id,
            "maxResults": max_results,
            "singleEvents": True,
            "orderBy": "startTime",
        }
        if time_min.strip():
            params["timeMin"] = time_min.strip()
        if time_max.strip():
            params["timeMax"] = time_max.strip()
        if query.strip():
            params["q"] = query.strip()
        if fields.strip():
            params["fields"] = f"nextPageToken,items({fields.strip()})"
        if token:
            params["pageToken"] = token
        resp = execute(service.events().list(**params))
        return resp.get("items") or [], resp.get("nextPageToken")

    events, next_token = fetch_pages(page, all_pages, fetch)

    if runtime.is_json:
        runtime.write_json({"events": events, "nextPageToken": next_token})
        fail_empty_exit(fail_empty and not events)
        return

    if not events:
        print_hint("No events")
        fail_empty_exit(fail_empty)
        return

    print_rows(
        runtime,
        ["ID", "START", "END", "SUMMARY"],
        [
            [e.get("id", ""), _event_when(e.get("start")), _event_when(e.get("end")), e.get("summary", "")]
            for e in events
        ],
    )
    print_next_page_hint(next_token)


@calendar_app.command("create")
@handle_errors
def calendar_create_cmd(
    ctx: typer.Context,
    calendar_id: str = typer.Argument(..., help="Calendar ID"),
    summary: str = typer.Option("", "--summary", help="Event title"),
    start: str = typer.Option("", "--from", help="Start time (RFC3339, or date with --all-day)"),
    end: str = typer.Option("", "--to", help="End time (RFC3339, or date with --all-day)"),
    description: str = typer.Option("", "--description", help="Description"),
    location: str = typer.Option("", "--location", help="Location"),
    attendees: str = typer.Option("", "--attendees", help="Comma-separated attendee emails"),
    all_day: bool = typer.Option(False, "--all-day", help="All-day event"),
    rrule: list[str] = typer.Option([], "--rrule", help="Recurrence rule (repeatable)"),
    send_updates: str = typer.Option("", "--send-updates", help="all, externalOnly or none"),
) -> None:
    """Create an event."""
    runtime = get_runtime(ctx)
    calendar_id = calendar_id.strip()
    if not calendar_id:
        raise UsageError("empty calendarId")
    if not summary.strip() or not start.strip() or not end.strip():
        raise UsageError("required: --summary, --from, --to")
    send_updates = _validate_send_updates(send_updates)

    recurrence = build_recurrence(rrule)
    event: dict[str, Any] = {
        "summary": summary.strip(),
        "start": build_event_time(start, all_day=all_day, recurring=bool(recurrence)),
        "end": build_event_time(end, all_day=all_day, recurring=bool(recurrence)),
    }
    if description:
        event["description"] = description
    if location:
        event["location"] = location
    if attendees.strip():
        event["attendees"] = [{"email": a} for a in split_csv(attendees)]
    if recurrence:
        event["recurrence"] = recurrence

    dry_run_exit(
        runtime,
        "calendar.create",
        {"calendar_id": calendar_id, "event": event, "send_updates": send_updates},
    )

    service = runtime.service("calendar", "v3")
    params: dict[str, Any] = {"calendarId": calendar_id, "body": event}
    if send_updates:
        params["sendUpdates"] = send_updates
    created = execute(service.events().insert(**params))

    if runtime.is_json:
        runtime.write_json({"event": created})
        return
    print_record(
        [
            ("id", created.get("id", "")),
            ("summary", created.get("summary", "")),
            ("start", _event_when(created.get("start"))),
            ("end", _event_when(created.get("end"))),
            ("link", created.get("htmlLink", "")),
        ]
    )


@calendar_app.command("delete")
@handle_errors
def calendar_delete_cmd(
    ctx: typer.Context,
    calendar_id: str = typer.Argument(..., help="Calendar ID"),
    event_id: str = typer.Argument(..., help="Event ID"),
    send_updates: str = typer.Option("", "--send-updates", help="all, externalOnly or none"),
) -> None:
    """Delete an event."""
    runtime = get_runtime(ctx)
    calendar_id = calendar_id.strip()
    event_id = event_id.strip()
    if not calendar_id or not event_id:
        raise UsageError("calendarId/eventId required")
    send_updates = _validate_send_updates(send_updates)

    confirm_destructive(
        runtime,
        f"delete event {event_id}",
        op="calendar.delete",
        request={"calendar_id": calendar_id, "event_id": event_id, "send_updates": send_updates},
    )

    service = runtime.service("calendar", "v3")
    params: dict[str, Any] = {"calendarId": calendar_id, "eventId": event_id}
    if send_updates:
        params["sendUpdates"] = send_updates
    deleted = execute_delete(service.events().delete(**params))

    if runtime.is_json:
        runtime.write_json({"deleted": deleted, "calendarId": calendar_id, "eventId": event_id})
        return
    print_record([("deleted", deleted), ("calendar_id", calendar_id), ("event_id", event_id)])
