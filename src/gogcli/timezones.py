"""Timezone helpers for calendar and time commands."""

from __future__ import annotations

from datetime import datetime, timedelta, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .core.errors import UsageError

# Checked in order; the first zone whose offset at the instant matches wins.
# Denver precedes Phoenix (both -07:00 in winter) and Phoenix precedes
# Los_Angeles (both -07:00 in summer).
_US_ZONES = (
    "America/New_York",
    "America/Chicago",
    "America/Denver",
    "America/Phoenix",
    "America/Los_Angeles",
)


def parse_rfc3339(value: str) -> datetime:
    """Parse an RFC3339 timestamp (``Z`` or ``±HH:MM``) into an aware datetime."""
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        raise ValueError(f"timestamp has no UTC offset: {value!r}")
    return parsed


def extract_timezone(timestamp: str) -> str:
    """Best-effort IANA name for the offset in an RFC3339 timestamp.

    Offsets are ambiguous, so only a handful of US zones are recognised
    (DST-aware for the given date). Zero offset maps to ``UTC``. Anything
    else, including unparseable input, returns an empty string.
    """
    try:
        parsed = parse_rfc3339(timestamp)
    except ValueError:
        return ""

    offset = parsed.utcoffset()
    if offset is None:
        return ""
    if offset == timedelta(0):
        return "UTC"

    for name in _US_ZONES:
        try:
            zone = ZoneInfo(name)
        except ZoneInfoNotFoundError:
            continue
        if parsed.astimezone(zone).utcoffset() == offset:
            return name
    return ""


def fixed_offset_zone_name(timestamp: str) -> str:
    """``Etc/GMT±H`` for whole-hour offsets (POSIX sign: east is negative)."""
    try:
        offset = parse_rfc3339(timestamp).utcoffset()
    except ValueError:
        return ""
    if offset is None:
        return ""
    seconds = int(offset.total_seconds())
    if seconds == 0:
        return "UTC"
    if seconds % 3600:
        return ""
    hours = seconds // 3600
    return f"Etc/GMT{-hours:+d}"


def format_utc_offset(moment: datetime) -> str:
    """``±HH:MM`` for an aware datetime."""
    offset = moment.utcoffset() or timedelta(0)
    total = int(offset.total_seconds())
    sign = "-" if total < 0 else "+"
    total = abs(total)
    return f"{sign}{total // 3600:02d}:{(total % 3600) // 60:02d}"


def load_zone(name: str) -> tzinfo:
    try:
        return ZoneInfo(name.strip())
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise UsageError(f"invalid timezone {name!r}") from e
