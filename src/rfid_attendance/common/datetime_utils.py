from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Optional, Tuple
from zoneinfo import ZoneInfo

from ..core.constants import WEEKDAY_NAMES
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class ScanMoment:
    """Local calendar view of a scan timestamp."""

    day_of_week: str
    local_time: str
    date_key: str
    minutes: int


def resolve_timezone(name: Optional[str]) -> Optional[tzinfo]:
    """Return a tzinfo for an IANA name, or None to mean server local time."""
    if not name:
        return None
    return ZoneInfo(name)


def parse_hhmm(value: str) -> int:
    """Parse HH:MM into minutes since midnight."""
    parts = value.strip().split(":")
    if len(parts) != 2 or not parts[0].isdigit() or not parts[1].isdigit():
        raise ValidationError(f"Invalid time: {value!r}")
    hours, minutes = int(parts[0]), int(parts[1])
    if hours > 23 or minutes > 59:
        raise ValidationError(f"Invalid time: {value!r}")
    return hours * 60 + minutes


def parse_time_slot(value: str) -> Tuple[int, int]:
    """Parse HH:MM-HH:MM into (start, end) minutes; start must precede end."""
    if not value or "-" not in value:
        raise ValidationError(f"Invalid time slot: {value!r}")
    start_s, end_s = value.split("-", 1)
    start, end = parse_hhmm(start_s), parse_hhmm(end_s)
    if start >= end:
        raise ValidationError(f"Time slot must start before it ends: {value!r}")
    return start, end


def slot_start_minutes(value: str) -> int:
    """Sort key for slots by start time; malformed slots sort last."""
    try:
        return parse_hhmm(value.split("-", 1)[0])
    except ValidationError:
        return 24 * 60


def scan_moment(timestamp_ms: int, tz: Optional[tzinfo] = None) -> ScanMoment:
    """Derive weekday, HH:MM and YYYY-MM-DD of an epoch-ms timestamp.

    tz=None uses the server's local time.
    """
    if timestamp_ms is None or int(timestamp_ms) < 0:
        raise ValidationError(f"Invalid scan timestamp: {timestamp_ms!r}")
    try:
        dt = datetime.fromtimestamp(int(timestamp_ms) / 1000, tz)
    except (OverflowError, OSError, ValueError):
        raise ValidationError(f"Invalid scan timestamp: {timestamp_ms!r}") from None
    return ScanMoment(
        day_of_week=WEEKDAY_NAMES[dt.weekday()],
        local_time=dt.strftime("%H:%M"),
        date_key=dt.strftime("%Y-%m-%d"),
        minutes=dt.hour * 60 + dt.minute,
    )


def now_ms() -> int:
    """Current time in epoch milliseconds.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return int(time.time() * 1000)
