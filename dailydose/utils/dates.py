"""Time helpers for team-local scheduling."""
from __future__ import annotations

import re
from datetime import date, datetime, time, timezone
from typing import Optional, Tuple, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..core.exceptions import ConfigError

_HHMM = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)$")


def parse_hhmm(value: str, team_id: Optional[int] = None) -> Tuple[int, int]:
    """Parse ``HH:MM`` into ``(hour, minute)``."""
    match = _HHMM.match((value or "").strip())
    if not match:
        raise ConfigError(f"Invalid time {value!r}, expected HH:MM", team_id)
    return int(match.group(1)), int(match.group(2))


def get_zone(name: str, team_id: Optional[int] = None) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, TypeError) as e:
        raise ConfigError(f"Unknown timezone {name!r}", team_id) from e


def shift_hhmm(hour: int, minute: int, minutes: int) -> Tuple[int, int]:
    """Add minutes to a wall-clock time, wrapping past midnight."""
    total = (hour * 60 + minute + minutes) % (24 * 60)
    return total // 60, total % 60


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def local_now(zone: ZoneInfo, now: Optional[datetime] = None) -> datetime:
    """``now`` (default: current time) expressed in ``zone``.

    Naive datetimes are taken to be UTC.
    """
    now = now or utcnow()
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(zone)


def to_local_date(value: Union[date, datetime], zone: ZoneInfo) -> date:
    """Calendar day of ``value`` in ``zone``; plain dates pass through."""
    if isinstance(value, datetime):
        return local_now(zone, value).date()
    return value


def local_datetime(day: date, hour: int, minute: int, zone: ZoneInfo) -> datetime:
    return datetime.combine(day, time(hour, minute), tzinfo=zone)


def format_time_12h(value: str) -> str:
    hour, minute = parse_hhmm(value)
    suffix = "AM" if hour < 12 else "PM"
    return f"{hour % 12 or 12}:{minute:02d} {suffix}"


def _ordinal(n: int) -> str:
    if 11 <= n % 100 <= 13:
        return f"{n}th"
    suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


def format_standup_date(day: date) -> str:
    """e.g. ``17th Oct (Sat), 2026``"""
    return f"{_ordinal(day.day)} {day:%b} ({day:%a}), {day.year}"
