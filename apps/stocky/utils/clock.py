"""
Local-day arithmetic for a configured time zone.

Stored timestamps are absolute (timestamptz). Everything that talks about
"today" or "a day" goes through a Clock so the zone is passed in, never
read from module state.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Callable, Optional, Tuple
from zoneinfo import ZoneInfo

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

_DATETIME = TypeAdapter(datetime)


class Clock:
    def __init__(self, tz_name: str = "Asia/Kolkata", now_fn: Optional[Callable[[], datetime]] = None) -> None:
        self.tz = ZoneInfo(tz_name)
        # now_fn must return an aware datetime; tests pin it
        self._now_fn = now_fn or (lambda: datetime.now(timezone.utc))

    def now(self) -> datetime:
        return self._now_fn().astimezone(self.tz)

    def local_day(self, ts: datetime) -> date:
        return ts.astimezone(self.tz).date()

    def day_range(self, day: date) -> Tuple[datetime, datetime]:
        start = datetime.combine(day, time.min, tzinfo=self.tz)
        end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=self.tz)
        return start, end

    def today_range(self) -> Tuple[datetime, datetime]:
        return self.day_range(self.now().date())


def parse_timestamp(raw: str) -> datetime:
    """
    Accepts RFC 3339 with an offset ("2026-10-19T09:15:00+05:30", "...Z")
    or a naive ISO 8601 value, which is taken as UTC.
    """
    s = (raw or "").strip()
    if not s:
        raise ValueError("empty timestamp")
    # PostgREST trims trailing zeros from fractional seconds (".12345")
    try:
        ts = _DATETIME.validate_python(s)
    except PydanticValidationError:
        raise ValueError(f"invalid timestamp: {raw!r}")
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def to_iso(ts: datetime) -> str:
    return ts.isoformat()
