"""
Business-local time resolution for notification ticks.

The tick may run in any region, so every calendar decision (today's date,
day-of-week, minute of day) is made in one configured zone rather than the
host's local time.
"""

from datetime import date, datetime, timezone
from typing import Protocol
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from config.dispatch_settings import NOTIFICATION_TIMEZONE
from models.notification import LocalTime
from notifications.errors import TimeResolutionError


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """Clock frozen at one instant (replays and tests)."""

    def __init__(self, instant: datetime):
        self.instant = instant

    def now(self) -> datetime:
        return self.instant


def format_clock(hour: int, minute: int) -> str:
    """Format HH:MM, folding a 24:xx boundary value to 00:xx."""
    return f"{hour % 24:02d}:{minute:02d}"


def day_of_week(local_date: date) -> int:
    """Day index with Sunday = 0 .. Saturday = 6."""
    return (local_date.weekday() + 1) % 7


def resolve_local_time(instant: datetime, tz_name: str = NOTIFICATION_TIMEZONE) -> LocalTime:
    """
    Convert an instant into the business-local date, weekday and clock.

    Args:
        instant: Timezone-aware instant of the tick
        tz_name: IANA zone name of the business

    Returns:
        LocalTime with local_date (YYYY-MM-DD), day_of_week (0=Sunday) and
        minute_of_day (HH:MM)

    Raises:
        TimeResolutionError: naive instant or unknown zone
    """
    if not isinstance(instant, datetime):
        raise TimeResolutionError(f"Clock returned {type(instant).__name__}, expected datetime")
    if instant.tzinfo is None or instant.utcoffset() is None:
        raise TimeResolutionError("Clock returned a naive datetime; an aware instant is required")

    try:
        zone = ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise TimeResolutionError(f"Unknown time zone {tz_name!r}") from e

    local_now = instant.astimezone(zone)

    # Weekday comes from the local calendar fields, never from the instant
    local_day = date(local_now.year, local_now.month, local_now.day)

    return LocalTime(
        local_date=local_day.isoformat(),
        day_of_week=day_of_week(local_day),
        minute_of_day=format_clock(local_now.hour, local_now.minute),
        local_now=local_now,
    )


class TimeResolver:
    """Resolves the current business-local time from an injectable clock."""

    def __init__(self, clock: Clock | None = None, tz_name: str = NOTIFICATION_TIMEZONE):
        self.clock = clock or SystemClock()
        self.tz_name = tz_name

    def current(self) -> LocalTime:
        return resolve_local_time(self.clock.now(), self.tz_name)
