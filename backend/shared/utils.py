from datetime import date, datetime
from typing import Any

from dateutil import parser as date_parser


def parse_datetime(value: Any) -> datetime | None:
    """Coerce a stored date value (ISO string, date, datetime) into a datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    try:
        return date_parser.isoparse(str(value))
    except (ValueError, OverflowError, TypeError):
        return date_parser.parse(str(value))


def print_summary(local_date: str, minute_of_day: str, stats: dict[str, int]) -> None:
    """Print tick processing summary."""
    print(f"\n{'=' * 60}")
    print(f"[{datetime.now()}] Tick Complete ({local_date} {minute_of_day})")
    print(f"{'=' * 60}")
    print(f"Rules checked:   {stats.get('rules_checked', 0)}")
    print(f"Rules fired:     {stats.get('rules_fired', 0)}")
    print(f"✓ Sent:          {stats.get('sent', 0)}")
    print(f"✗ Failed:        {stats.get('failed', 0)}")
    print(f"{'=' * 60}\n")
