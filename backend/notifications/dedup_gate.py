"""
Dedup gate: decides whether a rule is due this tick and claims its day.

A rule is due when today's weekday is in its day set, the tick falls
0..FIRING_WINDOW_MINUTES minutes after its scheduled time, and it has not
already fired on today's local date. The claim is written before the rule's
condition is evaluated, so a retried or overlapping tick sees the day as
consumed.
"""

from typing import Any, Protocol

from config.dispatch_settings import FIRING_WINDOW_MINUTES
from models.notification import LocalTime, NotificationRule
from models.types import ClockString, DateString, DayList
from notifications.error_logger import log_notification_error
from notifications.rule_store import mark_rule_fired


class Schedule(Protocol):
    """Anything fired on a weekly schedule with a per-day marker (rules, focus briefings)."""

    @property
    def days(self) -> DayList: ...

    @property
    def time(self) -> ClockString: ...

    @property
    def last_sent_date(self) -> DateString | None: ...


def minutes_since_midnight(clock: ClockString) -> int:
    """Convert "HH:MM" into minutes since midnight."""
    hours, minutes = clock.split(":")
    return int(hours) * 60 + int(minutes)


def diff_minutes(rule: Schedule, now: LocalTime) -> int:
    """Minutes elapsed since the rule's scheduled time (negative if not reached)."""
    return minutes_since_midnight(now.minute_of_day) - minutes_since_midnight(rule.time)


def is_due(
    rule: Schedule, now: LocalTime, window: int = FIRING_WINDOW_MINUTES
) -> bool:
    """True when the rule should fire on this tick."""
    if now.day_of_week not in rule.days:
        return False

    diff = diff_minutes(rule, now)
    if diff < 0 or diff > window:
        return False

    return rule.last_sent_date != now.local_date


def claim(supabase: Any, rule: NotificationRule, now: LocalTime) -> bool:
    """
    Mark the rule as fired for today before it is evaluated.

    Returns:
        True if the marker was persisted; False if the write failed, in which
        case the rule is skipped this tick and retried on the next one.
    """
    try:
        mark_rule_fired(supabase, rule.id, now.local_date)
    except Exception as e:
        error_file = log_notification_error(
            error_type="claim",
            error_message=str(e),
            context={"rule_id": rule.id, "local_date": now.local_date},
        )
        print(f"  ✗ Could not claim rule {rule.id}. Details logged to: {error_file}")
        return False

    return True
