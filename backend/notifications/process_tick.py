"""
CLI entry point for one notification tick.

Meant to be run once a minute by an external scheduler (cron, Cloud
Scheduler, GitHub Actions). Each run evaluates the enabled rules against the
current business-local time and pushes whatever fired to every registered
device. Focus-mode briefings due in the same minute go only to their
user's devices.

Usage:
    # Run a tick for the current minute
    uv run python -m notifications.process_tick

    # Replay a tick at a fixed instant (naive values use the business zone)
    uv run python -m notifications.process_tick --at 2026-10-19T09:00

    # Dry run (evaluate and compose, but don't claim rules or send)
    uv run python -m notifications.process_tick --dry-run
"""

import argparse
from dataclasses import dataclass, field
from zoneinfo import ZoneInfo

from dateutil import parser as date_parser

from config.dispatch_settings import (
    FOCUS_MODE_ENABLED,
    NOTIFICATION_TIMEZONE,
    RELEASE_CLAIM_ON_EVALUATION_ERROR,
)
from models.notification import (
    DispatchResult,
    LocalTime,
    NotificationIntent,
    NotificationRule,
)
from notifications.conditions import EvaluationContext, evaluate_rule
from notifications.dedup_gate import claim, is_due
from notifications.dispatcher import dispatch, recipient_tokens
from notifications.error_logger import log_notification_error
from notifications.errors import (
    PreferenceLoadError,
    RuleLoadError,
    TimeResolutionError,
    TokenLoadError,
)
from notifications.focus_mode import claim_focus, load_focus_preferences
from notifications.message_composer import build_focus_intent, build_intent
from notifications.rule_store import load_enabled_rules, release_rule_claim
from notifications.time_resolver import Clock, FixedClock, TimeResolver
from notifications.token_registry import (
    load_token_records,
    remove_stale_tokens,
    tokens_by_user,
)
from shared.services import Services, create_services
from shared.utils import print_summary


@dataclass
class TickReport:
    """What happened during one tick."""

    local_time: LocalTime | None = None
    rules_checked: int = 0
    fired_rule_ids: list[str] = field(default_factory=list)
    focus_user_ids: list[str] = field(default_factory=list)
    intents: list[NotificationIntent] = field(default_factory=list)
    token_count: int = 0
    dispatch: DispatchResult = field(default_factory=DispatchResult)
    aborted: str | None = None

    def stats(self) -> dict[str, int]:
        return {
            "rules_checked": self.rules_checked,
            "rules_fired": len(self.intents),
            "sent": self.dispatch.success_count,
            "failed": self.dispatch.failure_count,
        }


def _abort(report: TickReport, phase: str, error: Exception, context: dict) -> TickReport:
    error_file = log_notification_error(
        error_type=phase, error_message=str(error), context=context
    )
    print(f"✗ Tick aborted during {phase}: {error}")
    print(f"  Error details logged to: {error_file}")
    report.aborted = phase
    return report


def _release_claim(services: Services, rule: NotificationRule) -> None:
    try:
        release_rule_claim(services.supabase, rule.id, rule.last_sent_date)
        print(f"  ↺ Released today's claim on rule {rule.id}")
    except Exception as e:
        error_file = log_notification_error(
            error_type="claim",
            error_message=f"Could not release claim: {e}",
            context={"rule_id": rule.id, "previous_date": rule.last_sent_date},
        )
        print(f"  ✗ Could not release claim on rule {rule.id}. Details logged to: {error_file}")


def process_rule(
    services: Services,
    rule: NotificationRule,
    context: EvaluationContext,
    dry_run: bool = False,
) -> NotificationIntent | None:
    """
    Gate, claim and evaluate a single rule.

    Returns:
        The intent to send, or None when the rule does not fire this tick
    """
    if not rule.push_enabled:
        return None

    now = context.now
    try:
        due = is_due(rule, now)
    except (ValueError, TypeError) as e:
        log_notification_error(
            error_type="evaluation",
            error_message=f"Malformed rule schedule: {e}",
            context={"rule_id": rule.id, "time": rule.time, "days": rule.days},
        )
        return None

    if not due:
        return None

    print(f"\nRule {rule.id} ({rule.label}) is due at {rule.time}")

    if dry_run:
        print(f"  [DRY RUN] Would claim {now.local_date} for rule {rule.id}")
    elif not claim(services.supabase, rule, now):
        return None

    result = evaluate_rule(rule, context)

    if result.error is not None:
        if RELEASE_CLAIM_ON_EVALUATION_ERROR and not dry_run:
            _release_claim(services, rule)
        return None

    if not result.should_send:
        print(f"  ⊘ Nothing to report for rule {rule.id}")
        return None

    print(f"  ✓ Rule {rule.id} triggered (count: {result.count})")
    return build_intent(rule, result.message)


def collect_focus_intents(
    services: Services, now: LocalTime, dry_run: bool = False
) -> list[NotificationIntent]:
    """
    Claim and compose the focus-mode briefings due this tick.

    An unreadable preferences table is logged and skips the briefings only;
    rule notifications of the same tick are still sent.
    """
    try:
        preferences = load_focus_preferences(services.supabase)
    except PreferenceLoadError as e:
        error_file = log_notification_error(
            error_type="focus_load",
            error_message=str(e),
            context={"local_date": now.local_date},
        )
        print(f"  ✗ Focus briefings skipped. Details logged to: {error_file}")
        return []

    intents: list[NotificationIntent] = []
    for preference in preferences:
        if not is_due(preference, now):
            continue

        print(f"\nFocus briefing for user {preference.user_id} is due at {preference.time}")

        if dry_run:
            print(f"  [DRY RUN] Would claim {now.local_date} for user {preference.user_id}")
        elif not claim_focus(services.supabase, preference, now):
            continue

        intents.append(build_focus_intent(preference.user_id))

    return intents


def run_tick(
    services: Services,
    clock: Clock | None = None,
    tz_name: str = NOTIFICATION_TIMEZONE,
    dry_run: bool = False,
) -> TickReport:
    """
    Evaluate all enabled rules and focus briefings for the current minute and
    dispatch the result.

    Rule loading and token loading are preconditions: if either fails the tick
    stops without sending anything. Failures inside a single rule (or a
    single user's focus settings) only affect that rule or user.

    Args:
        services: Supabase and Firebase handles built at process start
        clock: Source of the tick instant (system clock when None)
        tz_name: Business time zone
        dry_run: If True, don't claim rules or send notifications

    Returns:
        TickReport describing the tick
    """
    report = TickReport()

    try:
        now = TimeResolver(clock, tz_name).current()
    except TimeResolutionError as e:
        return _abort(report, "time", e, {"tz_name": tz_name})

    report.local_time = now
    print(
        f"Notification tick: {now.local_date} {now.minute_of_day} "
        f"(day {now.day_of_week}, {tz_name})"
    )

    try:
        rules = load_enabled_rules(services.supabase)
    except RuleLoadError as e:
        return _abort(report, "rule_load", e, {"local_date": now.local_date})

    context = EvaluationContext(supabase=services.supabase, now=now)
    for rule in rules:
        report.rules_checked += 1
        intent = process_rule(services, rule, context, dry_run=dry_run)
        if intent is not None:
            report.fired_rule_ids.append(rule.id)
            report.intents.append(intent)

    if FOCUS_MODE_ENABLED:
        for intent in collect_focus_intents(services, now, dry_run=dry_run):
            report.focus_user_ids.extend(intent.recipients or [])
            report.intents.append(intent)

    if not report.intents:
        print("No notifications to send this minute.")
        return report

    try:
        records = load_token_records(services.supabase)
    except TokenLoadError as e:
        return _abort(
            report,
            "token_load",
            e,
            {
                "local_date": now.local_date,
                "rule_ids": report.fired_rule_ids,
                "focus_user_ids": report.focus_user_ids,
            },
        )

    tokens = [record.token for record in records]
    user_tokens = tokens_by_user(records)
    report.token_count = len(tokens)

    if dry_run:
        planned = sum(len(recipient_tokens(i, tokens, user_tokens)) for i in report.intents)
        print(
            f"  [DRY RUN] Would send {planned} messages "
            f"({len(report.intents)} notifications, {len(tokens)} devices)"
        )
        return report

    report.dispatch = dispatch(
        report.intents, tokens, app=services.firebase_app, user_tokens=user_tokens
    )

    if report.dispatch.stale_tokens:
        try:
            removed = remove_stale_tokens(services.supabase, report.dispatch.stale_tokens)
            print(f"  Removed {removed} stale device tokens")
        except Exception as e:
            error_file = log_notification_error(
                error_type="token_cleanup",
                error_message=str(e),
                context={"stale_tokens": len(report.dispatch.stale_tokens)},
            )
            print(f"  ⚠️  Stale token cleanup failed. Details logged to: {error_file}")

    print_summary(now.local_date, now.minute_of_day, report.stats())
    return report


def _parse_instant(value: str, tz_name: str):
    instant = date_parser.isoparse(value)
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=ZoneInfo(tz_name))
    return instant


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Evaluate notification rules for the current minute and send push notifications"
    )

    parser.add_argument(
        "--at",
        type=str,
        help="Replay the tick at this ISO instant (naive values use the business time zone)",
    )

    parser.add_argument(
        "--timezone",
        type=str,
        default=NOTIFICATION_TIMEZONE,
        help=f"Business time zone (default: {NOTIFICATION_TIMEZONE})",
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Dry run mode (don't claim rules or send notifications)",
    )

    args = parser.parse_args()

    clock = None
    if args.at:
        try:
            clock = FixedClock(_parse_instant(args.at, args.timezone))
        except (ValueError, OverflowError, KeyError) as e:
            parser.error(f"Invalid --at value: {e}")

    services = create_services()
    run_tick(services, clock=clock, tz_name=args.timezone, dry_run=args.dry_run)


if __name__ == "__main__":
    main()
