"""
Persistence for notification rules.

Loads the enabled rules and writes the per-day "last sent" marker that the
dedup gate uses to fire each rule at most once per local calendar date.
"""

from typing import Any

from pydantic import ValidationError

from config.dispatch_settings import RULES_TABLE
from models.notification import NotificationRule
from models.types import DateString, RuleID
from notifications.error_logger import log_notification_error
from notifications.errors import RuleLoadError

RULE_COLUMNS = "id, label, description, enabled, days, time, last_sent_date, is_custom, push_enabled"


def load_enabled_rules(supabase: Any) -> list[NotificationRule]:
    """
    Fetch all rules with enabled = true.

    Rows that fail validation (bad time string, out-of-range day) are logged
    and skipped so one broken rule cannot block the others.

    Raises:
        RuleLoadError: If the rules table cannot be queried
    """
    try:
        response = (
            supabase.table(RULES_TABLE)
            .select(RULE_COLUMNS)
            .eq("enabled", True)
            .execute()
        )
    except Exception as e:
        raise RuleLoadError(f"Could not load notification rules: {e}") from e

    rules: list[NotificationRule] = []
    for row in response.data or []:
        try:
            rules.append(NotificationRule.model_validate(row))
        except ValidationError as e:
            rule_id = row.get("id") if isinstance(row, dict) else None
            error_file = log_notification_error(
                error_type="rule_load",
                error_message=str(e),
                context={"rule_id": rule_id, "row": row},
            )
            print(f"  ⚠️  Skipping malformed rule {rule_id}. Details logged to: {error_file}")

    return rules


def mark_rule_fired(supabase: Any, rule_id: RuleID, local_date: DateString) -> None:
    """Persist today's local date as the rule's last-sent marker."""
    (
        supabase.table(RULES_TABLE)
        .update({"last_sent_date": local_date})
        .eq("id", rule_id)
        .execute()
    )


def release_rule_claim(
    supabase: Any, rule_id: RuleID, previous_date: DateString | None
) -> None:
    """Restore the marker a rule had before it was claimed this tick."""
    (
        supabase.table(RULES_TABLE)
        .update({"last_sent_date": previous_date})
        .eq("id", rule_id)
        .execute()
    )
