"""
Focus-mode briefings.

Users who turn on focus mode get a personal reminder to open their daily
briefing, on the days and at the time they picked. The briefing goes only
to that user's devices. It uses the same firing window and once-per-day
marker as notification rules; the marker lives on the user's preferences
row.
"""

from typing import Any

from pydantic import ValidationError

from config.dispatch_settings import PREFERENCES_TABLE
from models.notification import FocusPreference, LocalTime
from models.types import DateString
from notifications.error_logger import log_notification_error
from notifications.errors import PreferenceLoadError

PREFERENCE_COLUMNS = "user_id, focus_config, focus_last_sent_date"


def load_focus_preferences(supabase: Any) -> list[FocusPreference]:
    """
    Fetch the users with focus mode turned on and a briefing time set.

    Raises:
        PreferenceLoadError: If the preferences table cannot be queried
    """
    try:
        response = supabase.table(PREFERENCES_TABLE).select(PREFERENCE_COLUMNS).execute()
    except Exception as e:
        raise PreferenceLoadError(f"Could not load user preferences: {e}") from e

    preferences: list[FocusPreference] = []
    for row in response.data or []:
        try:
            preference = FocusPreference.model_validate(row)
        except ValidationError as e:
            user_id = row.get("user_id") if isinstance(row, dict) else None
            error_file = log_notification_error(
                error_type="focus_load",
                error_message=str(e),
                context={"user_id": user_id, "row": row},
            )
            print(f"  ⚠️  Skipping malformed focus settings for {user_id}. Details logged to: {error_file}")
            continue

        if preference.is_active:
            preferences.append(preference)

    return preferences


def mark_focus_sent(supabase: Any, user_id: str, local_date: DateString) -> None:
    (
        supabase.table(PREFERENCES_TABLE)
        .update({"focus_last_sent_date": local_date})
        .eq("user_id", user_id)
        .execute()
    )


def claim_focus(supabase: Any, preference: FocusPreference, now: LocalTime) -> bool:
    """Mark today's briefing as sent; False (briefing skipped) if the write fails."""
    try:
        mark_focus_sent(supabase, preference.user_id, now.local_date)
    except Exception as e:
        error_file = log_notification_error(
            error_type="claim",
            error_message=str(e),
            context={"user_id": preference.user_id, "local_date": now.local_date},
        )
        print(f"  ✗ Could not claim focus briefing for {preference.user_id}. Details logged to: {error_file}")
        return False

    return True
