# Module-level settings for the periodic notification dispatcher.
# Values come from the environment (optionally a .env file) with defaults
# matching the production deployment.

import os

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# Business time zone. Never derived from the host running the tick.
NOTIFICATION_TIMEZONE = os.getenv("NOTIFICATION_TIMEZONE", "Europe/Rome")

# A rule fires on ticks 0..FIRING_WINDOW_MINUTES minutes after its scheduled time.
FIRING_WINDOW_MINUTES = int(os.getenv("FIRING_WINDOW_MINUTES", "5"))

# Deep link opened when the notification is tapped.
NOTIFICATION_LINK = os.getenv("NOTIFICATION_LINK", "https://ep-v1-gestionale.vercel.app/")

# Icon and badge shown by web push clients.
NOTIFICATION_ICON_URL = os.getenv(
    "NOTIFICATION_ICON_URL", "https://ep-v1-gestionale.vercel.app/lemon_logo_150px.png"
)

NOTIFICATION_TITLE_PREFIX = "Alert: "

# FCM accepts at most 500 messages per send_each call.
FCM_BATCH_LIMIT = int(os.getenv("FCM_BATCH_LIMIT", "500"))

# Give the day back to a rule whose condition handler raised.
RELEASE_CLAIM_ON_EVALUATION_ERROR = _env_bool("RELEASE_CLAIM_ON_EVALUATION_ERROR", True)

# Personal focus-mode briefings, sent only to the owning user's devices.
FOCUS_MODE_ENABLED = _env_bool("FOCUS_MODE_ENABLED", True)
FOCUS_MODE_TAG = "focus-mode"
FOCUS_MODE_TITLE = "🔔 Focus Mode active"
FOCUS_MODE_BODY = "Time for your daily briefing. Tap to open the Dashboard."

# Condition handler look-ahead / look-back windows (days)
EXPIRY_LOOKAHEAD_DAYS = 7
BALANCE_DUE_AFTER_DAYS = 30
INSTALLMENT_LOOKAHEAD_DAYS = 45
LOW_LESSONS_THRESHOLD = 2

# Table names
RULES_TABLE = "notification_rules"
TOKENS_TABLE = "fcm_tokens"
ENROLLMENTS_TABLE = "enrollments"
INVOICES_TABLE = "invoices"
QUOTES_TABLE = "quotes"
PREFERENCES_TABLE = "user_preferences"
