"""
Error logging utility for the notification dispatcher.

Writes one timestamped report per failure so a failed tick can be inspected
after the fact (the scheduler has no caller to return errors to).
"""

import json
import os
from datetime import datetime
from typing import Any

LOG_DIR_ENV = "NOTIFICATION_ERROR_LOG_DIR"

# Tick phase each error type belongs to, shown in the report header
PHASES = {
    "time": "time resolution (tick aborted)",
    "rule_load": "rule loading",
    "claim": "daily claim",
    "evaluation": "condition evaluation",
    "focus_load": "focus-mode preferences",
    "token_load": "device token loading",
    "dispatch": "delivery",
    "token_cleanup": "stale token cleanup",
}


def _log_dir() -> str:
    return os.getenv(LOG_DIR_ENV) or os.path.join(os.path.dirname(__file__), "logs")


def _format_value(value: Any) -> str:
    # Rows and id lists are easier to read back as JSON than as Python reprs
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, default=str, ensure_ascii=False, sort_keys=True)
    return str(value)


def format_report(
    error_type: str, error_message: str, context: dict[str, Any] | None = None
) -> str:
    lines = [
        f"Notification Error Report - {datetime.now()}",
        "=" * 60,
        "",
        f"Error Type: {error_type}",
        f"Phase: {PHASES.get(error_type, 'unknown')}",
        f"Error Message: {error_message}",
    ]

    if context:
        lines += ["", "Context:", "-" * 60]
        lines += [f"{key}: {_format_value(value)}" for key, value in context.items()]

    return "\n".join(lines) + "\n"


def log_notification_error(
    error_type: str, error_message: str, context: dict[str, Any] | None = None
) -> str:
    """
    Write a notification error report.

    Args:
        error_type: Key of PHASES ('time', 'rule_load', 'claim', 'evaluation',
            'focus_load', 'token_load', 'dispatch', 'token_cleanup')
        error_message: The error message
        context: Optional details (rule_id, user_id, local_date, token counts, ...)

    Returns:
        Path to the report file
    """
    log_dir = _log_dir()
    os.makedirs(log_dir, exist_ok=True)

    # Microseconds keep reports from the same tick apart
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
    filename = os.path.join(log_dir, f"notification_error_{error_type}_{timestamp}.txt")

    with open(filename, "w", encoding="utf-8") as f:
        f.write(format_report(error_type, error_message, context))

    return filename
