"""
Registry of push recipients.

Broadcast notifications go to every registered FCM token; personal ones
(focus-mode briefings) go only to the tokens registered by their user.
"""

from typing import Any

from pydantic import ValidationError

from config.dispatch_settings import TOKENS_TABLE
from models.notification import TokenRecord
from models.types import PushToken
from notifications.error_logger import log_notification_error
from notifications.errors import TokenLoadError

TOKEN_COLUMNS = "token, user_id, updated_at"


def load_token_records(supabase: Any) -> list[TokenRecord]:
    """
    Fetch all registered push tokens with their owning user.

    Invalid rows (blank token, unparseable timestamp) are logged and skipped,
    and duplicate tokens are kept once; an empty table yields an empty list
    rather than an error.

    Raises:
        TokenLoadError: If the tokens table cannot be queried
    """
    try:
        response = supabase.table(TOKENS_TABLE).select(TOKEN_COLUMNS).execute()
    except Exception as e:
        raise TokenLoadError(f"Could not load push tokens: {e}") from e

    records: list[TokenRecord] = []
    seen: set[str] = set()
    for row in response.data or []:
        try:
            record = TokenRecord.model_validate(row)
        except ValidationError as e:
            user_id = row.get("user_id") if isinstance(row, dict) else None
            error_file = log_notification_error(
                error_type="token_load",
                error_message=str(e),
                context={"user_id": user_id},
            )
            print(f"  ⚠️  Skipping invalid device token row. Details logged to: {error_file}")
            continue

        if record.token in seen:
            continue
        seen.add(record.token)
        records.append(record)

    return records


def tokens_by_user(records: list[TokenRecord]) -> dict[str, list[PushToken]]:
    """Group tokens by owning user; tokens without a user are left out."""
    grouped: dict[str, list[PushToken]] = {}
    for record in records:
        if record.user_id:
            grouped.setdefault(record.user_id, []).append(record.token)
    return grouped


def remove_stale_tokens(supabase: Any, tokens: list[PushToken]) -> int:
    """
    Delete tokens the delivery channel reported as unregistered or invalid.

    Returns:
        Number of tokens submitted for deletion
    """
    if not tokens:
        return 0

    supabase.table(TOKENS_TABLE).delete().in_("token", list(tokens)).execute()
    return len(tokens)
