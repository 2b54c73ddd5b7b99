"""
Fan-out of fired notifications to registered devices.

Broadcast intents go to every token and personal intents only to their
recipients' tokens; each (intent, token) pair becomes one FCM message. The
whole set is handed to the channel in one send_each batch (split only at
the channel's per-call limit).
"""

import firebase_admin
from firebase_admin import exceptions as firebase_exceptions
from firebase_admin import messaging

from config.dispatch_settings import FCM_BATCH_LIMIT
from models.notification import DispatchResult, NotificationIntent
from models.types import PushToken
from notifications.error_logger import log_notification_error
from notifications.message_composer import build_message


def recipient_tokens(
    intent: NotificationIntent,
    tokens: list[PushToken],
    user_tokens: dict[str, list[PushToken]] | None = None,
) -> list[PushToken]:
    """Tokens an intent is delivered to."""
    if intent.recipients is None:
        return tokens

    targets: list[PushToken] = []
    for user_id in intent.recipients:
        for token in (user_tokens or {}).get(user_id, []):
            if token not in targets:
                targets.append(token)
    return targets


def build_messages(
    intents: list[NotificationIntent],
    tokens: list[PushToken],
    user_tokens: dict[str, list[PushToken]] | None = None,
) -> list[messaging.Message]:
    """One message per intent and target token, grouped by intent."""
    messages: list[messaging.Message] = []
    for intent in intents:
        targets = recipient_tokens(intent, tokens, user_tokens)
        if not targets:
            print(f"  ⚠️  No registered devices for {intent.tag} recipients {intent.recipients}")
        messages.extend(build_message(intent, token) for token in targets)
    return messages


def _is_stale_token_error(error: Exception | None) -> bool:
    if error is None:
        return False
    if isinstance(error, messaging.UnregisteredError):
        return True
    return (
        isinstance(error, firebase_exceptions.InvalidArgumentError)
        and "registration token" in str(error).lower()
    )


def dispatch(
    intents: list[NotificationIntent],
    tokens: list[PushToken],
    app: firebase_admin.App | None = None,
    batch_limit: int = FCM_BATCH_LIMIT,
    user_tokens: dict[str, list[PushToken]] | None = None,
) -> DispatchResult:
    """
    Send every intent to its target tokens.

    Per-message failures (expired tokens, ...) are counted without stopping
    the batch. A batch-level failure is logged and counted against the
    messages not yet acknowledged; it is never retried within the tick.

    Args:
        intents: Notifications fired this tick
        tokens: Registered recipient tokens
        app: firebase_admin App (default app when None)
        batch_limit: Maximum messages per send_each call
        user_tokens: Tokens per user id, for intents with recipients

    Returns:
        DispatchResult with success/failure counts and stale tokens
    """
    if not intents or not tokens:
        print(f"  No dispatch needed ({len(intents)} notifications, {len(tokens)} devices)")
        return DispatchResult()

    messages = build_messages(intents, tokens, user_tokens)
    if not messages:
        print("  No dispatch needed (no devices registered for the recipients)")
        return DispatchResult()

    success_count = 0
    failure_count = 0
    stale_tokens: list[PushToken] = []
    error_message = None

    print(f"  Sending {len(messages)} messages ({len(intents)} notifications, {len(tokens)} devices)...")

    try:
        for start in range(0, len(messages), batch_limit):
            chunk = messages[start:start + batch_limit]
            response = messaging.send_each(chunk, app=app)
            success_count += response.success_count
            failure_count += response.failure_count

            for message, send_response in zip(chunk, response.responses):
                if send_response.success:
                    continue
                if _is_stale_token_error(send_response.exception) and message.token not in stale_tokens:
                    stale_tokens.append(PushToken(message.token))

    except Exception as e:
        error_message = str(e)
        unsent = len(messages) - success_count - failure_count
        failure_count += unsent
        error_file = log_notification_error(
            error_type="dispatch",
            error_message=error_message,
            context={
                "message_count": len(messages),
                "unsent": unsent,
                "rule_ids": [intent.rule_id for intent in intents],
            },
        )
        print(f"  ✗ Batch send failed. Details logged to: {error_file}")

    return DispatchResult(
        success_count=success_count,
        failure_count=failure_count,
        message_count=len(messages),
        stale_tokens=stale_tokens,
        error=error_message,
    )
