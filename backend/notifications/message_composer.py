"""
Builds notification payloads for fired rules.

One channel-agnostic NotificationIntent is built per rule, then rendered
into an FCM message per recipient with Android, APNs and Web Push variants.
Nothing here performs I/O.
"""

from firebase_admin import messaging

from config.dispatch_settings import (
    FOCUS_MODE_BODY,
    FOCUS_MODE_TAG,
    FOCUS_MODE_TITLE,
    NOTIFICATION_ICON_URL,
    NOTIFICATION_LINK,
    NOTIFICATION_TITLE_PREFIX,
)
from models.notification import NotificationIntent, NotificationRule
from models.types import PushToken, RuleID


def build_intent(
    rule: NotificationRule, message: str, link: str = NOTIFICATION_LINK
) -> NotificationIntent:
    """Canonical title/body/data for a fired rule."""
    return NotificationIntent(
        rule_id=rule.id,
        title=f"{NOTIFICATION_TITLE_PREFIX}{rule.label}",
        body=message,
        data={"link": link, "ruleId": rule.id},
        tag=f"rule-{rule.id}",
    )


def build_focus_intent(user_id: str, link: str = NOTIFICATION_LINK) -> NotificationIntent:
    """Personal focus-mode briefing, addressed only to the user's own devices."""
    return NotificationIntent(
        rule_id=RuleID(FOCUS_MODE_TAG),
        title=FOCUS_MODE_TITLE,
        body=FOCUS_MODE_BODY,
        data={"link": link, "ruleId": FOCUS_MODE_TAG},
        tag=FOCUS_MODE_TAG,
        recipients=[user_id],
    )


def build_android_config() -> messaging.AndroidConfig:
    return messaging.AndroidConfig(priority="high")


def build_apns_config() -> messaging.APNSConfig:
    # content-available wakes the app even when the banner is not shown
    return messaging.APNSConfig(
        headers={"apns-priority": "10"},
        payload=messaging.APNSPayload(aps=messaging.Aps(content_available=True)),
    )


def build_webpush_config(
    intent: NotificationIntent, icon_url: str = NOTIFICATION_ICON_URL
) -> messaging.WebpushConfig:
    return messaging.WebpushConfig(
        headers={"Urgency": "high"},
        notification=messaging.WebpushNotification(
            title=intent.title,
            body=intent.body,
            icon=icon_url,
            badge=icon_url,
            tag=intent.tag,
            renotify=True,
            require_interaction=True,
        ),
        fcm_options=messaging.WebpushFCMOptions(link=intent.data["link"]),
    )


def build_message(intent: NotificationIntent, token: PushToken) -> messaging.Message:
    """Render one intent for one recipient token."""
    return messaging.Message(
        token=token,
        notification=messaging.Notification(title=intent.title, body=intent.body),
        data=dict(intent.data),
        android=build_android_config(),
        apns=build_apns_config(),
        webpush=build_webpush_config(intent),
    )
