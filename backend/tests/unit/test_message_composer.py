"""
Unit tests for notifications/message_composer.py

Tests intent construction and the Android / APNs / Web Push renderings.
"""

import unittest

from firebase_admin import messaging

from config.dispatch_settings import NOTIFICATION_ICON_URL, NOTIFICATION_LINK
from notifications.message_composer import (
    build_android_config,
    build_apns_config,
    build_focus_intent,
    build_intent,
    build_message,
    build_webpush_config,
)
from tests.fixtures.rule_factory import build_rule


class TestBuildIntent(unittest.TestCase):

    def test_title_body_and_data(self):
        rule = build_rule(rule_id="low_lessons", label="Lessons running out")

        intent = build_intent(rule, "2 active enrollments have 2 or fewer lessons remaining.")

        self.assertEqual(intent.title, "Alert: Lessons running out")
        self.assertEqual(intent.body, "2 active enrollments have 2 or fewer lessons remaining.")
        self.assertEqual(intent.data, {"link": NOTIFICATION_LINK, "ruleId": "low_lessons"})
        self.assertEqual(intent.rule_id, "low_lessons")
        self.assertEqual(intent.tag, "rule-low_lessons")

    def test_custom_link(self):
        intent = build_intent(build_rule(), "msg", link="https://example.com/finance")

        self.assertEqual(intent.data["link"], "https://example.com/finance")

    def test_rule_intent_is_broadcast(self):
        self.assertIsNone(build_intent(build_rule(), "msg").recipients)


class TestBuildFocusIntent(unittest.TestCase):

    def test_addressed_to_one_user(self):
        intent = build_focus_intent("anna")

        self.assertEqual(intent.recipients, ["anna"])
        self.assertEqual(intent.tag, "focus-mode")
        self.assertEqual(intent.title, "🔔 Focus Mode active")
        self.assertEqual(intent.data, {"link": NOTIFICATION_LINK, "ruleId": "focus-mode"})

    def test_renders_like_any_intent(self):
        message = build_message(build_focus_intent("anna"), "anna-phone")

        self.assertEqual(message.token, "anna-phone")
        self.assertEqual(message.webpush.notification.tag, "focus-mode")


class TestChannelVariants(unittest.TestCase):

    def setUp(self):
        self.intent = build_intent(build_rule(label="Pending payments"), "3 enrollments are awaiting payment.")

    def test_android_high_priority(self):
        self.assertEqual(build_android_config().priority, "high")

    def test_apns_silent_content_flag(self):
        config = build_apns_config()

        self.assertTrue(config.payload.aps.content_available)
        self.assertEqual(config.headers["apns-priority"], "10")

    def test_webpush_variant(self):
        config = build_webpush_config(self.intent)

        self.assertEqual(config.headers, {"Urgency": "high"})
        self.assertEqual(config.notification.icon, NOTIFICATION_ICON_URL)
        self.assertEqual(config.notification.badge, NOTIFICATION_ICON_URL)
        self.assertEqual(config.notification.tag, "rule-payment_required")
        self.assertTrue(config.notification.require_interaction)
        self.assertEqual(config.fcm_options.link, NOTIFICATION_LINK)


class TestBuildMessage(unittest.TestCase):

    def test_message_for_token(self):
        intent = build_intent(build_rule(label="Pending payments"), "1 enrollment is awaiting payment.")

        message = build_message(intent, "device-token-1")

        self.assertIsInstance(message, messaging.Message)
        self.assertEqual(message.token, "device-token-1")
        self.assertEqual(message.notification.title, "Alert: Pending payments")
        self.assertEqual(message.notification.body, "1 enrollment is awaiting payment.")
        self.assertEqual(message.data["ruleId"], "payment_required")
        self.assertEqual(message.android.priority, "high")
        self.assertTrue(message.apns.payload.aps.content_available)
        self.assertEqual(message.webpush.headers["Urgency"], "high")

    def test_data_is_copied(self):
        intent = build_intent(build_rule(), "msg")

        message = build_message(intent, "tok")
        message.data["extra"] = "x"

        self.assertNotIn("extra", intent.data)


if __name__ == "__main__":
    unittest.main()
