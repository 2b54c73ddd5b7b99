"""Unit tests for Pydantic models."""

import unittest
from datetime import datetime, timezone

from pydantic import ValidationError

from models import (
    ConditionResult,
    DispatchResult,
    Enrollment,
    FocusPreference,
    Invoice,
    LocalTime,
    NotificationRule,
    Quote,
    TokenRecord,
)
from tests.fixtures.rule_factory import (
    create_custom_rule,
    create_test_installment,
    create_test_preference,
    create_test_rule,
)


class TestNotificationRule(unittest.TestCase):
    """Tests for NotificationRule."""

    def test_minimal_valid(self):
        rule = NotificationRule(id="expiry", label="Expiring", time="08:30")

        self.assertEqual(rule.days, [])
        self.assertIsNone(rule.last_sent_date)
        self.assertTrue(rule.enabled)
        self.assertTrue(rule.push_enabled)
        self.assertFalse(rule.is_custom)

    def test_full_row(self):
        rule = NotificationRule.model_validate(
            create_test_rule(rule_id="low_lessons", days=[1, 3, 5], last_sent_date="2026-10-12")
        )

        self.assertEqual(rule.days, [1, 3, 5])
        self.assertEqual(rule.last_sent_date, "2026-10-12")

    def test_kind_is_id_for_builtin(self):
        rule = NotificationRule.model_validate(create_test_rule(rule_id="balance_due"))

        self.assertEqual(rule.kind, "balance_due")

    def test_kind_is_custom_for_custom_rules(self):
        rule = NotificationRule.model_validate(create_custom_rule(rule_id="abc123"))

        self.assertEqual(rule.kind, "custom")

    def test_invalid_time_rejected(self):
        for value in ("9:00", "24:00", "09:60", "nine", ""):
            with self.assertRaises(ValidationError):
                NotificationRule(id="r", label="R", time=value)

    def test_day_out_of_range_rejected(self):
        with self.assertRaises(ValidationError):
            NotificationRule(id="r", label="R", time="09:00", days=[7])

        with self.assertRaises(ValidationError):
            NotificationRule(id="r", label="R", time="09:00", days=[-1])

    def test_empty_label_rejected(self):
        with self.assertRaises(ValidationError):
            NotificationRule(id="r", label="", time="09:00")

    def test_whitespace_stripped(self):
        rule = NotificationRule(id="r", label="  Payments  ", time=" 09:00 ")

        self.assertEqual(rule.label, "Payments")
        self.assertEqual(rule.time, "09:00")


class TestSupportingModels(unittest.TestCase):
    """Tests for token, time and result models."""

    def test_token_record_requires_token(self):
        with self.assertRaises(ValidationError):
            TokenRecord(token="")

    def test_local_time_day_range(self):
        now = datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc)

        with self.assertRaises(ValidationError):
            LocalTime(local_date="2026-10-19", day_of_week=7, minute_of_day="09:00", local_now=now)

    def test_condition_result_defaults(self):
        result = ConditionResult(should_send=False)

        self.assertEqual(result.count, 0)
        self.assertEqual(result.message, "")
        self.assertIsNone(result.error)

    def test_dispatch_result_defaults(self):
        result = DispatchResult()

        self.assertEqual(result.success_count, 0)
        self.assertEqual(result.failure_count, 0)
        self.assertEqual(result.stale_tokens, [])


class TestFocusPreference(unittest.TestCase):
    """Tests for FocusPreference and its embedded FocusConfig."""

    def test_schedule_view(self):
        preference = FocusPreference.model_validate(
            create_test_preference(days=[1, 3], time="07:45", focus_last_sent_date="2026-10-16")
        )

        self.assertTrue(preference.is_active)
        self.assertEqual(preference.days, [1, 3])
        self.assertEqual(preference.time, "07:45")
        self.assertEqual(preference.last_sent_date, "2026-10-16")

    def test_string_days_coerced(self):
        preference = FocusPreference.model_validate(create_test_preference(days=["1", "5"]))

        self.assertEqual(preference.days, [1, 5])

    def test_disabled_or_unscheduled_is_inactive(self):
        disabled = FocusPreference.model_validate(create_test_preference(enabled=False))
        no_time = FocusPreference.model_validate(create_test_preference(time=""))
        no_config = FocusPreference.model_validate({"user_id": "user-1", "focus_config": None})

        self.assertFalse(disabled.is_active)
        self.assertFalse(no_time.is_active)
        self.assertFalse(no_config.is_active)

    def test_invalid_schedule_rejected(self):
        with self.assertRaises(ValidationError):
            FocusPreference.model_validate(create_test_preference(time="7am"))

        with self.assertRaises(ValidationError):
            FocusPreference.model_validate(create_test_preference(days=[9]))


class TestBusinessModels(unittest.TestCase):
    """Tests for the lenient business record models."""

    def test_enrollment_parses_dates_and_defaults(self):
        enrollment = Enrollment.model_validate(
            {"status": "active", "end_date": "2026-10-25", "lessons_remaining": None, "extra": 1}
        )

        self.assertEqual(enrollment.end_date, datetime(2026, 10, 25))
        self.assertEqual(enrollment.lessons_remaining, 0)
        self.assertEqual(enrollment.appointments, [])

    def test_invoice_null_flags(self):
        invoice = Invoice.model_validate(
            {"status": "draft", "is_ghost": None, "is_deleted": None, "issue_date": None}
        )

        self.assertFalse(invoice.is_ghost)
        self.assertFalse(invoice.is_deleted)
        self.assertIsNone(invoice.issue_date)

    def test_quote_installments(self):
        quote = Quote.model_validate(
            {"status": "paid", "installments": [create_test_installment("2026-11-01")]}
        )

        self.assertEqual(len(quote.installments), 1)
        self.assertEqual(quote.installments[0].due_date, datetime(2026, 11, 1))
        self.assertFalse(quote.installments[0].is_paid)

    def test_installment_camel_case_keys(self):
        quote = Quote.model_validate(
            {"status": "paid", "installments": [{"dueDate": "2026-10-30", "isPaid": True}]}
        )

        installment = quote.installments[0]
        self.assertEqual(installment.due_date, datetime(2026, 10, 30))
        self.assertTrue(installment.is_paid)

    def test_quote_null_installments(self):
        quote = Quote.model_validate({"status": "paid", "installments": None})

        self.assertEqual(quote.installments, [])


if __name__ == "__main__":
    unittest.main()
