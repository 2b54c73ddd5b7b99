"""
Unit tests for notifications/token_registry.py
"""

import unittest
from unittest.mock import patch

from models.notification import TokenRecord
from notifications.errors import TokenLoadError
from notifications.token_registry import (
    load_token_records,
    remove_stale_tokens,
    tokens_by_user,
)
from tests.fixtures.mock_helpers import create_mock_supabase
from tests.fixtures.rule_factory import create_test_token


@patch("builtins.print")
class TestLoadTokenRecords(unittest.TestCase):
    """Tests for load_token_records()"""

    def test_returns_records(self, mock_print):
        rows = [create_test_token("tok-a"), create_test_token("tok-b", user_id="user-2")]
        mock_supabase = create_mock_supabase(rows)

        records = load_token_records(mock_supabase)

        self.assertEqual([r.token for r in records], ["tok-a", "tok-b"])
        self.assertEqual([r.user_id for r in records], ["user-1", "user-2"])
        mock_supabase.table.assert_called_with("fcm_tokens")
        mock_supabase.select.assert_called_with("token, user_id, updated_at")

    def test_empty_registry_is_not_an_error(self, mock_print):
        mock_supabase = create_mock_supabase([])

        self.assertEqual(load_token_records(mock_supabase), [])

    @patch("notifications.token_registry.log_notification_error")
    def test_drops_blank_and_duplicate_tokens(self, mock_log, mock_print):
        rows = [
            {"token": "tok-a"},
            {"token": ""},
            {"token": None},
            {"token": "tok-a", "user_id": "user-9"},
            {"token": " tok-b "},
        ]
        mock_supabase = create_mock_supabase(rows)

        records = load_token_records(mock_supabase)

        self.assertEqual([r.token for r in records], ["tok-a", "tok-b"])
        # First registration of a duplicated token wins
        self.assertIsNone(records[0].user_id)
        self.assertEqual(mock_log.call_count, 2)

    @patch("notifications.token_registry.log_notification_error")
    def test_invalid_row_logged_and_skipped(self, mock_log, mock_print):
        mock_log.return_value = "/tmp/report.txt"
        rows = [
            {"token": "tok-a", "user_id": "user-1", "updated_at": "not a timestamp"},
            create_test_token("tok-b"),
        ]
        mock_supabase = create_mock_supabase(rows)

        records = load_token_records(mock_supabase)

        self.assertEqual([r.token for r in records], ["tok-b"])
        mock_log.assert_called_once()
        self.assertEqual(mock_log.call_args.kwargs["error_type"], "token_load")
        self.assertEqual(mock_log.call_args.kwargs["context"], {"user_id": "user-1"})
        printed = " ".join(str(c.args[0]) for c in mock_print.call_args_list)
        self.assertIn("⚠️", printed)

    def test_query_failure_raises(self, mock_print):
        mock_supabase = create_mock_supabase()
        mock_supabase.execute.side_effect = Exception("service unavailable")

        with self.assertRaises(TokenLoadError):
            load_token_records(mock_supabase)


class TestTokensByUser(unittest.TestCase):
    """Tests for tokens_by_user()"""

    def test_groups_tokens(self):
        records = [
            TokenRecord(token="phone", user_id="anna"),
            TokenRecord(token="laptop", user_id="anna"),
            TokenRecord(token="tablet", user_id="marco"),
            TokenRecord(token="kiosk"),
        ]

        grouped = tokens_by_user(records)

        self.assertEqual(grouped, {"anna": ["phone", "laptop"], "marco": ["tablet"]})


class TestRemoveStaleTokens(unittest.TestCase):
    """Tests for remove_stale_tokens()"""

    def test_deletes_given_tokens(self):
        mock_supabase = create_mock_supabase()

        removed = remove_stale_tokens(mock_supabase, ["tok-a", "tok-b"])

        self.assertEqual(removed, 2)
        mock_supabase.delete.assert_called_once()
        mock_supabase.in_.assert_called_once_with("token", ["tok-a", "tok-b"])

    def test_nothing_to_delete(self):
        mock_supabase = create_mock_supabase()

        self.assertEqual(remove_stale_tokens(mock_supabase, []), 0)
        mock_supabase.delete.assert_not_called()


if __name__ == "__main__":
    unittest.main()
