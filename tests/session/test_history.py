import unittest
from datetime import datetime
from unittest.mock import Mock

from commit_splitter.session.history import (
    SessionNotFoundError,
    checkout_session,
    list_sessions,
    session_branch_name,
    start_session,
)


class TestCheckoutSession(unittest.TestCase):
    def test_commit_hash_is_checked_out_directly(self) -> None:
        git = Mock()
        git.verify_commit.return_value = True
        self.assertEqual(checkout_session(git, "abc1234"), "abc1234")
        git.checkout.assert_called_once_with("abc1234")
        git.find_commits_by_trailer.assert_not_called()

    def test_session_id_checks_out_newest_commit(self) -> None:
        git = Mock()
        git.verify_commit.return_value = False
        git.find_commits_by_trailer.return_value = ["newest", "older"]
        self.assertEqual(checkout_session(git, "s1"), "newest")
        git.find_commits_by_trailer.assert_called_once_with("Session-ID: s1")
        git.checkout.assert_called_once_with("newest")

    def test_unknown_session(self) -> None:
        git = Mock()
        git.verify_commit.return_value = False
        git.find_commits_by_trailer.return_value = []
        with self.assertRaises(SessionNotFoundError):
            checkout_session(git, "missing")
        git.checkout.assert_not_called()


class TestStartSession(unittest.TestCase):
    def test_branch_name(self) -> None:
        now = datetime(2024, 3, 5, 14, 7, 9, 123000)
        self.assertEqual(session_branch_name("auth", now), "session/auth-2024-03-05T14-07-09-123")

    def test_start_creates_branch(self) -> None:
        git = Mock()
        branch = start_session(git, "feature", datetime(2024, 1, 1))
        self.assertEqual(branch, "session/feature-2024-01-01T00-00-00-000")
        git.create_branch.assert_called_once_with(branch)


class TestListSessions(unittest.TestCase):
    def test_entries_oldest_first(self) -> None:
        git = Mock()
        git.log_messages.return_value = [
            "bbbbbbbbbb\x002024-01-02T00:00:00+00:00\x00fix: b\n\nSession-ID: s2\nTime: t",
            "aaaaaaaaaa\x002024-01-01T00:00:00+00:00\x00feat: a\n\nSession-ID: s1",
            "malformed",
        ]
        entries = list_sessions(git)
        git.log_messages.assert_called_once_with("Session-ID:", limit=10)
        self.assertEqual([e.session_id for e in entries], ["s1", "s2"])
        self.assertEqual(entries[0].short_hash, "aaaaaaa")
        self.assertEqual(entries[1].date, "2024-01-02T00:00:00+00:00")

    def test_missing_trailer_value(self) -> None:
        git = Mock()
        git.log_messages.return_value = ["cccccccc\x00d\x00mentions Session-ID: inline only"]
        self.assertEqual(list_sessions(git)[0].session_id, "unknown")


if __name__ == "__main__":
    unittest.main()
