"""Tests for the sqlite repositories and debounced persistence."""
import os
import sqlite3
import tempfile
import unittest
from unittest.mock import MagicMock
import datetime
from focustray.db import RuleRepository, UsageRepository, ensure_db_exists, get_cursor
from focustray.models import DailyUsageRecord, NotificationRule
from focustray.services.history import HistoryArchive
from focustray.services.ledger import UsageLedger
from focustray.services.persistence_service import PersistenceScheduler

NOW = datetime.datetime(2025, 1, 2, 9, 15, 0)


class DatabaseTestCase(unittest.TestCase):
    """Gives each test its own database file."""

    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.db_path = os.path.join(self._tmp.name, "nested", "usage.db")
        ensure_db_exists(self.db_path)

    def tearDown(self) -> None:
        self._tmp.cleanup()


class TestUsageRepository(DatabaseTestCase):
    """Test today's ledger and archive blobs."""

    def test_load_today_when_empty(self) -> None:
        self.assertIsNone(UsageRepository(self.db_path).load_today())

    def test_today_round_trip(self) -> None:
        repo = UsageRepository(self.db_path)
        repo.save_today(DailyUsageRecord(NOW.date(), {"Editor": 30.5, "Browser": 12.0}), NOW)

        state = repo.load_today()

        assert state is not None
        self.assertEqual(state.per_app_duration, {"Editor": 30.5, "Browser": 12.0})
        self.assertEqual(state.total_duration, 42.5)
        self.assertEqual(state.last_activity, NOW)
        self.assertEqual(state.day, NOW.date())

    def test_save_today_replaces_previous(self) -> None:
        repo = UsageRepository(self.db_path)
        repo.save_today(DailyUsageRecord(NOW.date(), {"Editor": 30.0}), NOW)
        repo.save_today(DailyUsageRecord(NOW.date(), {}), NOW)

        state = repo.load_today()
        assert state is not None
        self.assertEqual(state.per_app_duration, {})

    def test_history_newest_first(self) -> None:
        repo = UsageRepository(self.db_path)
        repo.save_history([
            DailyUsageRecord(datetime.date(2025, 1, 1), {"Editor": 10.0}),
            DailyUsageRecord(datetime.date(2025, 1, 3), {"Browser": 5.0, "Chat": 1.0}),
        ])

        records = repo.load_history()

        self.assertEqual([r.date_key for r in records], ["2025-01-03", "2025-01-01"])
        self.assertEqual(records[0].total_duration, 6.0)

    def test_malformed_history_raises_value_error(self) -> None:
        with get_cursor(self.db_path) as cur:
            cur.execute("INSERT INTO history_days (day, total_seconds) VALUES ('not-a-day', 1)")

        with self.assertRaises(ValueError):
            UsageRepository(self.db_path).load_history()


class TestRuleRepository(DatabaseTestCase):
    """Test rule storage."""

    def test_rules_keep_order_and_fields(self) -> None:
        repo = RuleRepository(self.db_path)
        rules = [
            NotificationRule(app_name="Chat", time_limit=60),
            NotificationRule(app_name="Browser", time_limit=3600, enabled=False, custom_message="Enough"),
        ]
        repo.save_all(rules)

        loaded = repo.load_all()

        self.assertEqual(loaded, rules)


class TestPersistenceScheduler(DatabaseTestCase):
    """Test debounced saving."""

    def setUp(self) -> None:
        super().setUp()
        self.mono = [0.0]
        self.ledger = UsageLedger(day=NOW.date())
        self.archive = HistoryArchive()
        self.repo = UsageRepository(self.db_path)
        self.scheduler = PersistenceScheduler(self.ledger, self.archive, self.repo,
                                              interval=30.0, monotonic=lambda: self.mono[0])
        self.scheduler.mark_clean()

    def test_waits_for_interval(self) -> None:
        self.ledger.restore({"Editor": 50.0}, NOW.date(), NOW)
        self.assertTrue(self.scheduler.dirty)

        self.mono[0] = 10.0
        self.assertFalse(self.scheduler.maybe_save())

        self.mono[0] = 31.0
        self.assertTrue(self.scheduler.maybe_save())
        self.assertFalse(self.scheduler.dirty)
        self.assertEqual(self.repo.load_today().per_app_duration, {"Editor": 50.0})  # type: ignore[union-attr]

    def test_nothing_to_save(self) -> None:
        self.mono[0] = 100.0
        self.assertFalse(self.scheduler.maybe_save())

    def test_archive_changes_are_saved(self) -> None:
        self.archive.upsert(DailyUsageRecord(datetime.date(2025, 1, 1), {"Editor": 5.0}))
        self.assertTrue(self.scheduler.save())
        self.assertEqual(len(self.repo.load_history()), 1)

    def test_failed_write_is_retried(self) -> None:
        repo = MagicMock()
        repo.save_today.side_effect = [sqlite3.OperationalError("database is locked"), None]
        scheduler = PersistenceScheduler(self.ledger, self.archive, repo,
                                         interval=30.0, monotonic=lambda: self.mono[0])
        self.ledger.restore({"Editor": 50.0}, NOW.date(), NOW)

        self.assertFalse(scheduler.maybe_save())
        self.assertTrue(scheduler.dirty)

        self.mono[0] = 31.0
        self.assertTrue(scheduler.maybe_save())
        self.assertFalse(scheduler.dirty)
        self.assertEqual(repo.save_today.call_count, 2)


if __name__ == "__main__":
    unittest.main()
