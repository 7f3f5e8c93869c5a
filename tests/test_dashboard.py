"""Unit tests for dashboard arithmetic and window resolution."""

import unittest
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.models import Base, User
from app.services.dashboard import dashboard_stats, percent_change, percentage, resolve_window

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


class TestPercentChange(unittest.TestCase):
    def test_growth_and_decline(self) -> None:
        self.assertEqual(percent_change(10, 5), 100)
        self.assertEqual(percent_change(5, 10), -50)
        self.assertEqual(percent_change(4, 3), 33)

    def test_previous_zero_is_zero(self) -> None:
        self.assertEqual(percent_change(3, 0), 0)
        self.assertEqual(percent_change(0, 0), 0)

    def test_percentage(self) -> None:
        self.assertEqual(percentage(1, 3), 33)
        self.assertEqual(percentage(2, 2), 100)
        self.assertEqual(percentage(5, 0), 0)


class TestResolveWindow(unittest.TestCase):
    def test_named_ranges(self) -> None:
        for name, days in (("day", 1), ("week", 7), ("month", 30), ("year", 365)):
            start, end = resolve_window(name, now=NOW)
            self.assertEqual(end, NOW)
            self.assertEqual(end - start, timedelta(days=days))

    def test_unknown_range_defaults_to_week(self) -> None:
        start, end = resolve_window("decade", now=NOW)
        self.assertEqual(end - start, timedelta(days=7))

    def test_explicit_dates_win(self) -> None:
        start, end = resolve_window(
            "year",
            start_date=datetime(2026, 10, 1, tzinfo=timezone.utc),
            end_date=datetime(2026, 10, 11, tzinfo=timezone.utc),
            now=NOW,
        )
        self.assertEqual(end - start, timedelta(days=10))

    def test_naive_dates_are_utc(self) -> None:
        start, end = resolve_window(start_date=datetime(2026, 10, 1), now=NOW)
        self.assertEqual(start.tzinfo, timezone.utc)
        self.assertEqual(end, NOW)

    def test_start_after_end_rejected(self) -> None:
        with self.assertRaises(ValueError):
            resolve_window(start_date=NOW + timedelta(days=1), now=NOW)


class TestWindowBoundaries(unittest.TestCase):
    """A record created exactly at the window start belongs to the current window only."""

    def setUp(self) -> None:
        self.engine = create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        Base.metadata.create_all(self.engine)
        self.db = sessionmaker(bind=self.engine)()

    def tearDown(self) -> None:
        self.db.close()
        Base.metadata.drop_all(self.engine)
        self.engine.dispose()

    def test_start_boundary_counted_once(self) -> None:
        start, end = resolve_window("week", now=NOW)
        self.db.add_all(
            [
                User(name="Edge", email="edge@example.com", password_hash="x", created_at=start),
                User(name="Older", email="older@example.com", password_hash="x", created_at=start - timedelta(days=2)),
            ]
        )
        self.db.commit()

        stats = dashboard_stats(self.db, MagicMock(STORAGE_QUOTA_GB=100), start, end)
        self.assertEqual(stats.new_users, 1)
        self.assertEqual(stats.previous_new_users, 1)
        self.assertEqual(stats.total_users, 2)


if __name__ == "__main__":
    unittest.main()
