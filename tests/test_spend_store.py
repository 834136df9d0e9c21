from __future__ import annotations

import unittest
from datetime import date
from decimal import Decimal
from unittest import mock

from sqlalchemy import create_engine, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401
from app.api import dashboard
from app.db.base import Base
from app.models import Expense, SpendingLimit, User
from app.schemas.limit import SpendingLimitSet
from app.services.limits import SpendAggregator, SpendStoreError, SqlSpendStore, month_window, resolve_periods

TODAY = date(2026, 2, 18)


class StoreTestCase(unittest.TestCase):
    def setUp(self):
        self.engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
        Base.metadata.create_all(self.engine)
        self.db = sessionmaker(bind=self.engine, autoflush=False, expire_on_commit=False)()
        self.alice = User(name="Alice", username="alice", password_hash="x", password_salt="y")
        self.bob = User(name="Bob", username="bob", password_hash="x", password_salt="y")
        self.db.add_all([self.alice, self.bob])
        self.db.commit()
        self.store = SqlSpendStore(self.db)
        self.windows = resolve_periods(TODAY)

    def tearDown(self):
        self.db.close()
        self.engine.dispose()

    def _add(self, user, on: date, category: str, amount: str):
        self.db.add(Expense(user_id=user.id, date=on, category=category, amount=Decimal(amount)))
        self.db.commit()


class SqlSpendStoreTests(StoreTestCase):
    def test_empty_period_totals_are_zero(self):
        totals = self.store.sum_expenses(self.alice.id, self.windows.month)
        self.assertEqual(totals.total, Decimal("0"))
        self.assertEqual(totals.count, 0)
        self.assertEqual(totals.category_count, 0)
        self.assertEqual(self.store.sum_expenses_by_category(self.alice.id, self.windows.month), [])

    def test_window_predicates(self):
        self._add(self.alice, date(2026, 2, 18), "Food", "10.00")
        self._add(self.alice, date(2026, 2, 16), "Food", "20.00")
        self._add(self.alice, date(2026, 2, 15), "Travel", "40.00")
        self._add(self.alice, date(2026, 1, 31), "Travel", "80.00")
        self._add(self.alice, date(2025, 12, 31), "Travel", "160.00")
        self._add(self.bob, date(2026, 2, 18), "Food", "999.00")

        def total(window):
            return self.store.sum_expenses(self.alice.id, window).total

        self.assertEqual(total(self.windows.day), Decimal("10"))
        self.assertEqual(total(self.windows.week), Decimal("30"))
        self.assertEqual(total(self.windows.month), Decimal("70"))
        self.assertEqual(total(self.windows.year), Decimal("150"))
        totals = self.store.sum_expenses(self.alice.id, self.windows.year)
        self.assertEqual((totals.count, totals.category_count), (4, 2))

    def test_by_category_sorted_descending(self):
        self._add(self.alice, date(2026, 2, 2), "Food", "10.00")
        self._add(self.alice, date(2026, 2, 3), "Rent", "500.00")
        self._add(self.alice, date(2026, 2, 4), "Food", "15.50")
        rows = self.store.sum_expenses_by_category(self.alice.id, self.windows.month)
        self.assertEqual([(r.category, r.total) for r in rows], [("Rent", Decimal("500")), ("Food", Decimal("25.5"))])

    def test_month_summary_includes_days(self):
        self._add(self.alice, date(2026, 2, 4), "Food", "10.00")
        self._add(self.alice, date(2026, 2, 2), "Food", "5.00")
        self._add(self.alice, date(2026, 2, 2), "Fun", "1.00")
        summary = SpendAggregator(self.store).aggregate(self.alice.id, month_window("2026-02"), include_days=True)
        self.assertEqual(summary.total, Decimal("16"))
        self.assertEqual([(d.date, d.total) for d in summary.by_day], [(date(2026, 2, 2), Decimal("6")), (date(2026, 2, 4), Decimal("10"))])
        self.assertEqual(summary.spent_for("Food"), Decimal("15"))
        self.assertEqual(summary.spent_for("Nope"), Decimal("0"))
        self.assertEqual(summary.spent_for(None), Decimal("16"))

    def test_category_values_are_bound_not_interpolated(self):
        sneaky = "Food' OR '1'='1"
        self._add(self.alice, date(2026, 2, 18), sneaky, "7.00")
        self._add(self.alice, date(2026, 2, 18), "Food", "3.00")
        rows = self.store.sum_expenses_by_category(self.alice.id, self.windows.day)
        self.assertIn((sneaky, Decimal("7")), [(r.category, r.total) for r in rows])

    def test_total_limit_is_unique_per_user_and_period(self):
        self.db.add(SpendingLimit(user_id=self.alice.id, period="monthly", category=None, limit_amount=Decimal("100")))
        self.db.add(SpendingLimit(user_id=self.alice.id, period="monthly", category="Food", limit_amount=Decimal("50")))
        self.db.commit()
        self.db.add(SpendingLimit(user_id=self.alice.id, period="monthly", category=None, limit_amount=Decimal("200")))
        with self.assertRaises(IntegrityError):
            self.db.commit()
        self.db.rollback()
        self.assertEqual(len(self.store.get_limits_for_user(self.alice.id)), 2)
        self.assertEqual(self.store.get_limits_for_user(self.bob.id), [])

    def test_storage_errors_are_wrapped(self):
        self.db.close()
        Base.metadata.drop_all(self.engine)
        with self.assertRaises(SpendStoreError):
            self.store.sum_expenses(self.alice.id, self.windows.month)


class WriteAfterEachRead(SqlSpendStore):
    """Commits a new expense after every read, as a concurrent request would."""

    def __init__(self, db, user_id: int, on: date):
        super().__init__(db)
        self.user_id = user_id
        self.on = on
        self.reads = 0

    def _write(self):
        self.reads += 1
        self.db.add(Expense(user_id=self.user_id, date=self.on, category="Food", amount=Decimal("50.00")))
        self.db.commit()

    def sum_expenses(self, user_id, window):
        result = super().sum_expenses(user_id, window)
        self._write()
        return result

    def sum_expenses_by_category(self, user_id, window):
        result = super().sum_expenses_by_category(user_id, window)
        self._write()
        return result

    def sum_expenses_by_day_and_category(self, user_id, window):
        result = super().sum_expenses_by_day_and_category(user_id, window)
        self._write()
        return result


class ConsistentSummaryTests(StoreTestCase):
    def setUp(self):
        super().setUp()
        self._add(self.alice, date(2026, 2, 3), "Food", "60.00")
        self._add(self.alice, date(2026, 2, 10), "Rent", "40.00")
        self.racing = WriteAfterEachRead(self.db, self.alice.id, date(2026, 2, 11))

    def test_total_matches_categories_when_rows_arrive_mid_aggregate(self):
        summary = SpendAggregator(self.racing).aggregate(self.alice.id, self.windows.month)
        self.assertEqual(self.racing.reads, 1)
        self.assertEqual(summary.total, Decimal("100"))
        self.assertEqual(summary.total, sum((r.total for r in summary.by_category), Decimal("0")))
        self.assertEqual(summary.count, 2)
        self.assertEqual(summary.category_count, 2)
        self.assertEqual(summary.spent_for("Food"), Decimal("60"))

    def test_total_matches_days_and_categories_when_rows_arrive_mid_aggregate(self):
        summary = SpendAggregator(self.racing).aggregate(self.alice.id, self.windows.month, include_days=True)
        self.assertEqual(self.racing.reads, 1)
        self.assertEqual(summary.total, Decimal("100"))
        self.assertEqual(summary.total, sum((r.total for r in summary.by_category), Decimal("0")))
        self.assertEqual(summary.total, sum((d.total for d in summary.by_day), Decimal("0")))
        self.assertEqual([d.date for d in summary.by_day], [date(2026, 2, 3), date(2026, 2, 10)])
        self.assertEqual(summary.count, 2)


class UpsertLimitTests(StoreTestCase):
    def _limits(self):
        rows = self.db.execute(
            select(SpendingLimit.category, SpendingLimit.limit_amount).where(SpendingLimit.user_id == self.alice.id)
        ).all()
        return [tuple(r) for r in rows]

    def test_existing_row_is_updated_in_place(self):
        first = dashboard.upsert_limit(self.db, self.alice.id, SpendingLimitSet(period="monthly", category="Food", limit_amount=100))
        second = dashboard.upsert_limit(self.db, self.alice.id, SpendingLimitSet(period="monthly", category=" Food ", limit_amount=300))
        self.assertEqual(first.id, second.id)
        self.assertEqual(self._limits(), [("Food", Decimal("300.00"))])

    def test_insert_race_falls_back_to_updating_the_winner(self):
        self.db.add(SpendingLimit(user_id=self.alice.id, period="monthly", category=None, limit_amount=Decimal("100")))
        self.db.commit()
        real_find = dashboard._find_limit
        calls = []

        def stale_first_lookup(*args):
            # The first lookup runs before the other request's row is visible.
            calls.append(args)
            if len(calls) == 1:
                return None
            return real_find(*args)

        with mock.patch.object(dashboard, "_find_limit", side_effect=stale_first_lookup):
            row = dashboard.upsert_limit(self.db, self.alice.id, SpendingLimitSet(period="monthly", limit_amount=250))

        self.assertEqual(len(calls), 2)
        self.assertEqual(row.limit_amount, Decimal("250"))
        self.assertEqual(self._limits(), [(None, Decimal("250.00"))])


if __name__ == "__main__":
    unittest.main()
