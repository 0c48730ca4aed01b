"""LedgerStore row mapping, with the MySQL connection replaced by a scripted cursor."""

from __future__ import annotations

from contextlib import contextmanager
from decimal import Decimal

from splitbook.db import Database, LedgerStore
from splitbook.models import ExpenseRecord, Member, SettlementRecord, SplitEntry


class ScriptedCursor:
    def __init__(self, results):
        self.results = list(results)
        self.queries = []

    def execute(self, query, params=()):
        self.queries.append((query, params))

    def fetchone(self):
        return self.results.pop(0)

    def fetchall(self):
        return self.results.pop(0)


class ScriptedDatabase:
    def __init__(self, results, lastrowid=1):
        self.cursor = ScriptedCursor(results)
        self.lastrowid = lastrowid
        self.executed = []

    @contextmanager
    def snapshot(self):
        yield self.cursor

    def execute(self, query, params=None):
        self.executed.append((query, params))
        return self.lastrowid


def test_load_group_maps_rows_to_records():
    database = ScriptedDatabase(
        [
            {"id": 5},
            [
                {"id": 1, "name": "Alice", "avatar_url": None},
                {"id": 2, "name": None, "avatar_url": "b.png"},
            ],
            [{"id": 10, "amount": Decimal("12.00"), "paid_by": 1}],
            [
                {"expense_id": 10, "user_id": 1, "share_amount": Decimal("6.00")},
                {"expense_id": 10, "user_id": 2, "share_amount": Decimal("6.00")},
            ],
            [{"from_user_id": 2, "to_user_id": 1, "amount": Decimal("1.50"), "description": "coffee"}],
        ]
    )

    members, expenses, settlements = LedgerStore(database).load_group(5)

    assert members == [Member(1, "Alice", None), Member(2, "Unknown", "b.png")]
    assert expenses == [
        ExpenseRecord(
            paid_by=1,
            amount=Decimal("12.00"),
            splits=(SplitEntry(1, Decimal("6.00")), SplitEntry(2, Decimal("6.00"))),
            expense_id=10,
        )
    ]
    assert settlements == [SettlementRecord(2, 1, Decimal("1.50"), "coffee")]
    assert all(params == (5,) for _, params in database.cursor.queries)


def test_expense_without_shares_has_empty_splits():
    database = ScriptedDatabase(
        [
            {"id": 5},
            [{"id": 1, "name": "Alice", "avatar_url": None}],
            [{"id": 10, "amount": Decimal("3"), "paid_by": 1}],
            [],
            [],
        ]
    )

    _, expenses, _ = LedgerStore(database).load_group(5)

    assert expenses[0].splits == ()


def test_missing_group_returns_none():
    database = ScriptedDatabase([None])

    assert LedgerStore(database).load_group(404) is None
    assert len(database.cursor.queries) == 1


def test_record_settlement_inserts_row():
    database = ScriptedDatabase([], lastrowid=31)
    settlement = SettlementRecord(2, 1, Decimal("4.25"), "Settlement from Bob to Alice")

    settlement_id = LedgerStore(database).record_settlement(5, settlement)

    assert settlement_id == 31
    query, params = database.executed[0]
    assert "INSERT INTO settlements" in query
    assert params == (5, 2, 1, "4.25", "Settlement from Bob to Alice")


def test_pool_is_not_created_until_used():
    database = Database()
    assert database._pool is None
