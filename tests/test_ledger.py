"""End-to-end scenarios through compute_group_debts."""

from __future__ import annotations

from decimal import Decimal

import pytest

from splitbook import (
    DebtPair,
    ExpenseRecord,
    Member,
    SettlementRecord,
    SplitEntry,
    UnknownMemberError,
    compute_group_debts,
)


@pytest.fixture
def trio():
    return [Member("A", "Alice"), Member("B", "Bob"), Member("C", "Carol")]


@pytest.fixture
def dinner():
    return ExpenseRecord(
        paid_by="A",
        amount=Decimal("30.00"),
        splits=(
            SplitEntry("A", Decimal("10.00")),
            SplitEntry("B", Decimal("10.00")),
            SplitEntry("C", Decimal("10.00")),
        ),
        expense_id=1,
    )


def test_equal_split_without_settlement(trio, dinner):
    result = compute_group_debts(trio, [dinner], [])

    assert [b.net for b in result.balances] == [
        Decimal("20.00"),
        Decimal("-10.00"),
        Decimal("-10.00"),
    ]
    assert result.debts == [
        DebtPair("B", "A", Decimal("10.00")),
        DebtPair("C", "A", Decimal("10.00")),
    ]
    assert result.total_spent == Decimal("30.00")


def test_full_settlement_removes_member_from_debts(trio, dinner):
    settlements = [SettlementRecord("B", "A", Decimal("10.00"))]

    result = compute_group_debts(trio, [dinner], settlements)

    assert result.balance_for("B").net == 0
    assert result.debts_for("B") == []
    assert result.debt_between("B", "A") is None
    assert result.debts == [DebtPair("C", "A", Decimal("10.00"))]


def test_partial_settlement_shrinks_the_pair(trio, dinner):
    settlements = [SettlementRecord("B", "A", Decimal("4.00"))]

    result = compute_group_debts(trio, [dinner], settlements)

    assert result.debt_between("B", "A") == DebtPair("B", "A", Decimal("6.00"))


def test_three_way_netting_skips_the_middle_member(trio):
    expenses = [
        ExpenseRecord(paid_by="B", amount=Decimal("5.00"), splits=(SplitEntry("A", Decimal("5.00")),)),
        ExpenseRecord(paid_by="C", amount=Decimal("5.00"), splits=(SplitEntry("B", Decimal("5.00")),)),
    ]

    result = compute_group_debts(trio, expenses, [])

    assert result.balance_for("B").net == 0
    assert result.debts == [DebtPair("A", "C", Decimal("5.00"))]
    assert result.total_spent == Decimal("10.00")


def test_member_views(trio, dinner):
    result = compute_group_debts(trio, [dinner], [])

    assert result.balance_for("Z") is None
    assert len(result.debts_for("A")) == 2
    assert result.debts_for("C") == [DebtPair("C", "A", Decimal("10.00"))]


def test_empty_group():
    result = compute_group_debts([], [], [])

    assert result.balances == []
    assert result.debts == []
    assert result.total_spent == 0


def test_accepts_generators(trio, dinner):
    result = compute_group_debts(trio, (e for e in [dinner]), iter([]))
    assert result.total_spent == Decimal("30.00")
    assert len(result.debts) == 2


def test_inconsistent_snapshot_fails_whole_computation(trio, dinner):
    stranger = SettlementRecord("C", "Q", Decimal("1"))

    with pytest.raises(UnknownMemberError):
        compute_group_debts(trio, [dinner], [stranger])


def test_amounts_beyond_default_precision(trio):
    huge = ExpenseRecord(
        paid_by="A",
        amount=Decimal("2e30"),
        splits=(SplitEntry("A", Decimal("1e30")), SplitEntry("B", Decimal("1e30"))),
    )

    result = compute_group_debts(trio, [huge], [])

    assert result.balance_for("A").net == Decimal("1e30")
    assert result.balance_for("B").net == Decimal("-1e30")
    assert result.debts == [DebtPair("B", "A", Decimal("1e30"))]
    assert result.total_spent == Decimal("2e30")


def test_quantum_is_passed_to_transfers(trio):
    expense = ExpenseRecord(
        paid_by="A",
        amount=Decimal("1000"),
        splits=(
            SplitEntry("A", Decimal("333.33")),
            SplitEntry("B", Decimal("333.33")),
            SplitEntry("C", Decimal("333.34")),
        ),
    )

    result = compute_group_debts(trio, [expense], [], tolerance=Decimal("1"), quantum=Decimal("1"))

    assert result.debts == [DebtPair("C", "A", Decimal("333")), DebtPair("B", "A", Decimal("333"))]
