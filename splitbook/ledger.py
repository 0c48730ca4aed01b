from __future__ import annotations

from decimal import Decimal
from typing import Sequence

from .balances import compute_balances
from .models import ExpenseRecord, GroupDebts, Member, SettlementRecord
from .money import CENT, DEFAULT_TOLERANCE, ZERO, exact_context, to_decimal
from .simplify import simplify_debts


def compute_group_debts(
    members: Sequence[Member],
    expenses: Sequence[ExpenseRecord],
    settlements: Sequence[SettlementRecord],
    tolerance: Decimal = DEFAULT_TOLERANCE,
    quantum: Decimal = CENT,
) -> GroupDebts:
    """Balances, suggested transfers and the group's total spend in one pass.

    ``quantum`` is the currency's smallest unit; transfer amounts are rounded
    to it.
    """
    expenses = list(expenses)
    balances = compute_balances(members, expenses, settlements, tolerance=tolerance)
    debts = simplify_debts(balances, tolerance=tolerance, quantum=quantum)

    amounts = [to_decimal(expense.amount) for expense in expenses]
    with exact_context(amounts):
        total_spent = sum(amounts, ZERO)
    return GroupDebts(balances=balances, debts=debts, total_spent=total_spent)
