"""Ledger records read from the store and the figures derived from them."""
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, List, Optional, Tuple

from .money import ZERO


@dataclass(frozen=True)
class Member:
    """A group member. Ids are opaque; ids of one type order naturally, mixed types by type name."""

    member_id: Any
    name: str = ""
    avatar_url: Optional[str] = None


@dataclass(frozen=True)
class SplitEntry:
    member_id: Any
    amount: Decimal


@dataclass(frozen=True)
class ExpenseRecord:
    paid_by: Any
    amount: Decimal
    splits: Tuple[SplitEntry, ...]
    expense_id: Any = None

    def split_total(self) -> Decimal:
        return sum((split.amount for split in self.splits), ZERO)


@dataclass(frozen=True)
class SettlementRecord:
    from_member_id: Any
    to_member_id: Any
    amount: Decimal
    description: Optional[str] = None


@dataclass
class Balance:
    member_id: Any
    total_paid: Decimal = ZERO
    total_owed: Decimal = ZERO
    net: Decimal = ZERO


@dataclass(frozen=True)
class DebtPair:
    from_member_id: Any
    to_member_id: Any
    amount: Decimal


@dataclass
class GroupDebts:
    balances: List[Balance] = field(default_factory=list)
    debts: List[DebtPair] = field(default_factory=list)
    total_spent: Decimal = ZERO

    def balance_for(self, member_id) -> Optional[Balance]:
        for balance in self.balances:
            if balance.member_id == member_id:
                return balance
        return None

    def debts_for(self, member_id) -> List[DebtPair]:
        """Suggested transfers the member either pays or receives."""
        return [
            debt
            for debt in self.debts
            if debt.from_member_id == member_id or debt.to_member_id == member_id
        ]

    def debt_between(self, from_member_id, to_member_id) -> Optional[DebtPair]:
        for debt in self.debts:
            if debt.from_member_id == from_member_id and debt.to_member_id == to_member_id:
                return debt
        return None
