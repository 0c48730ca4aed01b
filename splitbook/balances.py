"""Fold a group's expenses and settlements into per-member balances.

Balances are never stored. Every call starts from zero and replays the whole
snapshot, so two calls with the same records always agree.

Sign convention: a positive ``net`` means the group owes the member money, a
negative ``net`` means the member owes the group.
"""
from __future__ import annotations

import logging
from decimal import Decimal, DecimalException
from typing import Dict, Iterable, List

from .errors import InvalidRecordError, SplitMismatchError, UnknownMemberError
from .models import Balance, ExpenseRecord, Member, SettlementRecord
from .money import DEFAULT_TOLERANCE, ZERO, amounts_close, exact_context, to_decimal

logger = logging.getLogger(__name__)


def compute_balances(
    members: Iterable[Member],
    expenses: Iterable[ExpenseRecord],
    settlements: Iterable[SettlementRecord],
    tolerance: Decimal = DEFAULT_TOLERANCE,
    validate_splits: bool = True,
) -> List[Balance]:
    """Return one Balance per member, in the order the members were given.

    Raises a DataIntegrityError subclass when a record names someone outside
    ``members`` or is malformed. Nothing is repaired or guessed.

    Arithmetic runs in a context wide enough for every amount involved, so
    sums are exact however large the figures are.
    """
    balances = _open_balances(members)
    expenses = list(expenses)
    settlements = list(settlements)

    try:
        with exact_context(_amounts(expenses, settlements, tolerance)):
            for expense in expenses:
                _apply_expense(balances, expense, tolerance, validate_splits)

            for settlement in settlements:
                _apply_settlement(balances, settlement)

            for balance in balances.values():
                balance.net = balance.total_paid - balance.total_owed
    except DecimalException as exc:
        raise InvalidRecordError(
            f"amounts are outside the representable range: {exc!r}",
            code="amount_out_of_range",
        ) from exc

    logger.debug(
        "Computed %d balances from %d expenses and %d settlements",
        len(balances),
        len(expenses),
        len(settlements),
    )
    return list(balances.values())


def _amounts(expenses, settlements, tolerance: Decimal) -> List[Decimal]:
    amounts = [to_decimal(tolerance)]
    for expense in expenses:
        amounts.append(to_decimal(expense.amount))
        amounts.extend(to_decimal(split.amount) for split in expense.splits)
    amounts.extend(to_decimal(settlement.amount) for settlement in settlements)
    return amounts


def _open_balances(members: Iterable[Member]) -> Dict[object, Balance]:
    balances: Dict[object, Balance] = {}
    for member in members:
        if member.member_id in balances:
            raise InvalidRecordError(
                f"member {member.member_id!r} appears twice in the group",
                code="duplicate_member",
            )
        balances[member.member_id] = Balance(member_id=member.member_id)
    return balances


def _lookup(balances: Dict[object, Balance], member_id, context: str) -> Balance:
    try:
        return balances[member_id]
    except KeyError:
        raise UnknownMemberError(member_id, context) from None


def _apply_expense(
    balances: Dict[object, Balance],
    expense: ExpenseRecord,
    tolerance: Decimal,
    validate_splits: bool,
) -> None:
    label = f"expense {expense.expense_id!r}"
    amount = to_decimal(expense.amount)
    if amount <= ZERO:
        raise InvalidRecordError(f"{label} has non-positive amount {amount}", code="invalid_amount")
    if not expense.splits:
        raise InvalidRecordError(f"{label} has no split entries", code="missing_splits")

    payer = _lookup(balances, expense.paid_by, label)

    # Resolve every member before touching any balance so a bad record leaves no partial update.
    shares = []
    split_total = ZERO
    for split in expense.splits:
        share = to_decimal(split.amount)
        if share < ZERO:
            raise InvalidRecordError(
                f"{label} gives member {split.member_id!r} a negative share {share}",
                code="invalid_share_amount",
            )
        shares.append((_lookup(balances, split.member_id, label), share))
        split_total += share

    if validate_splits and not amounts_close(split_total, amount, tolerance):
        raise SplitMismatchError(expense.expense_id, amount, split_total)

    payer.total_paid += amount
    for balance, share in shares:
        balance.total_owed += share
        if balance is payer:
            # The payer's own share is neither a credit nor a debt.
            payer.total_paid -= share
            payer.total_owed -= share


def _apply_settlement(balances: Dict[object, Balance], settlement: SettlementRecord) -> None:
    label = f"settlement {settlement.from_member_id!r} -> {settlement.to_member_id!r}"
    amount = to_decimal(settlement.amount)
    if amount <= ZERO:
        raise InvalidRecordError(f"{label} has non-positive amount {amount}", code="invalid_amount")
    if settlement.from_member_id == settlement.to_member_id:
        raise InvalidRecordError(f"{label} pays the member themselves", code="self_settlement")

    payer = _lookup(balances, settlement.from_member_id, label)
    payee = _lookup(balances, settlement.to_member_id, label)

    payer.total_owed -= amount
    payee.total_paid -= amount
