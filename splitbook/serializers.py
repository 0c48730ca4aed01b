"""Turn JSON payloads into ledger records and results back into JSON-ready dicts.

Parsing is where request input is validated: anything that cannot become a
well-formed record raises PayloadError with a short machine-readable code.
Rounding to cents only happens in the ``*_to_dict`` helpers.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .errors import PayloadError
from .models import (
    Balance,
    DebtPair,
    ExpenseRecord,
    GroupDebts,
    Member,
    SettlementRecord,
    SplitEntry,
)
from .money import CENT, MAX_AMOUNT, round_money, to_decimal


def _member_id(value: Any) -> Any:
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ValueError("member ids must be integers or strings")
    if isinstance(value, str):
        value = value.strip()
        if not value:
            raise ValueError("member ids must not be empty")
    return value


def _check_bound(amount: Decimal) -> None:
    if amount > MAX_AMOUNT:
        raise PayloadError(f"amounts may not exceed {MAX_AMOUNT}", code="amount_too_large")


def _list_field(payload: Dict[str, Any], key: str) -> List[Any]:
    value = payload.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise PayloadError(f"'{key}' must be a list", code=f"invalid_{key}_payload")
    return value


def parse_members(payload: Sequence[Dict[str, Any]]) -> List[Member]:
    members: List[Member] = []
    seen = set()
    for item in payload:
        try:
            member_id = _member_id(item.get("member_id", item.get("user_id")))
            name = item.get("name") or ""
            avatar_url = item.get("avatar_url")
        except (AttributeError, TypeError, ValueError):
            raise PayloadError("could not read member entry", code="invalid_member_payload") from None

        if member_id in seen:
            raise PayloadError(f"member {member_id!r} listed twice", code="duplicate_member_entry")
        seen.add(member_id)
        members.append(Member(member_id=member_id, name=str(name), avatar_url=avatar_url))

    if len({type(member.member_id) for member in members}) > 1:
        raise PayloadError("member ids must all be of one type", code="mixed_member_id_types")
    return members


def _parse_splits(payload: Any) -> Tuple[SplitEntry, ...]:
    if not isinstance(payload, list) or not payload:
        raise PayloadError("an expense needs at least one split", code="missing_splits")

    splits: List[SplitEntry] = []
    seen = set()
    for item in payload:
        amount_value = item.get("amount", item.get("share_amount")) if isinstance(item, dict) else None
        try:
            member_id = _member_id(item.get("member_id", item.get("user_id")))
            share_amount = to_decimal(amount_value)
        except (AttributeError, TypeError, ValueError):
            raise PayloadError("could not read split entry", code="invalid_share_payload") from None

        if share_amount < 0:
            raise PayloadError("split amounts must not be negative", code="invalid_share_amount")
        _check_bound(share_amount)
        if member_id in seen:
            raise PayloadError(f"member {member_id!r} split twice", code="duplicate_share_entry")

        seen.add(member_id)
        splits.append(SplitEntry(member_id=member_id, amount=share_amount))
    return tuple(splits)


def parse_expenses(payload: Sequence[Dict[str, Any]]) -> List[ExpenseRecord]:
    expenses: List[ExpenseRecord] = []
    for item in payload:
        try:
            paid_by = _member_id(item["paid_by"])
            amount = to_decimal(item["amount"])
        except (KeyError, TypeError, ValueError):
            raise PayloadError("could not read expense entry", code="invalid_expense_payload") from None

        if amount <= 0:
            raise PayloadError("expense amounts must be positive", code="invalid_amount")
        _check_bound(amount)

        expenses.append(
            ExpenseRecord(
                paid_by=paid_by,
                amount=amount,
                splits=_parse_splits(item.get("splits")),
                expense_id=item.get("id", item.get("expense_id")),
            )
        )
    return expenses


def parse_settlement(item: Dict[str, Any]) -> SettlementRecord:
    try:
        from_member_id = _member_id(item.get("from_member_id", item.get("from_user_id")))
        to_member_id = _member_id(item.get("to_member_id", item.get("to_user_id")))
        amount = to_decimal(item["amount"])
    except (AttributeError, KeyError, TypeError, ValueError):
        raise PayloadError("could not read settlement entry", code="invalid_settlement_payload") from None

    if amount <= 0:
        raise PayloadError("settlement amounts must be positive", code="invalid_amount")
    _check_bound(amount)
    if from_member_id == to_member_id:
        raise PayloadError("a member cannot settle with themselves", code="self_settlement")

    description = item.get("description")
    if description is not None:
        description = str(description).strip() or None

    return SettlementRecord(
        from_member_id=from_member_id,
        to_member_id=to_member_id,
        amount=amount,
        description=description,
    )


def parse_settlements(payload: Sequence[Dict[str, Any]]) -> List[SettlementRecord]:
    return [parse_settlement(item) for item in payload]


def parse_snapshot(payload: Any) -> Tuple[List[Member], List[ExpenseRecord], List[SettlementRecord]]:
    if not isinstance(payload, dict):
        raise PayloadError("expected a JSON object", code="invalid_payload")
    return (
        parse_members(_list_field(payload, "members")),
        parse_expenses(_list_field(payload, "expenses")),
        parse_settlements(_list_field(payload, "settlements")),
    )


def _money(value: Decimal, quantum: Decimal = CENT) -> float:
    return float(round_money(value, quantum))


def balance_to_dict(balance: Balance, member: Optional[Member] = None, quantum: Decimal = CENT) -> Dict[str, Any]:
    return {
        "member_id": balance.member_id,
        "name": member.name if member else "Unknown",
        "avatar_url": member.avatar_url if member else None,
        "total_paid": _money(balance.total_paid, quantum),
        "total_owed": _money(balance.total_owed, quantum),
        "net": _money(balance.net, quantum),
    }


def debt_to_dict(debt: DebtPair, directory: Dict[Any, Member], quantum: Decimal = CENT) -> Dict[str, Any]:
    debtor = directory.get(debt.from_member_id)
    creditor = directory.get(debt.to_member_id)
    return {
        "from_member_id": debt.from_member_id,
        "from_name": debtor.name if debtor else "Unknown",
        "to_member_id": debt.to_member_id,
        "to_name": creditor.name if creditor else "Unknown",
        "amount": _money(debt.amount, quantum),
    }


def group_debts_to_dict(result: GroupDebts, members: Sequence[Member], quantum: Decimal = CENT) -> Dict[str, Any]:
    directory = {member.member_id: member for member in members}
    return {
        "balances": [balance_to_dict(b, directory.get(b.member_id), quantum) for b in result.balances],
        "debts": [debt_to_dict(d, directory, quantum) for d in result.debts],
        "total_spent": _money(result.total_spent, quantum),
    }


def member_view_to_dict(
    result: GroupDebts, members: Sequence[Member], member_id: Any, quantum: Decimal = CENT
) -> Dict[str, Any]:
    directory = {member.member_id: member for member in members}
    balance = result.balance_for(member_id)
    return {
        "member_balance": balance_to_dict(balance, directory.get(member_id), quantum) if balance else None,
        "member_debts": [debt_to_dict(d, directory, quantum) for d in result.debts_for(member_id)],
    }


def settlement_to_dict(settlement: SettlementRecord, settlement_id: Any = None, quantum: Decimal = CENT) -> Dict[str, Any]:
    return {
        "id": settlement_id,
        "from_member_id": settlement.from_member_id,
        "to_member_id": settlement.to_member_id,
        "amount": _money(settlement.amount, quantum),
        "description": settlement.description,
    }
