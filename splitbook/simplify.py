"""Reduce net balances to a short list of "who pays whom" transfers."""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Iterable, List, Tuple

from .models import Balance, DebtPair
from .money import CENT, DEFAULT_TOLERANCE, exact_context, round_money, to_decimal

logger = logging.getLogger(__name__)


def _id_order(member_id: Any) -> Tuple[str, Any]:
    # Ids of different types order by type name first, so 1 and "a" never meet.
    return type(member_id).__name__, member_id


def simplify_debts(
    balances: Iterable[Balance],
    tolerance: Decimal = DEFAULT_TOLERANCE,
    quantum: Decimal = CENT,
) -> List[DebtPair]:
    """Greedy largest-first matching of debtors against creditors.

    The biggest creditor is paid by the biggest debtor until one of them is
    within ``tolerance`` of zero, then the next one steps in. Equal nets are
    ordered by member id so the output is reproducible. The input balances
    are not modified.
    """
    entries = [(balance.member_id, to_decimal(balance.net)) for balance in balances]
    tolerance = to_decimal(tolerance)

    with exact_context([net for _, net in entries] + [tolerance]):
        debtors = []
        creditors = []

        for member_id, net in entries:
            if net > tolerance:
                creditors.append([member_id, net])
            elif net < -tolerance:
                debtors.append([member_id, -net])

        creditors.sort(key=lambda entry: (-entry[1], _id_order(entry[0])))
        debtors.sort(key=lambda entry: (-entry[1], _id_order(entry[0])))

        debts: List[DebtPair] = []

        debtor_idx = 0
        creditor_idx = 0

        while debtor_idx < len(debtors) and creditor_idx < len(creditors):
            debtor = debtors[debtor_idx]
            creditor = creditors[creditor_idx]

            settled_amount = min(debtor[1], creditor[1])
            if settled_amount > tolerance:
                debts.append(
                    DebtPair(
                        from_member_id=debtor[0],
                        to_member_id=creditor[0],
                        amount=round_money(settled_amount, quantum),
                    )
                )

            debtor[1] -= settled_amount
            creditor[1] -= settled_amount

            if debtor[1] <= tolerance:
                debtor_idx += 1
            if creditor[1] <= tolerance:
                creditor_idx += 1

    logger.debug(
        "Simplified %d creditors and %d debtors into %d transfers",
        len(creditors),
        len(debtors),
        len(debts),
    )
    return debts
