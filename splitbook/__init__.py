"""Balance and debt-simplification engine for shared group expenses."""
from .balances import compute_balances
from .errors import (
    DataIntegrityError,
    InvalidRecordError,
    LedgerError,
    PayloadError,
    SplitMismatchError,
    UnknownMemberError,
)
from .ledger import compute_group_debts
from .models import (
    Balance,
    DebtPair,
    ExpenseRecord,
    GroupDebts,
    Member,
    SettlementRecord,
    SplitEntry,
)
from .simplify import simplify_debts

__all__ = [
    "compute_balances",
    "simplify_debts",
    "compute_group_debts",
    "Member",
    "SplitEntry",
    "ExpenseRecord",
    "SettlementRecord",
    "Balance",
    "DebtPair",
    "GroupDebts",
    "LedgerError",
    "DataIntegrityError",
    "UnknownMemberError",
    "SplitMismatchError",
    "InvalidRecordError",
    "PayloadError",
]
