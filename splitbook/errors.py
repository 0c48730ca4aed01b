"""Errors raised while turning ledger records into balances."""


class LedgerError(Exception):
    code = "ledger_error"

    def __init__(self, message: str, code: str = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code

    def to_dict(self):
        return {"error": self.code, "detail": self.message}


class DataIntegrityError(LedgerError):
    """The supplied snapshot is inconsistent; the computation was abandoned."""

    code = "data_integrity_fault"


class UnknownMemberError(DataIntegrityError):
    code = "unknown_member"

    def __init__(self, member_id, context: str) -> None:
        super().__init__(f"{context} references member {member_id!r} which is not in the group")
        self.member_id = member_id


class SplitMismatchError(DataIntegrityError):
    code = "split_total_mismatch"

    def __init__(self, expense_id, amount, split_total) -> None:
        super().__init__(
            f"splits of expense {expense_id!r} sum to {split_total} but the expense amount is {amount}"
        )
        self.expense_id = expense_id
        self.amount = amount
        self.split_total = split_total


class InvalidRecordError(DataIntegrityError):
    code = "invalid_record"


class PayloadError(LedgerError):
    """A request payload could not be turned into ledger records."""

    code = "invalid_payload"
