from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, getcontext, localcontext
from typing import Any, Iterable

CENT = Decimal("0.01")
ZERO = Decimal("0")
DEFAULT_TOLERANCE = Decimal("0.01")

# Largest amount accepted from request payloads.
MAX_AMOUNT = Decimal("1000000000000000")


def to_decimal(value: Any) -> Decimal:
    """Convert an amount to Decimal without rounding it.

    Floats go through ``str`` so that 0.1 becomes Decimal("0.1") and not its
    binary expansion.
    """
    if isinstance(value, bool):
        raise ValueError("Cannot convert value to Decimal")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        result = Decimal(str(value))
    elif isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation:
            raise ValueError(f"Cannot convert {value!r} to Decimal") from None
    else:
        raise ValueError("Cannot convert value to Decimal")

    if not result.is_finite():
        raise ValueError(f"Amount must be finite, got {value!r}")
    return result


def round_money(value: Decimal, quantum: Decimal = CENT) -> Decimal:
    ctx = getcontext().copy()
    ctx.prec = max(ctx.prec, value.adjusted() - quantum.as_tuple().exponent + 2)
    return value.quantize(quantum, rounding=ROUND_HALF_UP, context=ctx)


def exact_context(amounts: Iterable[Decimal]):
    """Decimal context wide enough that adding up ``amounts`` never rounds.

    The precision covers the span from the largest digit to the smallest
    fractional digit, plus room for carries from summing all of them.
    """
    nonzero = [amount for amount in amounts if amount]
    ctx = getcontext().copy()
    if nonzero:
        high = max(amount.adjusted() for amount in nonzero)
        low = min(amount.as_tuple().exponent for amount in nonzero)
        ctx.prec = max(ctx.prec, high - low + len(str(len(nonzero))) + 2)
    return localcontext(ctx)


def amounts_close(a: Decimal, b: Decimal, tolerance: Decimal = DEFAULT_TOLERANCE) -> bool:
    return abs(a - b) <= tolerance
