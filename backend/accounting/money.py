# accounting/money.py
"""Decimal helpers shared by invoicing, POS and the ledger."""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

MONEY_Q = Decimal("0.01")
ZERO = Decimal("0.00")


def to_decimal(x) -> Decimal:
    """
    Convert input to Decimal; None and "" are zero.

    Raises ValueError on junk and on NaN/Infinity.
    """
    if x is None or x == "":
        return ZERO
    if isinstance(x, Decimal):
        d = x
    else:
        try:
            d = Decimal(str(x).strip())
        except (InvalidOperation, ValueError, TypeError):
            raise ValueError(f"Invalid decimal amount: {x!r}")
    if not d.is_finite():
        raise ValueError(f"Invalid decimal amount: {x!r}")
    return d


def money(x) -> Decimal:
    """Round half-up to 0.01. Raises ValueError when the result is out of range."""
    try:
        return to_decimal(x).quantize(MONEY_Q, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValueError(f"Amount out of range: {x!r}")


def percent_of(amount, rate) -> Decimal:
    """amount × rate% rounded to 0.01."""
    return money(to_decimal(amount) * to_decimal(rate) / Decimal("100"))
