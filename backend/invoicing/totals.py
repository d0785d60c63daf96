# invoicing/totals.py
"""
Invoice arithmetic.

subtotal = Σ quantity × unit_price
discount = subtotal × discount_rate%
tax      = subtotal × tax_rate%
total    = subtotal + tax - discount

Tax is charged on the undiscounted subtotal. Every amount is rounded
half-up to 0.01.
"""

from dataclasses import dataclass
from decimal import Decimal

from accounting.money import ZERO, money, percent_of, to_decimal


@dataclass(frozen=True)
class InvoiceTotals:
    subtotal: Decimal
    tax_amount: Decimal
    discount_amount: Decimal
    total: Decimal


def line_amount(quantity, unit_price) -> Decimal:
    return money(to_decimal(quantity) * to_decimal(unit_price))


def compute_totals(items, tax_rate=ZERO, discount_rate=ZERO) -> InvoiceTotals:
    """``items`` are dicts or objects with quantity and unit_price."""
    subtotal = ZERO
    for item in items:
        if isinstance(item, dict):
            subtotal += line_amount(item["quantity"], item["unit_price"])
        else:
            subtotal += line_amount(item.quantity, item.unit_price)
    subtotal = money(subtotal)

    tax_amount = percent_of(subtotal, tax_rate)
    discount_amount = percent_of(subtotal, discount_rate)
    return InvoiceTotals(
        subtotal=subtotal,
        tax_amount=tax_amount,
        discount_amount=discount_amount,
        total=money(subtotal + tax_amount - discount_amount),
    )
