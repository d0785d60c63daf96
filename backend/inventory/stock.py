# inventory/stock.py
"""
Stock adjustment helpers.

adjust_stock locks the product row, applies the delta and records a
StockMovement. Products with stock management disabled are left alone.
Callers run inside their own transaction (invoice send/cancel, POS
completion).
"""

import logging
from dataclasses import dataclass
from decimal import Decimal

from django.db import transaction

from accounting.money import to_decimal
from inventory.models import Product, StockMovement

logger = logging.getLogger(__name__)


@dataclass
class StockLine:
    product_id: int
    quantity: Decimal


@transaction.atomic
def adjust_stock(product: Product, delta, reason: str, reference: str = "") -> Product:
    """Apply ``delta`` to the product quantity. Returns the refreshed product."""
    locked = Product.objects.select_for_update().get(pk=product.pk)
    if locked.disable_stock_management:
        return locked

    delta = to_decimal(delta)
    if delta == 0:
        return locked

    locked.quantity = locked.quantity + delta
    locked.save(update_fields=["quantity", "updated_at"])
    StockMovement.objects.create(
        company_id=locked.company_id,
        product=locked,
        delta=delta,
        quantity_after=locked.quantity,
        reason=reason,
        reference=str(reference or ""),
    )
    logger.debug(
        "Stock adjusted",
        extra={
            "company_id": locked.company_id,
            "product_id": locked.id,
            "delta": str(delta),
            "reason": reason,
        },
    )
    return locked


def _merge(lines) -> dict:
    needed = {}
    for line in lines:
        if line.product_id is None:
            continue
        needed[line.product_id] = needed.get(line.product_id, Decimal("0")) + to_decimal(line.quantity)
    return needed


def check_availability(company, lines, lock: bool = False) -> tuple[bool, str]:
    """
    Verify stock for every product line.

    Quantities for the same product are summed. Returns (False, reason)
    for the first product that is short.

    With ``lock=True`` the product rows stay locked until the caller's
    transaction ends, so a check followed by ``apply_lines`` cannot be
    raced by another sale. Must then run inside a transaction.
    """
    needed = _merge(lines)
    if not needed:
        return True, ""

    products = Product.objects.filter(company=company, pk__in=needed.keys()).order_by("pk")
    if lock:
        products = products.select_for_update()
    for product in products:
        if product.disable_stock_management:
            continue
        if product.quantity < needed[product.pk]:
            return False, f"Insufficient stock for {product.name}"
    return True, ""


def apply_lines(company, lines, sign: int, reason: str, reference: str = "") -> None:
    """Adjust stock by sign × quantity for each product line."""
    needed = _merge(lines)
    for product in Product.objects.filter(company=company, pk__in=needed.keys()).order_by("pk"):
        adjust_stock(product, sign * needed[product.pk], reason, reference)


def inventory_value(company) -> Decimal:
    """Σ price × quantity over stock-managed products."""
    total = Decimal("0.00")
    rows = Product.objects.filter(company=company, disable_stock_management=False).values_list("price", "quantity")
    for price, quantity in rows:
        total += price * quantity
    return total.quantize(Decimal("0.01"))
