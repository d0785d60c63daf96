# pos/commands.py
"""
Command layer for the POS module.

Order totals:
    subtotal       = Σ quantity × unit_price
    service_charge = subtotal × service_charge_rate%
    tax            = (subtotal + service_charge) × tax_rate%
    total          = subtotal + service_charge + tax

Completing an order decrements stock (POS_SALE) and creates a receipt.
COMPLETED and CANCELLED are final.
"""

import logging

from django.db import transaction

from accounts.authz import ActorContext, require
from accounts.commands import CommandResult
from accounting.money import ZERO, money, percent_of, to_decimal
from accounting.sequences import next_company_sequence
from inventory.models import Product, StockMovement
from inventory.stock import StockLine, apply_lines, check_availability
from ops.metrics import DOCUMENTS_CREATED
from pos.models import PosOrder, PosOrderItem, PosSettings, PosTable

logger = logging.getLogger(__name__)

ORDER_PREFIXES = {
    PosOrder.OrderType.DINE_IN: "D",
    PosOrder.OrderType.TAKEAWAY: "T",
    PosOrder.OrderType.DELIVERY: "DL",
}
ACTIVE_STATUSES = {PosOrder.Status.KITCHEN, PosOrder.Status.TO_PAY}
FINAL_STATUSES = {PosOrder.Status.COMPLETED, PosOrder.Status.CANCELLED}
SETTABLE_STATUSES = [
    PosOrder.Status.KITCHEN,
    PosOrder.Status.TO_PAY,
    PosOrder.Status.COMPLETED,
    PosOrder.Status.CANCELLED,
]
SETTINGS_FIELDS = {"auto_print_enabled", "default_printer_address", "table_layout_type", "tax_rate", "service_charge_rate"}


class PosOrderError(Exception):
    """Completing an order failed; the status change is rolled back."""
    pass


def is_pos_enabled(company) -> bool:
    return PosSettings.objects.filter(company=company).exists()


# =============================================================================
# Settings
# =============================================================================

@transaction.atomic
def enable_pos(actor: ActorContext) -> CommandResult:
    """Create default settings, which switches the module on. Idempotent."""
    require(actor, "pos.manage")
    settings_row, created = PosSettings.objects.get_or_create(company=actor.company)
    if created:
        logger.info("POS module enabled", extra={"company_id": actor.company.id})
    return CommandResult.ok(settings_row)


@transaction.atomic
def disable_pos(actor: ActorContext) -> CommandResult:
    require(actor, "pos.manage")
    PosSettings.objects.filter(company=actor.company).delete()
    logger.info("POS module disabled", extra={"company_id": actor.company.id})
    return CommandResult.ok({"enabled": False})


@transaction.atomic
def update_settings(actor: ActorContext, **data) -> CommandResult:
    require(actor, "pos.manage")

    for field in ("tax_rate", "service_charge_rate"):
        if field in data and data[field] is not None:
            value = money(data[field])
            if value < 0 or value > 100:
                label = "Tax rate" if field == "tax_rate" else "Service charge rate"
                return CommandResult.fail(f"{label} must be between 0 and 100")
            data[field] = value

    layout = data.get("table_layout_type")
    if layout and layout not in PosSettings.TableLayout.values:
        return CommandResult.fail("Invalid table layout type. Must be LIST or MAP")

    settings_row, _ = PosSettings.objects.select_for_update().get_or_create(company=actor.company)
    for field, value in data.items():
        if field in SETTINGS_FIELDS and value is not None:
            setattr(settings_row, field, value)
    settings_row.save()
    return CommandResult.ok(settings_row)


# =============================================================================
# Tables
# =============================================================================

@transaction.atomic
def create_table(actor: ActorContext, name: str, label: str = "", capacity: int = 4, position_x: int = 0, position_y: int = 0) -> CommandResult:
    require(actor, "pos.manage")

    name = (name or "").strip()
    if not name:
        return CommandResult.fail("Table name is required")
    if PosTable.objects.filter(company=actor.company, name=name).exists():
        return CommandResult.fail("Table name already exists")

    table = PosTable.objects.create(
        company=actor.company,
        name=name,
        label=label or name,
        capacity=max(1, capacity or 1),
        position_x=position_x,
        position_y=position_y,
    )
    return CommandResult.ok(table)


@transaction.atomic
def update_table(actor: ActorContext, table_id: int, **data) -> CommandResult:
    require(actor, "pos.manage")

    table = PosTable.objects.filter(company=actor.company, pk=table_id).first()
    if table is None:
        return CommandResult.fail("Table not found", code="not_found")

    name = (data.get("name") or "").strip()
    if name and name != table.name:
        if PosTable.objects.filter(company=actor.company, name=name).exclude(pk=table.pk).exists():
            return CommandResult.fail("Table name already exists")
        table.name = name

    if "label" in data:
        table.label = data["label"] or name or table.name
    if data.get("capacity") is not None:
        table.capacity = max(1, data["capacity"])
    for field in ("position_x", "position_y", "is_active"):
        if data.get(field) is not None:
            setattr(table, field, data[field])

    table.save()
    return CommandResult.ok(table)


@transaction.atomic
def deactivate_table(actor: ActorContext, table_id: int) -> CommandResult:
    """Tables keep their order history, so "delete" only deactivates."""
    require(actor, "pos.manage")

    table = PosTable.objects.filter(company=actor.company, pk=table_id).first()
    if table is None:
        return CommandResult.fail("Table not found", code="not_found")
    if table.orders.filter(status__in=ACTIVE_STATUSES).exists():
        return CommandResult.fail("Cannot delete table with active orders")

    table.is_active = False
    table.save(update_fields=["is_active", "updated_at"])
    return CommandResult.ok(table)


# =============================================================================
# Orders
# =============================================================================

def next_order_number(company, order_type) -> str:
    return f"{ORDER_PREFIXES[order_type]}{next_company_sequence(company, 'pos_order'):04d}"


def compute_order_totals(subtotal, service_charge_rate, tax_rate) -> dict:
    subtotal = money(subtotal)
    service_charge = percent_of(subtotal, service_charge_rate)
    tax_amount = percent_of(subtotal + service_charge, tax_rate)
    return {
        "subtotal": subtotal,
        "service_charge": service_charge,
        "tax_amount": tax_amount,
        "total": money(subtotal + service_charge + tax_amount),
    }


@transaction.atomic
def create_order(
    actor: ActorContext,
    items: list,
    order_type: str = PosOrder.OrderType.DINE_IN,
    table_id: int = None,
    table_number: str = "",
    notes: str = "",
) -> CommandResult:
    require(actor, "pos.use")

    if not items:
        return CommandResult.fail("Items are required")

    table = None
    if table_id:
        table = PosTable.objects.filter(company=actor.company, pk=table_id, is_active=True).first()
        if table is None:
            return CommandResult.fail("Table not found")
        table_number = table_number or table.name

    if order_type == PosOrder.OrderType.DINE_IN and not table_number:
        return CommandResult.fail("Table number is required for dine-in orders")

    product_ids = {item["product_id"] for item in items}
    products = {p.id: p for p in Product.objects.filter(company=actor.company, pk__in=product_ids)}
    missing = product_ids - set(products)
    if missing:
        return CommandResult.fail(f"Product not found: {sorted(missing)[0]}")

    lines = [StockLine(product_id=item["product_id"], quantity=to_decimal(item["quantity"])) for item in items]
    available, reason = check_availability(actor.company, lines)
    if not available:
        return CommandResult.fail(reason)

    rows = []
    subtotal = ZERO
    for item in items:
        product = products[item["product_id"]]
        quantity = to_decimal(item["quantity"])
        unit_price = money(item.get("unit_price") or product.price)
        amount = money(quantity * unit_price)
        subtotal += amount
        rows.append((product, quantity, unit_price, amount, item.get("notes") or ""))

    pos_settings = PosSettings.objects.filter(company=actor.company).first()
    tax_rate = pos_settings.tax_rate if pos_settings else ZERO
    service_rate = pos_settings.service_charge_rate if pos_settings else ZERO
    totals = compute_order_totals(subtotal, service_rate, tax_rate)

    order = PosOrder.objects.create(
        company=actor.company,
        order_number=next_order_number(actor.company, order_type),
        table=table,
        table_number=table_number or "",
        order_type=order_type,
        tax_rate=tax_rate,
        notes=notes or "",
        created_by=actor.user,
        **totals,
    )
    PosOrderItem.objects.bulk_create([
        PosOrderItem(order=order, product=product, quantity=quantity, unit_price=unit_price, amount=amount, notes=item_notes)
        for product, quantity, unit_price, amount, item_notes in rows
    ])

    DOCUMENTS_CREATED.labels(document_type="pos_order").inc()
    logger.info(
        "POS order created",
        extra={"company_id": actor.company.id, "order_number": order.order_number, "total": str(order.total)},
    )
    return CommandResult.ok(order)


def _complete(actor, order):
    """Take stock and write the receipt for a completed order."""
    from receipts.commands import create_receipt

    order_items = list(order.items.select_related("product"))
    apply_lines(
        actor.company,
        [StockLine(product_id=item.product_id, quantity=item.quantity) for item in order_items],
        -1,
        StockMovement.Reason.POS_SALE,
        order.order_number,
    )

    result = create_receipt(
        actor,
        items=[
            {
                "product_id": item.product_id,
                "description": item.product.name + (f" ({item.notes})" if item.notes else ""),
                "quantity": item.quantity,
                "unit_price": item.unit_price,
            }
            for item in order_items
        ],
        customer_name=order.table_number or None,
        total=order.total,
        notes=f"Generated from POS Order: {order.order_number}",
    )
    if not result.success:
        raise PosOrderError(result.error)
    order.receipt = result.data


@transaction.atomic
def update_order_status(actor: ActorContext, order_id: int, status: str, notes: str = None) -> CommandResult:
    require(actor, "pos.use")

    if status not in SETTABLE_STATUSES:
        return CommandResult.fail("Invalid status. Must be one of: " + ", ".join(SETTABLE_STATUSES))

    order = PosOrder.objects.select_for_update().filter(company=actor.company, pk=order_id).first()
    if order is None:
        return CommandResult.fail("Order not found", code="not_found")
    if order.status in FINAL_STATUSES:
        return CommandResult.fail("Cannot change status of completed or cancelled orders")

    try:
        with transaction.atomic():
            if status == PosOrder.Status.COMPLETED:
                _complete(actor, order)
            order.status = status
            if notes is not None:
                order.notes = notes
            order.save()
    except PosOrderError as exc:
        return CommandResult.fail(str(exc))

    logger.info(
        "POS order status changed",
        extra={"company_id": actor.company.id, "order_number": order.order_number, "status": status},
    )
    return CommandResult.ok(order)


@transaction.atomic
def cancel_order(actor: ActorContext, order_id: int) -> CommandResult:
    require(actor, "pos.use")

    order = PosOrder.objects.select_for_update().filter(company=actor.company, pk=order_id).first()
    if order is None:
        return CommandResult.fail("Order not found", code="not_found")
    if order.status == PosOrder.Status.COMPLETED:
        return CommandResult.fail("Cannot delete completed orders")

    order.status = PosOrder.Status.CANCELLED
    order.save(update_fields=["status", "updated_at"])
    return CommandResult.ok(order)
