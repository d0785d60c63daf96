# receipts/commands.py
"""
Command layer for receipts.

Receipts are plain records: creating or deleting one never touches
stock or the ledger. Writes invalidate the receipts and dashboard caches.
"""

import logging
import uuid

from django.db import transaction
from django.utils import timezone

from accounts.authz import ActorContext, require
from accounts.commands import CommandResult
from accounting.money import ZERO, money, to_decimal
from customers.models import Customer
from inventory.models import Product
from invoicing.models import Invoice
from ops import cache as ops_cache
from ops.metrics import DOCUMENTS_CREATED
from receipts.models import WALK_IN_CUSTOMER, Receipt, ReceiptItem

logger = logging.getLogger(__name__)


def _invalidate(company_id):
    ops_cache.invalidate(company_id, ops_cache.RECEIPTS, ops_cache.DASHBOARD)


def generate_receipt_number(company) -> str:
    """RCT- followed by 6 uppercase hex characters, unique within the company."""
    while True:
        number = f"RCT-{uuid.uuid4().hex[:6].upper()}"
        if not Receipt.objects.filter(company=company, receipt_number=number).exists():
            return number


@transaction.atomic
def create_receipt(
    actor: ActorContext,
    items: list,
    customer_id: int = None,
    customer_name: str = "",
    customer_phone: str = "",
    receipt_date=None,
    payment_method: str = Receipt.PaymentMethod.CASH,
    total=None,
    notes: str = "",
    invoice_id: int = None,
    receipt_number: str = "",
    created_by=None,
) -> CommandResult:
    """
    Create a receipt. ``total`` defaults to the sum of quantity x unit_price.
    """
    require(actor, "receipts.create")

    if not items:
        return CommandResult.fail("Receipt must contain at least one item")

    customer = None
    if customer_id:
        customer = Customer.objects.filter(company=actor.company, pk=customer_id).first()
        if customer is None:
            return CommandResult.fail("Customer not found.")

    invoice = None
    if invoice_id:
        invoice = Invoice.objects.filter(company=actor.company, pk=invoice_id).first()
        if invoice is None:
            return CommandResult.fail("Invoice not found.")

    product_ids = {item.get("product_id") for item in items if item.get("product_id")}
    products = {p.id: p for p in Product.objects.filter(company=actor.company, pk__in=product_ids)}

    rows = []
    computed = ZERO
    for i, item in enumerate(items, start=1):
        product = None
        if item.get("product_id"):
            product = products.get(item["product_id"])
            if product is None:
                return CommandResult.fail(f"Item {i}: product not found.")
        quantity = to_decimal(item.get("quantity"))
        unit_price = money(item.get("unit_price"))
        if quantity <= 0:
            return CommandResult.fail(f"Item {i}: quantity must be greater than zero.")
        rows.append((product, item.get("description") or (product.name if product else ""), quantity, unit_price))
        computed += quantity * unit_price

    if receipt_number and Receipt.objects.filter(company=actor.company, receipt_number=receipt_number).exists():
        return CommandResult.fail("Receipt number already exists.", code="duplicate")

    receipt = Receipt.objects.create(
        company=actor.company,
        receipt_number=receipt_number or generate_receipt_number(actor.company),
        customer=customer,
        customer_name=(customer_name or "").strip() or (customer.name if customer else WALK_IN_CUSTOMER),
        customer_phone=customer_phone or (customer.phone_number if customer else ""),
        receipt_date=receipt_date or timezone.now(),
        payment_method=payment_method or Receipt.PaymentMethod.CASH,
        total=money(computed) if total is None else money(total),
        notes=notes or "",
        invoice=invoice,
        created_by=created_by or actor.user,
    )
    ReceiptItem.objects.bulk_create([
        ReceiptItem(receipt=receipt, product=product, description=description, quantity=quantity, unit_price=unit_price)
        for product, description, quantity, unit_price in rows
    ])

    _invalidate(actor.company.id)
    DOCUMENTS_CREATED.labels(document_type="receipt").inc()
    logger.info(
        "Receipt created",
        extra={"company_id": actor.company.id, "receipt_number": receipt.receipt_number, "total": str(receipt.total)},
    )
    return CommandResult.ok(receipt)


@transaction.atomic
def delete_receipt(actor: ActorContext, receipt_id: int) -> CommandResult:
    require(actor, "receipts.delete")

    receipt = Receipt.objects.filter(company=actor.company, pk=receipt_id).first()
    if receipt is None:
        return CommandResult.fail("Receipt not found", code="not_found")

    number = receipt.receipt_number
    receipt.delete()

    _invalidate(actor.company.id)
    logger.info("Receipt deleted", extra={"company_id": actor.company.id, "receipt_number": number})
    return CommandResult.ok({"deleted": True})
