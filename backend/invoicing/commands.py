# invoicing/commands.py
"""
Command layer for invoices.

Pattern:
1. Validate permissions (require)
2. Apply business policies (invoicing/policies.py)
3. Write the invoice and its side effects (stock, ledger) atomically
4. Return CommandResult

Side effects of issuing (mark_sent, or create with status SENT):
- stock is checked, then decremented for every product line
- the issue entry is posted (Dr AR / Cr Revenue / Cr SST Payable)
- an e-invoice document is prepared when auto_submit_on_send is on

A failed stock check or posting rolls the whole transition back.
"""

import logging

from django.db import transaction
from django.utils import timezone

from accounts.authz import ActorContext, require
from accounts.commands import CommandResult
from accounting.models import JournalEntry
from accounting.money import money, to_decimal
from accounting.posting import PostingError, post_invoice_issued, post_invoice_payment, reverse_entry
from accounting.sequences import next_company_sequence
from billing.plans import INVOICES_PER_MONTH, has_reached_limit, limit_failure
from customers.models import Customer
from inventory.models import Product, StockMovement
from inventory.stock import StockLine, apply_lines, check_availability
from invoicing.models import Invoice, InvoiceItem, InvoicePayment
from invoicing.policies import (
    OVERDUE_CANDIDATES,
    can_cancel_invoice,
    can_delete_invoice,
    can_edit_invoice,
    can_record_payment,
    can_send_invoice,
)
from invoicing.totals import compute_totals, line_amount
from ops import cache as ops_cache
from ops.metrics import INVOICE_TRANSITIONS

logger = logging.getLogger(__name__)

HEADER_FIELDS = {"issue_date", "due_date", "tax_rate", "discount_rate", "notes"}


class InvoiceTransitionError(Exception):
    """A side effect of a transition failed; the transition is rolled back."""
    pass


def _invalidate(company_id):
    ops_cache.invalidate(company_id, ops_cache.INVOICES, ops_cache.DASHBOARD, ops_cache.PRODUCTS)


def next_invoice_number(company, on_date=None) -> str:
    """INV-YYYYMMDD-NNNN; NNNN is a per-company counter."""
    on_date = on_date or timezone.localdate()
    return f"INV-{on_date:%Y%m%d}-{next_company_sequence(company, 'invoice'):04d}"


def _stock_lines(invoice) -> list[StockLine]:
    return [
        StockLine(product_id=item.product_id, quantity=item.quantity)
        for item in invoice.items.all()
        if item.product_id
    ]


def _build_items(company, items) -> tuple[list[dict], str]:
    """Validate item input. Returns (clean items, error)."""
    if not items:
        return [], "At least one item is required."

    product_ids = {item.get("product_id") for item in items if item.get("product_id")}
    products = {p.id: p for p in Product.objects.filter(company=company, pk__in=product_ids)}

    clean = []
    for i, item in enumerate(items, start=1):
        product = None
        if item.get("product_id"):
            product = products.get(item["product_id"])
            if product is None:
                return [], f"Item {i}: product not found."
        try:
            quantity = to_decimal(item.get("quantity"))
            unit_price = money(item.get("unit_price"))
        except ValueError:
            return [], f"Item {i}: invalid quantity or price."
        if quantity <= 0:
            return [], f"Item {i}: quantity must be greater than zero."
        if unit_price < 0:
            return [], f"Item {i}: unit price cannot be negative."

        description = (item.get("description") or "").strip()
        if not description and product is not None:
            description = product.name
        clean.append({
            "product": product,
            "description": description,
            "quantity": quantity,
            "unit_price": unit_price,
            "tax_type": item.get("tax_type") or InvoiceItem.DEFAULT_TAX_TYPE,
        })
    return clean, ""


def _write_items(invoice, items):
    invoice.items.all().delete()
    InvoiceItem.objects.bulk_create([
        InvoiceItem(
            invoice=invoice,
            product=item["product"],
            description=item["description"],
            quantity=item["quantity"],
            unit_price=item["unit_price"],
            amount=line_amount(item["quantity"], item["unit_price"]),
            tax_type=item["tax_type"],
        )
        for item in items
    ])


def _apply_totals(invoice, items):
    totals = compute_totals(items, invoice.tax_rate, invoice.discount_rate)
    invoice.subtotal = totals.subtotal
    invoice.tax_amount = totals.tax_amount
    invoice.discount_amount = totals.discount_amount
    invoice.total = totals.total


def _issue(invoice, user):
    """Stock check and decrement, issue entry. Raises InvoiceTransitionError."""
    lines = _stock_lines(invoice)
    available, reason = check_availability(invoice.company, lines, lock=True)
    if not available:
        raise InvoiceTransitionError(reason)

    apply_lines(invoice.company, lines, -1, StockMovement.Reason.INVOICE_ISSUED, invoice.invoice_number)

    try:
        entry = post_invoice_issued(invoice, user=user)
    except PostingError as exc:
        raise InvoiceTransitionError(str(exc))

    invoice.status = Invoice.Status.SENT
    invoice.stock_committed = True
    invoice.issued_entry = entry
    invoice.sent_at = timezone.now()
    invoice.save(update_fields=["status", "stock_committed", "issued_entry", "sent_at", "updated_at"])


def _unwind(invoice, user):
    """Give back committed stock and reverse the issue entry."""
    if invoice.stock_committed:
        apply_lines(invoice.company, _stock_lines(invoice), 1, StockMovement.Reason.INVOICE_REVERSED, invoice.invoice_number)
        invoice.stock_committed = False

    entry = invoice.issued_entry
    if entry is not None and entry.status == JournalEntry.Status.POSTED:
        try:
            reverse_entry(entry, memo=f"Invoice {invoice.invoice_number} cancelled", user=user)
        except PostingError as exc:
            raise InvoiceTransitionError(str(exc))


def _prepare_einvoice(invoice, user):
    """Prepare an e-invoice document when the company asked for it on send."""
    from einvoice.commands import auto_prepare_on_send

    result = auto_prepare_on_send(invoice, user=user)
    if result is not None and not result.success:
        logger.warning(
            "E-invoice preparation failed",
            extra={"company_id": invoice.company_id, "invoice_number": invoice.invoice_number, "error": result.error},
        )


# =============================================================================
# Create / update
# =============================================================================

@transaction.atomic
def create_invoice(
    actor: ActorContext,
    customer_id: int,
    issue_date,
    due_date,
    items: list,
    tax_rate=0,
    discount_rate=0,
    notes: str = "",
    status: str = Invoice.Status.DRAFT,
) -> CommandResult:
    """
    Create an invoice as DRAFT or SENT.

    FREE companies are limited to 15 invoices per calendar month.
    """
    require(actor, "invoices.create")
    if status == Invoice.Status.SENT:
        require(actor, "invoices.send")
    if status not in (Invoice.Status.DRAFT, Invoice.Status.SENT):
        return CommandResult.fail("New invoices must be DRAFT or SENT.")

    reached, count, limit = has_reached_limit(actor.company, INVOICES_PER_MONTH)
    if reached:
        return limit_failure(INVOICES_PER_MONTH, count, limit)

    customer = Customer.objects.filter(company=actor.company, pk=customer_id).first()
    if customer is None:
        return CommandResult.fail("Customer not found.")

    if due_date < issue_date:
        return CommandResult.fail("Due date cannot be before issue date.")

    clean_items, error = _build_items(actor.company, items)
    if error:
        return CommandResult.fail(error)

    try:
        with transaction.atomic():
            invoice = Invoice(
                company=actor.company,
                invoice_number=next_invoice_number(actor.company),
                customer=customer,
                issue_date=issue_date,
                due_date=due_date,
                tax_rate=money(tax_rate),
                discount_rate=money(discount_rate),
                currency=actor.company.currency or "MYR",
                notes=notes or "",
                created_by=actor.user,
            )
            _apply_totals(invoice, clean_items)
            invoice.save()
            _write_items(invoice, clean_items)

            if status == Invoice.Status.SENT:
                _issue(invoice, actor.user)
    except InvoiceTransitionError as exc:
        return CommandResult.fail(str(exc))

    if invoice.status == Invoice.Status.SENT:
        _prepare_einvoice(invoice, actor.user)

    _invalidate(actor.company.id)
    INVOICE_TRANSITIONS.labels(action="create").inc()
    logger.info(
        "Invoice created",
        extra={"company_id": actor.company.id, "invoice_number": invoice.invoice_number, "status": invoice.status},
    )
    return CommandResult.ok(invoice)


@transaction.atomic
def update_draft(actor: ActorContext, invoice_id: int, items: list = None, customer_id: int = None, **header) -> CommandResult:
    """Replace header fields and/or items of a DRAFT invoice and recompute totals."""
    require(actor, "invoices.create")

    invoice = Invoice.objects.select_for_update().filter(company=actor.company, pk=invoice_id).first()
    if invoice is None:
        return CommandResult.fail("Invoice not found", code="not_found")

    allowed, reason = can_edit_invoice(actor, invoice)
    if not allowed:
        return CommandResult.fail(reason)

    if customer_id is not None:
        customer = Customer.objects.filter(company=actor.company, pk=customer_id).first()
        if customer is None:
            return CommandResult.fail("Customer not found.")
        invoice.customer = customer

    for field, value in header.items():
        if field not in HEADER_FIELDS:
            continue
        if field in ("tax_rate", "discount_rate"):
            value = money(value)
        setattr(invoice, field, value)

    if invoice.due_date < invoice.issue_date:
        return CommandResult.fail("Due date cannot be before issue date.")

    if items is not None:
        clean_items, error = _build_items(actor.company, items)
        if error:
            return CommandResult.fail(error)
        _write_items(invoice, clean_items)
        _apply_totals(invoice, clean_items)
    else:
        _apply_totals(invoice, list(invoice.items.all()))

    invoice.save()
    _invalidate(actor.company.id)
    return CommandResult.ok(invoice)


# =============================================================================
# Transitions
# =============================================================================

def _locked_invoice(actor, invoice_id):
    return (
        Invoice.objects.select_for_update()
        .select_related("company", "issued_entry")
        .filter(company=actor.company, pk=invoice_id)
        .first()
    )


@transaction.atomic
def mark_sent(actor: ActorContext, invoice_id: int) -> CommandResult:
    require(actor, "invoices.send")

    invoice = _locked_invoice(actor, invoice_id)
    if invoice is None:
        return CommandResult.fail("Invoice not found", code="not_found")

    allowed, reason = can_send_invoice(actor, invoice)
    if not allowed:
        return CommandResult.fail(reason)

    try:
        with transaction.atomic():
            _issue(invoice, actor.user)
    except InvoiceTransitionError as exc:
        invoice.refresh_from_db()
        return CommandResult.fail(str(exc))

    _prepare_einvoice(invoice, actor.user)
    _invalidate(actor.company.id)
    INVOICE_TRANSITIONS.labels(action="mark_sent").inc()
    logger.info("Invoice sent", extra={"company_id": actor.company.id, "invoice_number": invoice.invoice_number})
    return CommandResult.ok(invoice)


@transaction.atomic
def record_payment(
    actor: ActorContext,
    invoice_id: int,
    amount,
    method: str = InvoicePayment.Method.CASH,
    reference: str = "",
    paid_at=None,
) -> CommandResult:
    """
    Apply a payment. Status becomes PAID once paid >= total, else PARTIAL.
    """
    require(actor, "invoices.record_payment")

    try:
        amount = money(amount)
    except ValueError:
        return CommandResult.fail("Invalid payment amount")
    if amount <= 0:
        return CommandResult.fail("Invalid payment amount")

    invoice = _locked_invoice(actor, invoice_id)
    if invoice is None:
        return CommandResult.fail("Invoice not found", code="not_found")

    allowed, reason = can_record_payment(actor, invoice, amount)
    if not allowed:
        return CommandResult.fail(reason)

    paid_at = paid_at or timezone.now()
    try:
        with transaction.atomic():
            entry = post_invoice_payment(invoice, amount, user=actor.user, entry_date=timezone.localdate(paid_at))
            payment = InvoicePayment.objects.create(
                company=actor.company,
                invoice=invoice,
                amount=amount,
                method=method,
                reference=reference or "",
                paid_at=paid_at,
                journal_entry=entry,
                recorded_by=actor.user,
            )
    except PostingError as exc:
        return CommandResult.fail(str(exc))

    invoice.paid_amount = invoice.paid_amount + amount
    invoice.status = Invoice.Status.PAID if invoice.paid_amount >= invoice.total else Invoice.Status.PARTIAL
    invoice.save(update_fields=["paid_amount", "status", "updated_at"])

    _invalidate(actor.company.id)
    INVOICE_TRANSITIONS.labels(action="payment").inc()
    logger.info(
        "Invoice payment recorded",
        extra={
            "company_id": actor.company.id,
            "invoice_number": invoice.invoice_number,
            "amount": str(amount),
            "status": invoice.status,
        },
    )
    return CommandResult.ok({"invoice": invoice, "payment": payment})


@transaction.atomic
def cancel_invoice(actor: ActorContext, invoice_id: int) -> CommandResult:
    require(actor, "invoices.cancel")

    invoice = _locked_invoice(actor, invoice_id)
    if invoice is None:
        return CommandResult.fail("Invoice not found", code="not_found")

    allowed, reason = can_cancel_invoice(actor, invoice)
    if not allowed:
        return CommandResult.fail(reason)

    try:
        with transaction.atomic():
            _unwind(invoice, actor.user)
            invoice.status = Invoice.Status.CANCELLED
            invoice.save(update_fields=["status", "stock_committed", "updated_at"])
    except InvoiceTransitionError as exc:
        invoice.refresh_from_db()
        return CommandResult.fail(str(exc))

    _invalidate(actor.company.id)
    INVOICE_TRANSITIONS.labels(action="cancel").inc()
    logger.info("Invoice cancelled", extra={"company_id": actor.company.id, "invoice_number": invoice.invoice_number})
    return CommandResult.ok(invoice)


@transaction.atomic
def delete_invoice(actor: ActorContext, invoice_id: int) -> CommandResult:
    require(actor, "invoices.delete")

    invoice = _locked_invoice(actor, invoice_id)
    if invoice is None:
        return CommandResult.fail("Invoice not found", code="not_found")

    allowed, reason = can_delete_invoice(actor, invoice)
    if not allowed:
        return CommandResult.fail(reason)

    number = invoice.invoice_number
    try:
        with transaction.atomic():
            _unwind(invoice, actor.user)
            invoice.delete()
    except InvoiceTransitionError as exc:
        return CommandResult.fail(str(exc))

    _invalidate(actor.company.id)
    INVOICE_TRANSITIONS.labels(action="delete").inc()
    logger.info("Invoice deleted", extra={"company_id": actor.company.id, "invoice_number": number})
    return CommandResult.ok({"deleted": True})


def apply_action(actor: ActorContext, invoice_id: int, action: str, **params) -> CommandResult:
    """Dispatch a PATCH action: mark_sent, payment or cancel."""
    if action == "mark_sent":
        return mark_sent(actor, invoice_id)
    if action == "payment":
        return record_payment(
            actor,
            invoice_id,
            params.get("payment_amount"),
            method=params.get("method") or InvoicePayment.Method.CASH,
            reference=params.get("reference", ""),
        )
    if action == "cancel":
        return cancel_invoice(actor, invoice_id)
    return CommandResult.fail("Invalid action")


@transaction.atomic
def mark_overdue(today=None) -> int:
    """SENT/PARTIAL invoices past their due date become OVERDUE. Returns the count."""
    today = today or timezone.localdate()
    overdue = Invoice.objects.filter(status__in=OVERDUE_CANDIDATES, due_date__lt=today)
    company_ids = set(overdue.values_list("company_id", flat=True))
    updated = overdue.update(status=Invoice.Status.OVERDUE, updated_at=timezone.now())
    for company_id in company_ids:
        _invalidate(company_id)
    if updated:
        INVOICE_TRANSITIONS.labels(action="mark_overdue").inc(updated)
    return updated
