# invoicing/policies.py
"""
Business policy functions for invoice transitions.

Policies are pure functions returning (allowed, reason).

    DRAFT ──mark_sent──> SENT ──payment──> PARTIAL ──payment──> PAID
      │                   │ └──(due date)──> OVERDUE ──payment──┘
      └──cancel──> CANCELLED <──cancel─┘

Invoices with recorded payments can be neither cancelled nor deleted.
"""

from accounting.policies import check_tenant_boundary
from invoicing.models import Invoice

EDITABLE_STATUSES = {Invoice.Status.DRAFT}
SENDABLE_STATUSES = {Invoice.Status.DRAFT}
PAYABLE_STATUSES = {Invoice.Status.SENT, Invoice.Status.PARTIAL, Invoice.Status.OVERDUE}
CANCELLABLE_STATUSES = {Invoice.Status.DRAFT, Invoice.Status.SENT, Invoice.Status.OVERDUE}
OVERDUE_CANDIDATES = {Invoice.Status.SENT, Invoice.Status.PARTIAL}
OPEN_STATUSES = {Invoice.Status.DRAFT, Invoice.Status.SENT, Invoice.Status.PARTIAL, Invoice.Status.OVERDUE}


def can_edit_invoice(actor, invoice) -> tuple[bool, str]:
    if not check_tenant_boundary(actor, invoice):
        return False, "Cross-company action denied."
    if invoice.status not in EDITABLE_STATUSES:
        return False, "Only draft invoices can be edited."
    return True, ""


def can_send_invoice(actor, invoice) -> tuple[bool, str]:
    if not check_tenant_boundary(actor, invoice):
        return False, "Cross-company action denied."
    if invoice.status not in SENDABLE_STATUSES:
        return False, f"Cannot send an invoice in {invoice.status} status."
    return True, ""


def can_record_payment(actor, invoice, amount) -> tuple[bool, str]:
    if not check_tenant_boundary(actor, invoice):
        return False, "Cross-company action denied."
    if invoice.status not in PAYABLE_STATUSES:
        return False, f"Cannot record a payment on an invoice in {invoice.status} status."
    if amount > invoice.balance_due:
        return False, f"Payment exceeds the balance due ({invoice.balance_due})."
    return True, ""


def can_cancel_invoice(actor, invoice) -> tuple[bool, str]:
    if not check_tenant_boundary(actor, invoice):
        return False, "Cross-company action denied."
    if invoice.payments.exists() or invoice.paid_amount > 0:
        return False, "Invoices with payments cannot be cancelled."
    if invoice.status not in CANCELLABLE_STATUSES:
        return False, f"Cannot cancel an invoice in {invoice.status} status."
    return True, ""


def can_delete_invoice(actor, invoice) -> tuple[bool, str]:
    if not check_tenant_boundary(actor, invoice):
        return False, "Cross-company action denied."
    if invoice.payments.exists() or invoice.paid_amount > 0:
        return False, "Invoices with payments cannot be deleted."
    return True, ""
