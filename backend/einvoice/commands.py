# einvoice/commands.py
"""
Command layer for e-invoicing.

prepare_document():
1. Check readiness (config, company profile, customer, items)
2. Build the document data from the invoice
3. Validate it for the requested profile
4. Store the document (PENDING when valid, INVALID otherwise) with an event

Invoices call auto_prepare_on_send() when they go out; it only acts
when e-invoicing is enabled with auto-submit switched on.
"""

import hashlib
import logging

from django.db import transaction

from accounts.authz import ActorContext, require
from accounts.commands import CommandResult
from invoicing.models import Invoice
from ops.metrics import EINVOICE_DOCUMENTS

from .mapper import build_document_data
from .models import EInvoiceConfig, EInvoiceDocument, EInvoiceEvent
from .readiness import check_readiness
from .validation import LHDN, validate_document

logger = logging.getLogger(__name__)

CONFIG_FIELDS = {
    "enabled", "environment", "myinvois_client_id", "supplier_tin", "supplier_brn",
    "sst_registration_number", "tourism_tax_number", "default_currency_code",
    "auto_submit_on_send", "peppol_participant_id", "peppol_scheme_id",
}
PREPARABLE_STATUSES = {
    Invoice.Status.SENT,
    Invoice.Status.PARTIAL,
    Invoice.Status.PAID,
    Invoice.Status.OVERDUE,
}
EVENTS_PER_DOCUMENT = 10


def hash_client_secret(secret: str) -> str:
    return hashlib.sha256(secret.encode("utf-8")).hexdigest()


def get_config(company):
    """The company's config, or None before e-invoicing has been set up."""
    return EInvoiceConfig.objects.filter(company=company).first()


@transaction.atomic
def update_config(actor: ActorContext, client_secret: str = None, **data) -> CommandResult:
    """
    Partial update; only the fields present are written.

    The client secret is kept only as a SHA-256 hash.
    """
    require(actor, "einvoice.manage")

    existing = EInvoiceConfig.objects.select_for_update().filter(company=actor.company).first()
    updates = {k: v for k, v in data.items() if k in CONFIG_FIELDS}

    if updates.get("enabled"):
        supplier_tin = updates.get("supplier_tin", existing.supplier_tin if existing else "")
        if not supplier_tin:
            return CommandResult.fail("Supplier TIN is required to enable e-Invoice")

    created = existing is None
    config = EInvoiceConfig(company=actor.company) if created else existing
    for field, value in updates.items():
        setattr(config, field, value)
    if client_secret:
        config.client_secret_hash = hash_client_secret(client_secret)
    config.save()

    logger.info(
        "E-invoice config updated",
        extra={"company_id": actor.company.id, "enabled": config.enabled, "config_created": created},
    )
    return CommandResult.ok(config)


def _prepare(invoice, config, user=None, profile=LHDN) -> CommandResult:
    readiness = check_readiness(invoice, config)
    if not readiness["isReady"]:
        return CommandResult.fail("Invoice is not ready for e-invoicing", readiness=readiness)

    data = build_document_data(invoice, config)
    result = validate_document(data, profile)
    status = EInvoiceDocument.Status.PENDING if result["isValid"] else EInvoiceDocument.Status.INVALID

    document = EInvoiceDocument.objects.create(
        company=invoice.company,
        invoice=invoice,
        document_type=data["document_type"],
        document_version=data["document_version"],
        status=status,
        profile=profile,
        payload=data,
        validation_errors=result["errors"],
        validation_warnings=result["warnings"],
        created_by=user,
    )
    if result["isValid"]:
        EInvoiceEvent.objects.create(
            document=document,
            event_type=EInvoiceEvent.EventType.PREPARED,
            message="Document prepared and awaiting submission",
            data={"warnings": len(result["warnings"])},
        )
    else:
        EInvoiceEvent.objects.create(
            document=document,
            event_type=EInvoiceEvent.EventType.VALIDATION_FAILED,
            message=f"Validation failed with {len(result['errors'])} error(s)",
            data={"summary": result["summary"]},
        )

    EINVOICE_DOCUMENTS.labels(status=status).inc()
    logger.info(
        "E-invoice document prepared",
        extra={
            "company_id": invoice.company_id,
            "invoice_number": invoice.invoice_number,
            "status": status,
            "profile": profile,
        },
    )
    return CommandResult.ok(document)


@transaction.atomic
def prepare_document(actor: ActorContext, invoice_id: int, profile: str = LHDN) -> CommandResult:
    require(actor, "einvoice.manage")

    invoice = (
        Invoice.objects.select_related("company", "customer")
        .filter(company=actor.company, pk=invoice_id)
        .first()
    )
    if invoice is None:
        return CommandResult.fail("Invoice not found", code="not_found")
    if invoice.status not in PREPARABLE_STATUSES:
        return CommandResult.fail("Only sent invoices can be prepared for e-invoicing")

    return _prepare(invoice, get_config(actor.company), user=actor.user, profile=profile)


def auto_prepare_on_send(invoice, user=None):
    """
    Prepare a document for an invoice that was just sent.

    Returns None when auto-submit is off, otherwise the CommandResult.
    """
    config = get_config(invoice.company)
    if config is None or not config.enabled or not config.auto_submit_on_send:
        return None
    return _prepare(invoice, config, user=user)


def invoice_einvoice_status(invoice) -> dict:
    """Readiness plus every document of the invoice, newest first, with its recent events."""
    documents = list(EInvoiceDocument.objects.filter(invoice=invoice).order_by("-created_at", "-id"))
    for document in documents:
        document.recent_events = list(document.events.order_by("-created_at", "-id")[:EVENTS_PER_DOCUMENT])

    return {
        "invoice_id": invoice.id,
        "latest_document": documents[0] if documents else None,
        "documents": documents,
        "readiness": check_readiness(invoice, get_config(invoice.company)),
    }
