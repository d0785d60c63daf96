# customers/commands.py
"""
Command layer for customers.

Every write invalidates the company's customer list and dashboard
caches.
"""

import logging

from django.db import transaction

from accounts.authz import ActorContext, require
from accounts.commands import CommandResult
from billing.plans import CUSTOMERS, has_reached_limit, limit_failure
from customers.models import Customer
from ops import cache as ops_cache

logger = logging.getLogger(__name__)

CUSTOMER_FIELDS = {
    "name", "email", "phone_number", "address", "city", "postcode", "state", "country",
    "tin", "brn", "id_type", "id_value", "sst_registration_number", "notes",
}

DUPLICATE_PHONE_MESSAGE = "A customer with this phone number already exists"


def _invalidate(company_id):
    ops_cache.invalidate(company_id, ops_cache.CUSTOMERS, ops_cache.DASHBOARD)


def _duplicate_phone(company, phone_number, exclude_id=None) -> bool:
    if not phone_number:
        return False
    qs = Customer.objects.filter(company=company, phone_number=phone_number)
    if exclude_id:
        qs = qs.exclude(pk=exclude_id)
    return qs.exists()


def can_delete_customer(actor, customer) -> tuple[bool, str]:
    if customer.company_id != actor.company.id:
        return False, "Cross-company action denied."
    if customer.invoices.exists():
        return False, "Cannot delete a customer with invoices. Delete or cancel the invoices first."
    return True, ""


@transaction.atomic
def create_customer(actor: ActorContext, **data) -> CommandResult:
    """
    Create a customer.

    Fails with limit_reached on the FREE plan's customer cap and with
    duplicate when the phone number is already used in the company.
    """
    require(actor, "customers.manage")

    reached, count, limit = has_reached_limit(actor.company, CUSTOMERS)
    if reached:
        return limit_failure(CUSTOMERS, count, limit)

    fields = {k: v for k, v in data.items() if k in CUSTOMER_FIELDS}
    fields["phone_number"] = (fields.get("phone_number") or "").strip()

    if _duplicate_phone(actor.company, fields["phone_number"]):
        return CommandResult.fail(DUPLICATE_PHONE_MESSAGE, code="duplicate", duplicatePhone=True)

    customer = Customer.objects.create(company=actor.company, **fields)
    _invalidate(actor.company.id)
    logger.info("Customer created", extra={"company_id": actor.company.id, "customer_id": customer.id})
    return CommandResult.ok(customer)


@transaction.atomic
def update_customer(actor: ActorContext, customer_id: int, **data) -> CommandResult:
    require(actor, "customers.manage")

    customer = Customer.objects.select_for_update().filter(company=actor.company, pk=customer_id).first()
    if customer is None:
        return CommandResult.fail("Customer not found", code="not_found")

    if "phone_number" in data:
        data["phone_number"] = (data["phone_number"] or "").strip()
        if data["phone_number"] != customer.phone_number and _duplicate_phone(
            actor.company, data["phone_number"], exclude_id=customer.id,
        ):
            return CommandResult.fail(DUPLICATE_PHONE_MESSAGE, code="duplicate", duplicatePhone=True)

    for field, value in data.items():
        if field in CUSTOMER_FIELDS:
            setattr(customer, field, value if value is not None else "")
    customer.save()

    _invalidate(actor.company.id)
    return CommandResult.ok(customer)


@transaction.atomic
def delete_customer(actor: ActorContext, customer_id: int) -> CommandResult:
    require(actor, "customers.manage")

    customer = Customer.objects.filter(company=actor.company, pk=customer_id).first()
    if customer is None:
        return CommandResult.fail("Customer not found", code="not_found")

    allowed, reason = can_delete_customer(actor, customer)
    if not allowed:
        return CommandResult.fail(reason)

    customer.delete()
    _invalidate(actor.company.id)
    logger.info("Customer deleted", extra={"company_id": actor.company.id, "customer_id": customer_id})
    return CommandResult.ok({"deleted": True})
