# billing/webhooks.py
"""
Stripe webhook handling.

Handled events:
- checkout.session.completed     -> ACTIVE, subscription/price ids, period end
- invoice.payment_succeeded      -> ACTIVE, period end
- customer.subscription.deleted  -> FREE, subscription fields cleared

Anything else is acknowledged and logged. Events for customers or
subscriptions we don't know are acknowledged too, so Stripe stops
retrying them.
"""

import datetime
import logging

from django.db import transaction

from accounts.models import Company
from ops.metrics import STRIPE_WEBHOOKS

from . import stripe_service
from .commands import downgrade_to_free

logger = logging.getLogger(__name__)

HANDLED = "handled"
IGNORED = "ignored"
UNMATCHED = "unmatched"


def _timestamp(value):
    if not value:
        return None
    return datetime.datetime.fromtimestamp(int(value), tz=datetime.timezone.utc)


def _first_item(subscription):
    items = subscription.get("items") or {}
    data = items.get("data") or []
    return data[0] if data else {}


def period_end(subscription):
    """Newer API versions report the period on the subscription item."""
    return _timestamp(subscription.get("current_period_end") or _first_item(subscription).get("current_period_end"))


def price_id(subscription) -> str:
    price = _first_item(subscription).get("price") or {}
    return price.get("id", "")


def _company_by_customer(customer_id, reference=None):
    company = None
    if customer_id:
        company = Company.objects.select_for_update().filter(stripe_customer_id=customer_id).first()
    if company is None and reference and str(reference).isdigit():
        company = Company.objects.select_for_update().filter(pk=int(reference)).first()
    return company


def _checkout_completed(session) -> str:
    subscription_id = session.get("subscription")
    customer_id = session.get("customer")
    if not subscription_id or not customer_id:
        return IGNORED

    company = _company_by_customer(customer_id, session.get("client_reference_id"))
    if company is None:
        return UNMATCHED

    subscription = stripe_service.retrieve_subscription(subscription_id)
    company.subscription_status = Company.SubscriptionStatus.ACTIVE
    company.stripe_customer_id = customer_id
    company.stripe_subscription_id = subscription["id"]
    company.stripe_price_id = price_id(subscription)
    company.current_period_end = period_end(subscription)
    company.save(update_fields=[
        "subscription_status", "stripe_customer_id", "stripe_subscription_id",
        "stripe_price_id", "current_period_end", "updated_at",
    ])
    logger.info("Subscription activated", extra={"company_id": company.id, "stripe_subscription_id": subscription["id"]})
    return HANDLED


def _payment_succeeded(invoice) -> str:
    subscription_id = invoice.get("subscription")
    customer_id = invoice.get("customer")
    if not subscription_id or not customer_id:
        return IGNORED

    company = _company_by_customer(customer_id)
    if company is None:
        return UNMATCHED

    subscription = stripe_service.retrieve_subscription(subscription_id)
    company.subscription_status = Company.SubscriptionStatus.ACTIVE
    company.current_period_end = period_end(subscription)
    company.save(update_fields=["subscription_status", "current_period_end", "updated_at"])
    logger.info("Subscription renewed", extra={"company_id": company.id})
    return HANDLED


def _subscription_deleted(subscription) -> str:
    company = Company.objects.select_for_update().filter(stripe_subscription_id=subscription.get("id")).first()
    if company is None:
        return UNMATCHED
    downgrade_to_free(company)
    return HANDLED


HANDLERS = {
    "checkout.session.completed": _checkout_completed,
    "invoice.payment_succeeded": _payment_succeeded,
    "customer.subscription.deleted": _subscription_deleted,
}


@transaction.atomic
def handle_event(event) -> str:
    """Apply a verified event. Returns the outcome recorded in metrics."""
    event_type = event["type"]
    handler = HANDLERS.get(event_type)
    if handler is None:
        logger.info("Unhandled Stripe event type", extra={"event_type": event_type})
        outcome = IGNORED
    else:
        outcome = handler(event["data"]["object"])
        if outcome == UNMATCHED:
            logger.warning("Stripe event matched no company", extra={"event_type": event_type})

    STRIPE_WEBHOOKS.labels(event_type=event_type, outcome=outcome).inc()
    return outcome
