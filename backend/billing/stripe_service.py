# billing/stripe_service.py
"""
Stripe calls used by billing.

Only these functions talk to Stripe; commands and the webhook go through
them so tests can patch a single module.
"""

import json
import logging

import stripe
from django.conf import settings

logger = logging.getLogger(__name__)


class StripeNotConfigured(Exception):
    pass


def _client():
    key = settings.STRIPE_SECRET_KEY
    if not key or not key.startswith(("sk_live_", "sk_test_")):
        raise StripeNotConfigured("Stripe is not properly configured")
    stripe.api_key = key
    return stripe


def is_configured() -> bool:
    key = settings.STRIPE_SECRET_KEY
    return bool(key) and key.startswith(("sk_live_", "sk_test_"))


def create_customer(company, email: str) -> str:
    client = _client()
    customer = client.Customer.create(
        email=email,
        name=company.display_name,
        metadata={"company_id": str(company.id)},
    )
    logger.info("Stripe customer created", extra={"company_id": company.id, "stripe_customer_id": customer["id"]})
    return customer["id"]


def create_checkout_session(customer_id: str, return_url: str, company_id: int) -> str:
    """Subscription-mode checkout for the configured price. Returns the hosted URL."""
    client = _client()
    price_id = settings.STRIPE_PRICE_ID
    if not price_id:
        raise StripeNotConfigured("Stripe price is not configured")

    session = client.checkout.Session.create(
        mode="subscription",
        customer=customer_id,
        client_reference_id=str(company_id),
        line_items=[{"price": price_id, "quantity": 1}],
        billing_address_collection="auto",
        payment_method_collection="always",
        success_url=f"{return_url}?success=true&session_id={{CHECKOUT_SESSION_ID}}",
        cancel_url=f"{return_url}?canceled=true",
    )
    return session["url"]


def create_portal_session(customer_id: str, return_url: str) -> str:
    client = _client()
    session = client.billing_portal.Session.create(customer=customer_id, return_url=return_url)
    return session["url"]


def cancel_subscription(subscription_id: str):
    return _client().Subscription.cancel(subscription_id)


def retrieve_subscription(subscription_id: str) -> dict:
    return _client().Subscription.retrieve(subscription_id).to_dict()


def construct_event(payload: bytes, signature: str) -> dict:
    """
    Verify the Stripe-Signature header and decode the event as plain dicts.

    Raises stripe.SignatureVerificationError, or ValueError for a body
    that is not JSON.
    """
    stripe.WebhookSignature.verify_header(
        payload.decode("utf-8"), signature, settings.STRIPE_WEBHOOK_SECRET, stripe.Webhook.DEFAULT_TOLERANCE,
    )
    return json.loads(payload)
