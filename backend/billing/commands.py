# billing/commands.py
"""
Command layer for subscriptions.

Stripe failures are logged and reported as a plain failure; the
company row is only changed by beta_upgrade, cancel and the webhook.
"""

import logging

import stripe
from django.conf import settings
from django.db import transaction

from accounts.authz import ActorContext, require
from accounts.commands import CommandResult
from accounts.models import Company

from . import stripe_service
from .plans import TRIAL_DURATION_DAYS, start_trial

logger = logging.getLogger(__name__)


def default_return_url() -> str:
    return f"{settings.FRONTEND_URL.rstrip('/')}/settings"


@transaction.atomic
def beta_upgrade(actor: ActorContext) -> CommandResult:
    """FREE -> TRIAL for 100 days. Companies already on TRIAL or ACTIVE are left alone."""
    require(actor, "billing.manage")

    company = Company.objects.select_for_update().get(pk=actor.company.pk)
    if company.subscription_status in (Company.SubscriptionStatus.TRIAL, Company.SubscriptionStatus.ACTIVE):
        return CommandResult.ok({
            "company": company,
            "message": "Beta features are already activated",
        })

    start_trial(company)
    return CommandResult.ok({
        "company": company,
        "message": (
            f"Successfully activated beta features for {TRIAL_DURATION_DAYS} days "
            "with unlimited customers and invoices"
        ),
    })


def start_checkout(actor: ActorContext, return_url: str = None) -> CommandResult:
    """Create a subscription checkout session; the Stripe customer is created on first use."""
    require(actor, "billing.manage")
    company = actor.company
    return_url = return_url or default_return_url()

    try:
        if not company.stripe_customer_id:
            company.stripe_customer_id = stripe_service.create_customer(company, actor.user.email)
            company.save(update_fields=["stripe_customer_id", "updated_at"])
        url = stripe_service.create_checkout_session(company.stripe_customer_id, return_url, company.id)
    except stripe_service.StripeNotConfigured as exc:
        return CommandResult.fail(str(exc), code="unavailable")
    except stripe.StripeError as exc:
        logger.error("Stripe checkout failed", extra={"company_id": company.id, "error": str(exc)})
        return CommandResult.fail("Failed to create checkout session")

    logger.info("Checkout session created", extra={"company_id": company.id})
    return CommandResult.ok({"url": url})


def open_portal(actor: ActorContext, return_url: str = None) -> CommandResult:
    require(actor, "billing.manage")
    company = actor.company
    if not company.stripe_customer_id:
        return CommandResult.fail("No subscription found")

    try:
        url = stripe_service.create_portal_session(company.stripe_customer_id, return_url or default_return_url())
    except stripe_service.StripeNotConfigured as exc:
        return CommandResult.fail(str(exc), code="unavailable")
    except stripe.StripeError as exc:
        logger.error("Stripe portal session failed", extra={"company_id": company.id, "error": str(exc)})
        return CommandResult.fail("Failed to create customer portal session")
    return CommandResult.ok({"url": url})


@transaction.atomic
def cancel(actor: ActorContext) -> CommandResult:
    """Cancel the Stripe subscription now and drop the company to FREE."""
    require(actor, "billing.manage")

    company = Company.objects.select_for_update().get(pk=actor.company.pk)
    if not company.stripe_subscription_id:
        return CommandResult.fail("No active subscription to cancel")

    try:
        stripe_service.cancel_subscription(company.stripe_subscription_id)
    except stripe_service.StripeNotConfigured as exc:
        return CommandResult.fail(str(exc), code="unavailable")
    except stripe.StripeError as exc:
        logger.error("Stripe cancellation failed", extra={"company_id": company.id, "error": str(exc)})
        return CommandResult.fail("Failed to cancel subscription")

    downgrade_to_free(company)
    return CommandResult.ok(company)


def downgrade_to_free(company: Company) -> Company:
    company.subscription_status = Company.SubscriptionStatus.FREE
    company.stripe_subscription_id = ""
    company.stripe_price_id = ""
    company.current_period_end = None
    company.save(update_fields=[
        "subscription_status", "stripe_subscription_id", "stripe_price_id", "current_period_end", "updated_at",
    ])
    logger.info("Company downgraded to FREE", extra={"company_id": company.id})
    return company
