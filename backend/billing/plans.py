# billing/plans.py
"""
Subscription plans and usage limits.

FREE companies are capped; TRIAL and ACTIVE companies are not. A TRIAL
whose end date has passed counts as FREE even before the periodic task
(billing.tasks.expire_trials) downgrades it.
"""

import logging
from datetime import timedelta

from django.utils import timezone

from accounts.models import Company

logger = logging.getLogger(__name__)

TRIAL_DURATION_DAYS = 100

CUSTOMERS = "customers"
INVOICES_PER_MONTH = "invoicesPerMonth"

PLAN_FREE = "FREE"
PLAN_TRIAL = "TRIAL"
PLAN_PREMIUM = "PREMIUM"

# None means unlimited
PLAN_LIMITS = {
    PLAN_FREE: {CUSTOMERS: 5, INVOICES_PER_MONTH: 15},
    PLAN_TRIAL: {CUSTOMERS: None, INVOICES_PER_MONTH: None},
    PLAN_PREMIUM: {CUSTOMERS: None, INVOICES_PER_MONTH: None},
}

LIMIT_MESSAGES = {
    CUSTOMERS: (
        "You have reached your customer limit. Please upgrade to premium "
        "or delete existing customers to proceed."
    ),
    INVOICES_PER_MONTH: (
        "You have reached your monthly invoice limit. Please upgrade to premium "
        "to create more invoices this month."
    ),
}


def trial_end_for(start=None):
    return (start or timezone.now()) + timedelta(days=TRIAL_DURATION_DAYS)


def has_trial_expired(company: Company, now=None) -> bool:
    if not company.trial_end_date:
        return False
    return (now or timezone.now()) > company.trial_end_date


def start_trial(company: Company, now=None) -> Company:
    now = now or timezone.now()
    company.subscription_status = Company.SubscriptionStatus.TRIAL
    company.trial_start_date = now
    company.trial_end_date = trial_end_for(now)
    company.save(update_fields=["subscription_status", "trial_start_date", "trial_end_date", "updated_at"])
    logger.info(
        "Trial started",
        extra={"company_id": company.id, "trial_end_date": company.trial_end_date.isoformat()},
    )
    return company


def plan_for(company: Company, now=None) -> str:
    status = company.subscription_status
    if status == Company.SubscriptionStatus.ACTIVE:
        return PLAN_PREMIUM
    if status == Company.SubscriptionStatus.TRIAL and not has_trial_expired(company, now):
        return PLAN_TRIAL
    return PLAN_FREE


def current_count(company: Company, resource: str, now=None) -> int:
    if resource == CUSTOMERS:
        from customers.models import Customer

        return Customer.objects.filter(company=company).count()
    if resource == INVOICES_PER_MONTH:
        from invoicing.models import count_invoices_created_this_month

        return count_invoices_created_this_month(company, now)
    raise ValueError(f"Unknown plan resource: {resource}")


def has_reached_limit(company: Company, resource: str, now=None) -> tuple[bool, int, int | None]:
    """
    Returns (reached, current_count, limit). ``limit`` is None when the
    plan is unlimited, in which case the count is not computed.
    """
    limit = PLAN_LIMITS[plan_for(company, now)][resource]
    if limit is None:
        return False, 0, None
    count = current_count(company, resource, now)
    return count >= limit, count, limit


def limit_failure(resource: str, count: int, limit: int):
    """CommandResult for a reached limit (403 with limitReached)."""
    from accounts.commands import CommandResult

    return CommandResult.fail(
        LIMIT_MESSAGES[resource],
        code="limit_reached",
        limitReached=True,
        currentCount=count,
        limit=limit,
    )


def usage(company: Company, now=None) -> dict:
    plan = plan_for(company, now)
    limits = PLAN_LIMITS[plan]
    return {
        "plan": plan,
        "customers": {
            "current": current_count(company, CUSTOMERS, now),
            "limit": limits[CUSTOMERS],
        },
        "invoicesPerMonth": {
            "current": current_count(company, INVOICES_PER_MONTH, now),
            "limit": limits[INVOICES_PER_MONTH],
        },
    }


def subscription_status(company: Company, now=None) -> dict:
    now = now or timezone.now()
    days_left = None
    if company.subscription_status == Company.SubscriptionStatus.TRIAL and company.trial_end_date:
        days_left = max((company.trial_end_date - now).days, 0)
    return {
        "status": company.subscription_status,
        "plan": plan_for(company, now),
        "isTrialExpired": has_trial_expired(company, now),
        "trialStartDate": company.trial_start_date,
        "trialEndDate": company.trial_end_date,
        "trialDaysLeft": days_left,
        "currentPeriodEnd": company.current_period_end,
        "hasStripeCustomer": bool(company.stripe_customer_id),
        "usage": usage(company, now),
    }
