# billing/tasks.py
"""
Celery tasks for billing.

expire_trials runs every 6 hours from CELERY_BEAT_SCHEDULE.
"""

import logging

from celery import shared_task
from django.utils import timezone

logger = logging.getLogger(__name__)


def expire_trials_now(now=None) -> int:
    """Downgrade TRIAL companies whose trial has ended. Returns the count."""
    from accounts.models import Company

    now = now or timezone.now()
    expired = Company.objects.filter(
        subscription_status=Company.SubscriptionStatus.TRIAL,
        trial_end_date__lt=now,
    )
    return expired.update(subscription_status=Company.SubscriptionStatus.FREE, updated_at=now)


@shared_task(
    bind=True,
    max_retries=3,
    default_retry_delay=60,
    autoretry_for=(Exception,),
    retry_backoff=True,
)
def expire_trials(self) -> dict:
    updated = expire_trials_now()
    if updated:
        logger.info("Expired trials downgraded", extra={"count": updated})
    return {"updated": updated}
