# invoicing/tasks.py
"""
Celery tasks for invoicing.

mark_overdue_invoices runs hourly from CELERY_BEAT_SCHEDULE.
"""

import logging

from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task(
    bind=True,
    max_retries=3,
    default_retry_delay=60,
    autoretry_for=(Exception,),
    retry_backoff=True,
)
def mark_overdue_invoices(self) -> dict:
    """Move SENT/PARTIAL invoices past their due date to OVERDUE."""
    from invoicing.commands import mark_overdue

    updated = mark_overdue()
    if updated:
        logger.info("Invoices marked overdue", extra={"count": updated})
    return {"updated": updated}
