# accounts/email_service.py
"""
Email service for Invo authentication.

Handles:
- TAC (login code) delivery for users that have a real email address
- Welcome email after registration

All emails are sent from DEFAULT_FROM_EMAIL. In production the backend is
postmarker's Django backend; in development the console backend.
"""

import logging

from django.conf import settings
from django.core.mail import send_mail

logger = logging.getLogger(__name__)

PLACEHOLDER_EMAIL_DOMAIN = "phone.invo.local"


def has_deliverable_email(user) -> bool:
    return bool(user.email) and not user.email.endswith("@" + PLACEHOLDER_EMAIL_DOMAIN)


def send_tac_email(user, code: str) -> bool:
    """
    Send a login code to the user's email.

    Args:
        user: User model instance
        code: Raw 6-digit code (never stored)

    Returns:
        True if email was sent successfully, False otherwise
    """
    message = (
        f"Hi {user.name or 'there'},\n\n"
        f"Your Invo login code is {code}. "
        f"It expires in {settings.TAC_TTL_MINUTES} minutes.\n\n"
        "If you did not request this code you can ignore this email."
    )

    try:
        send_mail(
            subject="Your Invo login code",
            message=message,
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[user.email],
            fail_silently=False,
        )
        logger.info("TAC email sent", extra={"user_id": user.id})
        return True
    except Exception as e:
        logger.error("Failed to send TAC email", extra={"user_id": user.id, "error": str(e)})
        return False


def send_welcome_email(user, company) -> bool:
    """Welcome email after signup. Skipped for phone-only users."""
    if not has_deliverable_email(user):
        return False

    message = (
        f"Hi {user.name},\n\n"
        f"Welcome to Invo! {company.name} is ready, and your free trial is active.\n"
        f"Sign in at {settings.FRONTEND_URL}/login to send your first invoice."
    )

    try:
        send_mail(
            subject="Welcome to Invo",
            message=message,
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[user.email],
            fail_silently=False,
        )
        logger.info("Welcome email sent", extra={"user_id": user.id})
        return True
    except Exception as e:
        logger.error("Failed to send welcome email", extra={"user_id": user.id, "error": str(e)})
        return False
