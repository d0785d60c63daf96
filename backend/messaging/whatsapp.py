# messaging/whatsapp.py
"""
WhatsApp deep links with pre-filled messages.

Links use https://api.whatsapp.com/send?phone={number}&text={message}; the
user's own WhatsApp sends the message, nothing is delivered server side.
Numbers without a country code are treated as Malaysian.
"""

import re
from decimal import Decimal
from urllib.parse import quote

WHATSAPP_SEND_URL = "https://api.whatsapp.com/send"
DEFAULT_COMPANY_NAME = "Our Company"
DEFAULT_CURRENCY = "RM"

FOLLOW_UP_TYPES = ("gentle", "urgent", "final")

_VALID_NUMBER_RE = re.compile(r"^\d{10,15}$")
# Characters encodeURIComponent leaves unescaped
_URL_SAFE = "!~*'()"


def format_phone_number(phone_number: str) -> str:
    """
    Normalize a phone number to international digits without "+".

    "012-345 6789" -> "60123456789"; "+60 12 345 6789" -> "60123456789"
    """
    if not phone_number:
        return ""

    cleaned = re.sub(r"[^\d+]", "", phone_number)
    if cleaned.startswith("+"):
        cleaned = cleaned[1:]
    cleaned = cleaned.replace("+", "")

    if cleaned.startswith("0"):
        cleaned = "60" + cleaned[1:]

    if 10 <= len(cleaned) <= 11 and not cleaned.startswith("60"):
        cleaned = "60" + cleaned

    return cleaned


def is_valid_whatsapp_number(phone_number: str) -> bool:
    if not phone_number:
        return False
    return bool(_VALID_NUMBER_RE.match(format_phone_number(phone_number)))


def display_number(phone_number: str) -> str:
    if not phone_number:
        return ""
    return f"+{format_phone_number(phone_number)}"


def format_money(amount, currency: str = DEFAULT_CURRENCY) -> str:
    return f"{currency} {Decimal(amount or 0):,.2f}"


# =============================================================================
# Message builders
# =============================================================================

def invoice_message(customer_name, invoice_number, total_amount, due_date, company_name=None, currency=None) -> str:
    company_name = company_name or DEFAULT_COMPANY_NAME
    currency = currency or DEFAULT_CURRENCY
    return (
        f"Hello {customer_name}! 👋\n\n"
        f"Your invoice {invoice_number} from {company_name} is ready.\n\n"
        f"💰 Total Amount: {format_money(total_amount, currency)}\n"
        f"📅 Due Date: {due_date}\n\n"
        "Please review the invoice details and arrange payment by the due date.\n\n"
        "Thank you for your business! 🙏"
    )


def receipt_message(customer_name, reference, total_amount, company_name=None, currency=None) -> str:
    company_name = company_name or DEFAULT_COMPANY_NAME
    currency = currency or DEFAULT_CURRENCY
    return (
        f"Hello {customer_name}! 👋\n\n"
        "Thank you for your payment! ✅\n\n"
        f"📄 Invoice: {reference}\n"
        f"💰 Amount Paid: {format_money(total_amount, currency)}\n"
        f"🏢 From: {company_name}\n\n"
        "Your payment has been received and processed successfully.\n\n"
        "We appreciate your business! 🙏"
    )


def follow_up_message(
    customer_name,
    invoice_number,
    total_amount,
    due_date,
    days_overdue,
    kind="gentle",
    company_name=None,
    currency=None,
) -> str:
    """Payment reminder. Unknown kinds fall back to the gentle wording."""
    currency = currency or DEFAULT_CURRENCY
    amount = format_money(total_amount, currency)

    if kind == "urgent":
        return (
            f"Hello {customer_name}! ⚠️\n\n"
            f"URGENT: Invoice {invoice_number} is now {days_overdue} days overdue.\n\n"
            f"💰 Outstanding Amount: {amount}\n"
            f"📅 Original Due Date: {due_date}\n\n"
            "Please arrange payment as soon as possible to avoid any service interruption.\n\n"
            "Contact us immediately if you need to discuss payment arrangements."
        )
    if kind == "final":
        return (
            f"Hello {customer_name}! 🚨\n\n"
            f"FINAL NOTICE: Invoice {invoice_number} is {days_overdue} days overdue.\n\n"
            f"💰 Outstanding Amount: {amount}\n"
            f"📅 Original Due Date: {due_date}\n\n"
            "This is our final reminder before further action is taken. "
            "Please contact us immediately to resolve this matter.\n\n"
            "Immediate payment or contact is required."
        )
    return (
        f"Hello {customer_name}! 👋\n\n"
        f"This is a friendly reminder about invoice {invoice_number}.\n\n"
        f"💰 Amount: {amount}\n"
        f"📅 Due Date: {due_date}\n"
        f"⏰ Days Overdue: {days_overdue}\n\n"
        "We understand that sometimes payments can be delayed. "
        "If you need any assistance or have questions, please let us know.\n\n"
        "Thank you for your attention to this matter! 🙏"
    )


def customer_message(customer_name, company_name=None, custom_message=None) -> str:
    company_name = company_name or DEFAULT_COMPANY_NAME
    if custom_message:
        return f"Hello {customer_name}! 👋\n\n{custom_message}\n\nBest regards,\n{company_name}"
    return (
        f"Hello {customer_name}! 👋\n\n"
        f"Greetings from {company_name}!\n\n"
        "We hope you're doing well. Please let us know if you need any assistance.\n\n"
        "Thank you for being our valued customer! 🙏"
    )


def whatsapp_url(phone_number: str, message: str) -> str:
    text = quote(message, safe=_URL_SAFE)
    return f"{WHATSAPP_SEND_URL}?phone={format_phone_number(phone_number)}&text={text}"
