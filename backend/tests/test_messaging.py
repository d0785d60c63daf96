# tests/test_messaging.py
"""
WhatsApp link tests: number normalization, message wording, link endpoints.
"""

from datetime import timedelta
from decimal import Decimal
from urllib.parse import parse_qs, urlparse

import pytest
from django.utils import timezone

from invoicing.models import Invoice
from messaging.whatsapp import (
    customer_message,
    display_number,
    follow_up_message,
    format_money,
    format_phone_number,
    invoice_message,
    is_valid_whatsapp_number,
    whatsapp_url,
)


@pytest.mark.parametrize("raw,expected", [
    ("012-345 6789", "60123456789"),
    ("+60 12 345 6789", "60123456789"),
    ("60123456789", "60123456789"),
    ("123456789", "123456789"),
    ("", ""),
])
def test_format_phone_number(raw, expected):
    assert format_phone_number(raw) == expected


def test_number_validity():
    assert is_valid_whatsapp_number("012-345 6789")
    assert not is_valid_whatsapp_number("12345")
    assert not is_valid_whatsapp_number("")
    assert display_number("0123456789") == "+60123456789"


def test_format_money():
    assert format_money(Decimal("1234.5")) == "RM 1,234.50"
    assert format_money(None) == "RM 0.00"


def test_invoice_message():
    message = invoice_message("Siti", "INV-20240105-0001", Decimal("53.00"), "05/02/2024", "Kedai Ali")
    assert message.startswith("Hello Siti! 👋")
    assert "Your invoice INV-20240105-0001 from Kedai Ali is ready." in message
    assert "💰 Total Amount: RM 53.00" in message
    assert "📅 Due Date: 05/02/2024" in message


def test_follow_up_kinds():
    gentle = follow_up_message("Siti", "INV-1", Decimal("10"), "01/01/2024", 3)
    urgent = follow_up_message("Siti", "INV-1", Decimal("10"), "01/01/2024", 3, kind="urgent")
    final = follow_up_message("Siti", "INV-1", Decimal("10"), "01/01/2024", 3, kind="final")
    assert "friendly reminder" in gentle
    assert "⏰ Days Overdue: 3" in gentle
    assert "URGENT: Invoice INV-1 is now 3 days overdue." in urgent
    assert "FINAL NOTICE" in final
    assert follow_up_message("Siti", "INV-1", Decimal("10"), "01/01/2024", 3, kind="other") == gentle


def test_customer_message_defaults():
    assert "Greetings from Our Company!" in customer_message("Siti")
    assert customer_message("Siti", "Kedai Ali", "See you Friday").endswith("Best regards,\nKedai Ali")


def test_whatsapp_url_encodes_like_encode_uri_component():
    url = whatsapp_url("012-345 6789", "Hi (there)! 50% off")
    assert url.startswith("https://api.whatsapp.com/send?phone=60123456789&text=")
    assert "Hi%20(there)!%2050%25%20off" in url


# =============================================================================
# API
# =============================================================================

@pytest.fixture
def overdue_invoice(company, customer):
    today = timezone.localdate()
    return Invoice.objects.create(
        company=company,
        invoice_number="INV-20240105-0001",
        customer=customer,
        issue_date=today - timedelta(days=40),
        due_date=today - timedelta(days=10),
        status=Invoice.Status.OVERDUE,
        subtotal=Decimal("100.00"),
        total=Decimal("100.00"),
        paid_amount=Decimal("40.00"),
    )


def _text(url):
    return parse_qs(urlparse(url).query)["text"][0]


@pytest.mark.django_db
class TestWhatsAppAPI:
    def test_invoice_link(self, auth_client, overdue_invoice, customer):
        response = auth_client.get(f"/api/messaging/whatsapp/invoices/{overdue_invoice.id}/")
        assert response.status_code == 200
        assert response.data["phone"] == "+60198765432"
        assert "RM 100.00" in response.data["message"]
        assert _text(response.data["url"]) == response.data["message"]

    def test_follow_up_uses_balance_and_days_overdue(self, auth_client, overdue_invoice):
        response = auth_client.get(
            f"/api/messaging/whatsapp/invoices/{overdue_invoice.id}/?type=follow_up&kind=urgent",
        )
        assert response.status_code == 200
        assert "is now 10 days overdue" in response.data["message"]
        assert "RM 60.00" in response.data["message"]

    def test_phone_override(self, auth_client, overdue_invoice):
        response = auth_client.get(f"/api/messaging/whatsapp/invoices/{overdue_invoice.id}/?phone=0111234567")
        assert response.data["phone"] == "+60111234567"

    def test_missing_phone(self, auth_client, overdue_invoice, customer):
        customer.phone_number = ""
        customer.save()
        response = auth_client.get(f"/api/messaging/whatsapp/invoices/{overdue_invoice.id}/")
        assert response.status_code == 400
        assert response.data["detail"] == "A valid WhatsApp phone number is required."

    def test_customer_link(self, auth_client, customer):
        response = auth_client.post(
            f"/api/messaging/whatsapp/customers/{customer.id}/", {"message": "Stock is back!"}, format="json",
        )
        assert response.status_code == 200
        assert "Stock is back!" in response.data["message"]

    def test_viewer_cannot_send(self, viewer_client, overdue_invoice):
        response = viewer_client.get(f"/api/messaging/whatsapp/invoices/{overdue_invoice.id}/")
        assert response.status_code == 403
