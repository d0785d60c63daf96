# tests/test_dashboard.py
"""
Dashboard overview tests.
"""

import datetime
from decimal import Decimal

import pytest
from django.utils import timezone

from dashboard.services import compute_overview, growth_percent, month_start
from invoicing.models import Invoice, InvoiceItem


def _invoice(company, customer, number, status, total, paid="0.00", issue_date=None, product=None, quantity="1"):
    issue_date = issue_date or timezone.localdate()
    invoice = Invoice.objects.create(
        company=company,
        invoice_number=number,
        customer=customer,
        issue_date=issue_date,
        due_date=issue_date + datetime.timedelta(days=30),
        status=status,
        subtotal=Decimal(total),
        total=Decimal(total),
        paid_amount=Decimal(paid),
    )
    if product is not None:
        InvoiceItem.objects.create(
            invoice=invoice,
            product=product,
            description=product.name,
            quantity=Decimal(quantity),
            unit_price=product.price,
            amount=Decimal(quantity) * product.price,
        )
    return invoice


@pytest.mark.parametrize("day,offset,expected", [
    (datetime.date(2024, 3, 15), 0, datetime.date(2024, 3, 1)),
    (datetime.date(2024, 3, 15), -1, datetime.date(2024, 2, 1)),
    (datetime.date(2024, 1, 31), -1, datetime.date(2023, 12, 1)),
    (datetime.date(2024, 12, 5), 1, datetime.date(2025, 1, 1)),
    (datetime.date(2024, 3, 15), -11, datetime.date(2023, 4, 1)),
])
def test_month_start(day, offset, expected):
    assert month_start(day, offset) == expected


@pytest.mark.parametrize("current,previous,expected", [
    (0, 0, 0.0),
    (5, 0, 100.0),
    (15, 10, 50.0),
    (10, 15, -33.3),
])
def test_growth_percent(current, previous, expected):
    assert growth_percent(current, previous) == expected


@pytest.mark.django_db
class TestOverview:
    def test_empty_company(self, company):
        data = compute_overview(company)
        assert data["totals"]["invoices"] == 0
        assert data["invoiceStats"]["outstanding"] == Decimal("0.00")
        assert len(data["charts"]["monthlyRevenue"]) == 12
        assert all(month["revenue"] == Decimal("0.00") for month in data["charts"]["monthlyRevenue"])
        assert data["growth"]["percent"]["invoices"] == 0.0

    def test_invoice_stats(self, company, customer, product):
        _invoice(company, customer, "INV-1", Invoice.Status.SENT, "100.00", product=product, quantity="8")
        _invoice(company, customer, "INV-2", Invoice.Status.PARTIAL, "50.00", paid="20.00")
        _invoice(company, customer, "INV-3", Invoice.Status.OVERDUE, "40.00")
        _invoice(company, customer, "INV-4", Invoice.Status.PAID, "70.00", paid="70.00")
        _invoice(company, customer, "INV-5", Invoice.Status.CANCELLED, "30.00")

        stats = compute_overview(company)["invoiceStats"]
        assert stats["amount"] == Decimal("290.00")
        assert stats["paid"] == Decimal("90.00")
        assert stats["pending"] == Decimal("130.00")
        assert stats["overdue"] == Decimal("40.00")
        assert stats["outstanding"] == Decimal("170.00")
        assert len(stats["recent"]) == 5
        assert stats["recent"][0]["number"] == "INV-5"

    def test_top_products_and_inventory_value(self, company, customer, product):
        _invoice(company, customer, "INV-1", Invoice.Status.SENT, "100.00", product=product, quantity="8")
        data = compute_overview(company)
        assert data["charts"]["topProducts"] == [{"name": product.name, "revenue": Decimal("100.00")}]
        assert data["totals"]["inventoryValue"] == Decimal("250.00")

    def test_monthly_chart_and_growth(self, company, customer):
        today = datetime.date(2024, 3, 15)
        _invoice(company, customer, "INV-1", Invoice.Status.PAID, "100.00", paid="100.00", issue_date=datetime.date(2024, 3, 2))
        _invoice(company, customer, "INV-2", Invoice.Status.SENT, "50.00", issue_date=datetime.date(2024, 2, 10))
        _invoice(company, customer, "INV-3", Invoice.Status.SENT, "70.00", issue_date=datetime.date(2023, 1, 10))

        data = compute_overview(company, today=today)
        chart = data["charts"]["monthlyRevenue"]
        assert chart[0]["month"] == "Apr 2023"
        assert chart[-1] == {
            "month": "Mar 2024",
            "revenue": Decimal("100.00"),
            "paid": Decimal("100.00"),
            "pending": Decimal("0.00"),
        }
        assert chart[-2]["pending"] == Decimal("50.00")

        growth = data["growth"]
        assert growth["currentMonth"]["revenue"] == Decimal("100.00")
        assert growth["previousMonth"]["revenue"] == Decimal("50.00")
        assert growth["percent"]["revenue"] == 100.0

    def test_other_companies_are_excluded(self, company, second_company, customer):
        from customers.models import Customer

        other_customer = Customer.objects.create(company=second_company, name="Other")
        _invoice(second_company, other_customer, "INV-1", Invoice.Status.SENT, "999.00")
        assert compute_overview(company)["totals"]["invoices"] == 0


@pytest.mark.django_db
class TestDashboardAPI:
    def test_overview(self, auth_client):
        response = auth_client.get("/api/dashboard/")
        assert response.status_code == 200
        assert set(response.data) == {"totals", "invoiceStats", "charts", "growth"}
        assert "Server-Timing" in response

    def test_cached_until_invalidated(self, auth_client, actor, customer, service_product):
        from invoicing.commands import create_invoice

        assert auth_client.get("/api/dashboard/").data["totals"]["invoices"] == 0
        today = timezone.localdate()
        create_invoice(
            actor,
            customer_id=customer.id,
            issue_date=today,
            due_date=today,
            items=[{"product_id": service_product.id, "quantity": Decimal("1"), "unit_price": Decimal("5.00")}],
        )
        assert auth_client.get("/api/dashboard/").data["totals"]["invoices"] == 1
