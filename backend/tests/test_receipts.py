# tests/test_receipts.py
"""
Receipt tests. Receipts are records only: no stock or ledger effects.
"""

import re
from decimal import Decimal

import pytest

from accounting.models import JournalEntry
from receipts.commands import create_receipt, delete_receipt, generate_receipt_number
from receipts.models import WALK_IN_CUSTOMER, Receipt


def _items(product, quantity="2"):
    return [{"product_id": product.id, "quantity": Decimal(quantity), "unit_price": Decimal("12.50")}]


@pytest.mark.django_db
class TestCreateReceipt:
    def test_total_defaults_to_sum_of_items(self, actor, product):
        result = create_receipt(actor, items=_items(product, "3"))
        assert result.success, result.error
        receipt = result.data
        assert receipt.total == Decimal("37.50")
        assert receipt.customer_name == WALK_IN_CUSTOMER
        assert receipt.items.get().description == product.name
        assert re.fullmatch(r"RCT-[0-9A-F]{6}", receipt.receipt_number)

    def test_explicit_total_wins(self, actor, product):
        receipt = create_receipt(actor, items=_items(product), total=Decimal("20.00")).data
        assert receipt.total == Decimal("20.00")

    def test_customer_details_are_copied(self, actor, customer, product):
        receipt = create_receipt(actor, items=_items(product), customer_id=customer.id).data
        assert receipt.customer_name == customer.name
        assert receipt.customer_phone == customer.phone_number

    def test_no_stock_or_ledger_effects(self, actor, chart, product):
        create_receipt(actor, items=_items(product, "5"))
        product.refresh_from_db()
        assert product.quantity == Decimal("20")
        assert not JournalEntry.objects.filter(company=actor.company).exists()

    def test_requires_items(self, actor):
        result = create_receipt(actor, items=[])
        assert not result.success
        assert result.error == "Receipt must contain at least one item"

    def test_duplicate_number(self, actor, product):
        create_receipt(actor, items=_items(product), receipt_number="RCT-AAAAAA")
        result = create_receipt(actor, items=_items(product), receipt_number="RCT-AAAAAA")
        assert not result.success
        assert result.error_code == "duplicate"

    def test_unknown_customer(self, actor, product):
        result = create_receipt(actor, items=_items(product), customer_id=999999)
        assert not result.success
        assert result.error == "Customer not found."

    def test_generated_numbers_are_unique(self, company):
        numbers = {generate_receipt_number(company) for _ in range(20)}
        assert len(numbers) == 20


@pytest.mark.django_db
def test_delete_receipt(actor, product):
    receipt = create_receipt(actor, items=_items(product)).data
    assert delete_receipt(actor, receipt.id).success
    assert not Receipt.objects.filter(pk=receipt.id).exists()

    result = delete_receipt(actor, receipt.id)
    assert result.error_code == "not_found"


@pytest.mark.django_db
class TestReceiptAPI:
    def test_create_and_list(self, auth_client, product):
        response = auth_client.post(
            "/api/receipts/",
            {"items": [{"product_id": product.id, "quantity": "1", "unit_price": "12.50"}], "payment_method": "CASH"},
            format="json",
        )
        assert response.status_code == 201, response.data
        assert response.data["total"] == "12.50"

        listing = auth_client.get("/api/receipts/")
        assert listing.status_code == 200
        assert listing.data["totalCount"] == 1

    def test_invoice_filter_must_be_numeric(self, auth_client):
        response = auth_client.get("/api/receipts/?invoice=abc")
        assert response.status_code == 400

    def test_empty_items_rejected(self, auth_client):
        response = auth_client.post("/api/receipts/", {"items": []}, format="json")
        assert response.status_code == 400

    def test_other_company_receipt_is_hidden(self, auth_client, second_company):
        other = Receipt.objects.create(company=second_company, receipt_number="RCT-000001", total=Decimal("1.00"))
        assert auth_client.get(f"/api/receipts/{other.id}/").status_code == 404
