# tests/test_invoicing.py
"""
Invoice lifecycle tests.

Covers:
- totals (tax on the undiscounted subtotal)
- numbering
- DRAFT -> SENT -> PARTIAL -> PAID with stock and ledger side effects
- cancel / delete unwinding stock and the issue entry
- plan limits for FREE companies
- mark_overdue
- API: create, PATCH actions, PDF and export
"""

from datetime import timedelta
from decimal import Decimal

import pytest
from django.core.exceptions import PermissionDenied
from django.utils import timezone

from accounting.models import JournalEntry
from inventory.models import StockMovement
from invoicing.commands import (
    apply_action,
    cancel_invoice,
    create_invoice,
    delete_invoice,
    mark_overdue,
    mark_sent,
    next_invoice_number,
    record_payment,
    update_draft,
)
from invoicing.models import Invoice
from invoicing.totals import compute_totals


def _items(product, quantity="2"):
    return [{"product_id": product.id, "quantity": Decimal(quantity), "unit_price": Decimal("12.50")}]


@pytest.fixture
def draft(actor, chart, customer, product, invoice_dates):
    issue, due = invoice_dates
    result = create_invoice(
        actor,
        customer_id=customer.id,
        issue_date=issue,
        due_date=due,
        items=_items(product, "4"),
        tax_rate=Decimal("6"),
    )
    assert result.success, result.error
    return result.data


@pytest.fixture
def sent(actor, draft):
    result = mark_sent(actor, draft.id)
    assert result.success, result.error
    return result.data


# =============================================================================
# Totals & numbering
# =============================================================================

class TestTotals:
    def test_tax_is_charged_on_undiscounted_subtotal(self):
        totals = compute_totals(
            [{"quantity": "2", "unit_price": "50.00"}],
            tax_rate=Decimal("6"),
            discount_rate=Decimal("10"),
        )
        assert totals.subtotal == Decimal("100.00")
        assert totals.tax_amount == Decimal("6.00")
        assert totals.discount_amount == Decimal("10.00")
        assert totals.total == Decimal("96.00")

    def test_rounding_is_half_up(self):
        totals = compute_totals([{"quantity": "1", "unit_price": "0.25"}], tax_rate=Decimal("10"))
        assert totals.tax_amount == Decimal("0.03")

    def test_no_items(self):
        totals = compute_totals([])
        assert totals.total == Decimal("0.00")


@pytest.mark.django_db
def test_invoice_numbers_are_dated_and_sequential(company):
    day = timezone.localdate()
    first = next_invoice_number(company, day)
    second = next_invoice_number(company, day)
    assert first == f"INV-{day:%Y%m%d}-0001"
    assert second == f"INV-{day:%Y%m%d}-0002"


@pytest.mark.django_db
def test_numbering_is_per_company(company, second_company):
    day = timezone.localdate()
    next_invoice_number(company, day)
    assert next_invoice_number(second_company, day).endswith("-0001")


# =============================================================================
# Create / edit
# =============================================================================

@pytest.mark.django_db
class TestCreateInvoice:
    def test_draft_has_totals_and_leaves_stock(self, draft, product):
        assert draft.status == Invoice.Status.DRAFT
        assert draft.subtotal == Decimal("50.00")
        assert draft.tax_amount == Decimal("3.00")
        assert draft.total == Decimal("53.00")
        assert draft.items.count() == 1
        product.refresh_from_db()
        assert product.quantity == Decimal("20")
        assert draft.issued_entry is None

    def test_description_defaults_to_product_name(self, draft, product):
        assert draft.items.get().description == product.name

    def test_unknown_customer(self, actor, chart, product, invoice_dates):
        issue, due = invoice_dates
        result = create_invoice(actor, customer_id=999999, issue_date=issue, due_date=due, items=_items(product))
        assert not result.success
        assert result.error == "Customer not found."

    def test_due_date_before_issue_date(self, actor, chart, customer, product, invoice_dates):
        issue, _ = invoice_dates
        result = create_invoice(
            actor, customer_id=customer.id, issue_date=issue, due_date=issue - timedelta(days=1), items=_items(product),
        )
        assert not result.success
        assert "Due date" in result.error

    def test_requires_items(self, actor, chart, customer, invoice_dates):
        issue, due = invoice_dates
        result = create_invoice(actor, customer_id=customer.id, issue_date=issue, due_date=due, items=[])
        assert not result.success
        assert result.error == "At least one item is required."

    def test_product_from_another_company(self, actor, chart, customer, second_company, invoice_dates):
        from inventory.models import Product

        foreign = Product.objects.create(company=second_company, name="Foreign", price=Decimal("1.00"))
        issue, due = invoice_dates
        result = create_invoice(actor, customer_id=customer.id, issue_date=issue, due_date=due, items=_items(foreign))
        assert not result.success
        assert result.error == "Item 1: product not found."

    def test_zero_quantity(self, actor, chart, customer, product, invoice_dates):
        issue, due = invoice_dates
        result = create_invoice(
            actor, customer_id=customer.id, issue_date=issue, due_date=due, items=_items(product, "0"),
        )
        assert not result.success
        assert "quantity must be greater than zero" in result.error

    def test_create_as_sent_issues_immediately(self, actor, chart, customer, product, invoice_dates):
        issue, due = invoice_dates
        result = create_invoice(
            actor,
            customer_id=customer.id,
            issue_date=issue,
            due_date=due,
            items=_items(product, "3"),
            status=Invoice.Status.SENT,
        )
        assert result.success, result.error
        product.refresh_from_db()
        assert product.quantity == Decimal("17")
        assert result.data.stock_committed

    def test_viewer_cannot_create(self, viewer_actor, chart, customer, product, invoice_dates):
        issue, due = invoice_dates
        with pytest.raises(PermissionDenied):
            create_invoice(viewer_actor, customer_id=customer.id, issue_date=issue, due_date=due, items=_items(product))

    def test_update_draft_recomputes_totals(self, actor, draft, product):
        result = update_draft(actor, draft.id, items=_items(product, "10"), discount_rate=Decimal("10"))
        assert result.success, result.error
        invoice = result.data
        assert invoice.subtotal == Decimal("125.00")
        assert invoice.discount_amount == Decimal("12.50")
        assert invoice.total == Decimal("120.00")

    def test_sent_invoice_is_not_editable(self, actor, sent, product):
        result = update_draft(actor, sent.id, items=_items(product, "1"))
        assert not result.success
        assert result.error == "Only draft invoices can be edited."


@pytest.mark.django_db
class TestPlanLimit:
    def test_free_plan_caps_invoices_per_month(self, actor, chart, customer, service_product, invoice_dates):
        issue, due = invoice_dates
        items = [{"product_id": service_product.id, "quantity": Decimal("1"), "unit_price": Decimal("5.00")}]
        for _ in range(15):
            assert create_invoice(actor, customer_id=customer.id, issue_date=issue, due_date=due, items=items).success

        result = create_invoice(actor, customer_id=customer.id, issue_date=issue, due_date=due, items=items)
        assert not result.success
        assert result.error_code == "limit_reached"
        assert result.extra == {"limitReached": True, "currentCount": 15, "limit": 15}

    def test_trial_is_unlimited(self, actor, chart, customer, service_product, invoice_dates):
        from billing.plans import start_trial

        start_trial(actor.company)
        issue, due = invoice_dates
        items = [{"product_id": service_product.id, "quantity": Decimal("1"), "unit_price": Decimal("5.00")}]
        for _ in range(16):
            result = create_invoice(actor, customer_id=customer.id, issue_date=issue, due_date=due, items=items)
            assert result.success


# =============================================================================
# Transitions
# =============================================================================

@pytest.mark.django_db
class TestMarkSent:
    def test_decrements_stock_and_posts_issue_entry(self, sent, product):
        product.refresh_from_db()
        assert product.quantity == Decimal("16")
        assert StockMovement.objects.filter(product=product, reason=StockMovement.Reason.INVOICE_ISSUED).count() == 1

        entry = sent.issued_entry
        assert entry.source == JournalEntry.Source.INVOICE
        lines = {line.account.code: (line.debit, line.credit) for line in entry.lines.select_related("account")}
        assert lines["1100"] == (Decimal("53.00"), Decimal("0.00"))
        assert lines["4000"] == (Decimal("0.00"), Decimal("50.00"))
        assert lines["2100"] == (Decimal("0.00"), Decimal("3.00"))

    def test_insufficient_stock_rolls_back(self, actor, draft, product):
        product.quantity = Decimal("1")
        product.save()

        result = mark_sent(actor, draft.id)
        assert not result.success
        assert result.error == f"Insufficient stock for {product.name}"

        draft.refresh_from_db()
        product.refresh_from_db()
        assert draft.status == Invoice.Status.DRAFT
        assert product.quantity == Decimal("1")
        assert not JournalEntry.objects.filter(company=draft.company).exists()

    def test_unmanaged_stock_is_not_checked(self, actor, chart, customer, service_product, invoice_dates):
        issue, due = invoice_dates
        result = create_invoice(
            actor,
            customer_id=customer.id,
            issue_date=issue,
            due_date=due,
            items=[{"product_id": service_product.id, "quantity": Decimal("3"), "unit_price": Decimal("5.00")}],
            status=Invoice.Status.SENT,
        )
        assert result.success, result.error
        service_product.refresh_from_db()
        assert service_product.quantity == Decimal("0")

    def test_zero_total_invoice_is_sent_without_entry(self, actor, chart, customer, product, invoice_dates):
        issue, due = invoice_dates
        draft = create_invoice(
            actor,
            customer_id=customer.id,
            issue_date=issue,
            due_date=due,
            items=[{"product_id": product.id, "quantity": Decimal("1"), "unit_price": Decimal("0")}],
        ).data
        assert draft.total == Decimal("0.00")

        result = mark_sent(actor, draft.id)
        assert result.success, result.error
        assert result.data.status == Invoice.Status.SENT
        assert result.data.issued_entry is None
        assert not JournalEntry.objects.filter(company=draft.company).exists()

        assert cancel_invoice(actor, draft.id).success
        product.refresh_from_db()
        assert product.quantity == Decimal("20")

    def test_cannot_send_twice(self, actor, sent):
        result = mark_sent(actor, sent.id)
        assert not result.success


@pytest.mark.django_db
class TestPayments:
    def test_partial_then_paid(self, actor, sent):
        result = record_payment(actor, sent.id, "20.00")
        assert result.success, result.error
        assert result.data["invoice"].status == Invoice.Status.PARTIAL
        assert result.data["invoice"].balance_due == Decimal("33.00")

        result = record_payment(actor, sent.id, "33.00", method="BANK_TRANSFER", reference="TRX-1")
        assert result.success, result.error
        invoice = result.data["invoice"]
        assert invoice.status == Invoice.Status.PAID
        assert invoice.paid_amount == Decimal("53.00")
        assert invoice.payments.count() == 2

    def test_payment_posts_cash_against_receivable(self, actor, sent):
        payment = record_payment(actor, sent.id, "10.00").data["payment"]
        lines = {line.account.code: (line.debit, line.credit) for line in payment.journal_entry.lines.select_related("account")}
        assert lines == {
            "1000": (Decimal("10.00"), Decimal("0.00")),
            "1100": (Decimal("0.00"), Decimal("10.00")),
        }

    @pytest.mark.parametrize("amount", [None, "", "abc", "0", "-5", "NaN", "Infinity", "1e40"])
    def test_invalid_amount(self, actor, sent, amount):
        result = record_payment(actor, sent.id, amount)
        assert not result.success
        assert result.error == "Invalid payment amount"

    def test_overpayment_rejected(self, actor, sent):
        result = record_payment(actor, sent.id, "60.00")
        assert not result.success
        assert "exceeds the balance due" in result.error

    def test_draft_cannot_be_paid(self, actor, draft):
        result = record_payment(actor, draft.id, "10.00")
        assert not result.success

    def test_overdue_can_be_paid(self, actor, sent):
        Invoice.objects.filter(pk=sent.id).update(status=Invoice.Status.OVERDUE)
        result = record_payment(actor, sent.id, "53.00")
        assert result.success
        assert result.data["invoice"].status == Invoice.Status.PAID


@pytest.mark.django_db
class TestCancelAndDelete:
    def test_cancel_restores_stock_and_reverses_entry(self, actor, sent, product):
        entry = sent.issued_entry
        result = cancel_invoice(actor, sent.id)
        assert result.success, result.error
        assert result.data.status == Invoice.Status.CANCELLED
        assert not result.data.stock_committed

        product.refresh_from_db()
        assert product.quantity == Decimal("20")
        entry.refresh_from_db()
        assert entry.status == JournalEntry.Status.REVERSED
        assert JournalEntry.objects.filter(reverses=entry, source=JournalEntry.Source.REVERSAL).exists()

    def test_cancel_draft_has_no_side_effects(self, actor, draft, product):
        result = cancel_invoice(actor, draft.id)
        assert result.success
        product.refresh_from_db()
        assert product.quantity == Decimal("20")

    def test_paid_invoice_cannot_be_cancelled(self, actor, sent):
        record_payment(actor, sent.id, "10.00")
        result = cancel_invoice(actor, sent.id)
        assert not result.success
        assert result.error == "Invoices with payments cannot be cancelled."

    def test_delete_sent_invoice_restores_stock(self, actor, sent, product):
        result = delete_invoice(actor, sent.id)
        assert result.success
        assert result.data == {"deleted": True}
        assert not Invoice.objects.filter(pk=sent.id).exists()
        product.refresh_from_db()
        assert product.quantity == Decimal("20")

    def test_invoice_with_payments_cannot_be_deleted(self, actor, sent):
        record_payment(actor, sent.id, "10.00")
        result = delete_invoice(actor, sent.id)
        assert not result.success
        assert result.error == "Invoices with payments cannot be deleted."

    def test_other_company_invoice_is_not_found(self, actor, sent, second_company):
        Invoice.objects.filter(pk=sent.id).update(company=second_company)
        result = delete_invoice(actor, sent.id)
        assert not result.success
        assert result.error_code == "not_found"


@pytest.mark.django_db
class TestApplyAction:
    def test_dispatches_payment(self, actor, sent):
        result = apply_action(actor, sent.id, "payment", payment_amount="53.00", method=None, reference="")
        assert result.success
        assert result.data["invoice"].status == Invoice.Status.PAID

    def test_unknown_action(self, actor, sent):
        result = apply_action(actor, sent.id, "archive")
        assert not result.success
        assert result.error == "Invalid action"


@pytest.mark.django_db
def test_mark_overdue_only_touches_open_invoices_past_due(actor, sent, customer, product):
    draft = create_invoice(
        actor,
        customer_id=customer.id,
        issue_date=sent.issue_date,
        due_date=sent.due_date,
        items=_items(product, "1"),
    ).data
    today = sent.due_date + timedelta(days=1)
    assert mark_overdue(today=today) == 1
    sent.refresh_from_db()
    draft.refresh_from_db()
    assert sent.status == Invoice.Status.OVERDUE
    assert draft.status == Invoice.Status.DRAFT
    assert mark_overdue(today=today) == 0


# =============================================================================
# API
# =============================================================================

@pytest.mark.django_db
class TestInvoiceAPI:
    def _payload(self, customer, product, **extra):
        issue = timezone.localdate()
        payload = {
            "customer_id": customer.id,
            "issue_date": issue.isoformat(),
            "due_date": (issue + timedelta(days=14)).isoformat(),
            "items": [{"product_id": product.id, "quantity": "2", "unit_price": "12.50"}],
            "tax_rate": "6",
        }
        payload.update(extra)
        return payload

    def test_create_and_list(self, auth_client, customer, product):
        response = auth_client.post("/api/invoices/", self._payload(customer, product), format="json")
        assert response.status_code == 201, response.data
        assert response.data["status"] == "DRAFT"
        assert response.data["total"] == "26.50"
        assert response.data["items"][0]["product_name"] == product.name

        listing = auth_client.get("/api/invoices/")
        assert listing.status_code == 200
        assert listing.data["totalCount"] == 1
        assert listing.data["data"][0]["customer_name"] == customer.name

    def test_patch_actions(self, auth_client, customer, product):
        invoice_id = auth_client.post("/api/invoices/", self._payload(customer, product), format="json").data["id"]

        response = auth_client.patch(f"/api/invoices/{invoice_id}/", {"action": "mark_sent"}, format="json")
        assert response.status_code == 200, response.data
        assert response.data["status"] == "SENT"
        assert response.data["issued_entry_number"].startswith("JE-")

        response = auth_client.patch(
            f"/api/invoices/{invoice_id}/", {"action": "payment", "paymentAmount": "abc"}, format="json",
        )
        assert response.status_code == 400
        assert response.data["detail"] == "Invalid payment amount"

        response = auth_client.patch(
            f"/api/invoices/{invoice_id}/", {"action": "payment", "paymentAmount": "NaN"}, format="json",
        )
        assert response.status_code == 400
        assert response.data["detail"] == "Invalid payment amount"

        response = auth_client.patch(
            f"/api/invoices/{invoice_id}/", {"action": "payment", "paymentAmount": "26.50"}, format="json",
        )
        assert response.status_code == 200
        assert response.data["status"] == "PAID"
        assert len(response.data["payments"]) == 1

    def test_insufficient_stock_is_400(self, auth_client, customer, product):
        payload = self._payload(customer, product, status="SENT")
        payload["items"][0]["quantity"] = "50"
        response = auth_client.post("/api/invoices/", payload, format="json")
        assert response.status_code == 400
        assert response.data["detail"] == f"Insufficient stock for {product.name}"

    def test_limit_is_403(self, auth_client, customer, service_product):
        payload = self._payload(customer, service_product)
        for _ in range(15):
            assert auth_client.post("/api/invoices/", payload, format="json").status_code == 201
        response = auth_client.post("/api/invoices/", payload, format="json")
        assert response.status_code == 403
        assert response.data["limitReached"] is True
        assert response.data["limit"] == 15

    def test_delete(self, auth_client, customer, product):
        invoice_id = auth_client.post("/api/invoices/", self._payload(customer, product), format="json").data["id"]
        assert auth_client.delete(f"/api/invoices/{invoice_id}/").status_code == 204
        assert auth_client.get(f"/api/invoices/{invoice_id}/").status_code == 404

    def test_viewer_can_read_but_not_create(self, auth_client, viewer_client, customer, product):
        auth_client.post("/api/invoices/", self._payload(customer, product), format="json")
        assert viewer_client.get("/api/invoices/").status_code == 200
        response = viewer_client.post("/api/invoices/", self._payload(customer, product), format="json")
        assert response.status_code == 403

    def test_status_filter_and_search(self, auth_client, customer, product):
        auth_client.post("/api/invoices/", self._payload(customer, product), format="json")
        assert auth_client.get("/api/invoices/?status=PAID").data["totalCount"] == 0
        assert auth_client.get("/api/invoices/?search=Siti").data["totalCount"] == 1

    def test_pdf(self, auth_client, customer, product):
        invoice_id = auth_client.post("/api/invoices/", self._payload(customer, product), format="json").data["id"]
        response = auth_client.get(f"/api/invoices/{invoice_id}/pdf/?download=1")
        assert response.status_code == 200
        assert response["Content-Type"] == "application/pdf"
        assert response.content.startswith(b"%PDF")
        assert "attachment" in response["Content-Disposition"]

    def test_csv_export(self, auth_client, customer, product):
        auth_client.post("/api/invoices/", self._payload(customer, product), format="json")
        response = auth_client.get("/api/invoices/export/?format=csv")
        assert response.status_code == 200
        body = response.content.decode("utf-8-sig")
        assert customer.name in body

    def test_unknown_export_format(self, auth_client):
        response = auth_client.get("/api/invoices/export/?format=pdf")
        assert response.status_code == 400
