# tests/test_einvoice.py
"""
E-invoice tests.

- TIN / BRN formats
- document validation codes (DOC, SUP, BUY, ITM, TAX, TOT, CURRENCY)
- readiness checks
- mapping an invoice to document data
- config updates (secret hashing, TIN required to enable)
- preparing documents, manually and on send
"""

import copy
from decimal import Decimal

import pytest

from einvoice.commands import (
    auto_prepare_on_send,
    hash_client_secret,
    invoice_einvoice_status,
    prepare_document,
    update_config,
)
from einvoice.mapper import build_document_data, country_code, state_code
from einvoice.models import EInvoiceConfig, EInvoiceDocument, EInvoiceEvent
from einvoice.readiness import check_readiness
from einvoice.validation import PEPPOL, quick_check, validate_brn, validate_document, validate_tin
from invoicing.commands import create_invoice, mark_sent
from invoicing.models import Invoice


VALID_DOCUMENT = {
    "document_type": "01",
    "document_version": "1.0",
    "invoice_number": "INV-20240105-0001",
    "issue_date": "2024-01-05",
    "currency_code": "MYR",
    "exchange_rate": None,
    "supplier": {
        "tin": "C12345678901",
        "legal_name": "Kedai Runcit Ali Sdn Bhd",
        "address": {"street": "12 Jalan Ampang", "city": "Kuala Lumpur", "postcode": "50450", "country": "MY"},
        "contact": {"phone": "60123456789", "email": ""},
        "msic_code": "47111",
    },
    "buyer": {"name": "Siti Nurhaliza", "tin": "C98765432101", "id_value": ""},
    "items": [
        {
            "line_number": 1,
            "product_name": "Nasi Lemak Pack",
            "quantity": "4",
            "unit_code": "C62",
            "unit_price": "12.50",
            "line_net_amount": "50.00",
            "tax_category": "01",
            "tax_rate": "6",
            "tax_amount": "3.00",
        },
    ],
    "tax_subtotals": [{"tax_category": "01", "taxable_amount": "50.00", "tax_amount": "3.00", "percent": "6"}],
    "total_tax_amount": "3.00",
    "line_extension_amount": "50.00",
    "allowance_total_amount": "0.00",
    "charge_total_amount": "0.00",
    "tax_exclusive_amount": "50.00",
    "tax_inclusive_amount": "53.00",
    "payable_amount": "53.00",
}


def _document(**changes):
    data = copy.deepcopy(VALID_DOCUMENT)
    data.update(changes)
    return data


def _codes(issues):
    return {issue["code"] for issue in issues}


@pytest.fixture
def config(company):
    return EInvoiceConfig.objects.create(
        company=company,
        enabled=True,
        myinvois_client_id="client-123",
        client_secret_hash=hash_client_secret("s3cret"),
        supplier_tin="C12345678901",
        supplier_brn="202301012345",
    )


@pytest.fixture
def sent_invoice(actor, chart, customer, product, invoice_dates):
    issue, due = invoice_dates
    result = create_invoice(
        actor,
        customer_id=customer.id,
        issue_date=issue,
        due_date=due,
        items=[{"product_id": product.id, "quantity": Decimal("4"), "unit_price": Decimal("12.50")}],
        tax_rate=Decimal("6"),
        status=Invoice.Status.SENT,
    )
    assert result.success, result.error
    return result.data


# =============================================================================
# Identifier formats
# =============================================================================

@pytest.mark.parametrize("tin,expected", [
    ("C12345678901", True),
    ("c1234567890", True),
    ("IG12345678901", False),
    ("12345678901", False),
    ("", False),
    (None, False),
])
def test_validate_tin(tin, expected):
    assert validate_tin(tin) is expected


@pytest.mark.parametrize("brn,expected", [
    ("202301012345", True),
    ("AB12345", True),
    ("123456-A", True),
    ("LLP0001234-LCA", True),
    ("12-34", False),
    ("", False),
])
def test_validate_brn(brn, expected):
    assert validate_brn(brn) is expected


# =============================================================================
# Document validation
# =============================================================================

class TestValidateDocument:
    def test_valid_document(self):
        result = validate_document(_document())
        assert result["isValid"], result["errors"]
        assert result["summary"]["totalErrors"] == 0

    def test_missing_header_fields(self):
        result = validate_document(_document(invoice_number="", issue_date=None, currency_code=""))
        assert {"DOC_001", "DOC_003", "DOC_005"} <= _codes(result["errors"])

    def test_bad_issue_date(self):
        result = validate_document(_document(issue_date="05/01/2024"))
        assert "DOC_004" in _codes(result["errors"])

    def test_invalid_supplier_tin(self):
        data = _document()
        data["supplier"]["tin"] = "X1"
        result = validate_document(data)
        assert "SUP_002" in _codes(result["errors"])

    def test_supplier_address_parts(self):
        data = _document()
        data["supplier"]["address"] = {"street": "", "city": "", "postcode": "", "country": ""}
        result = validate_document(data)
        assert {"SUP_006", "SUP_007", "SUP_008", "SUP_009"} <= _codes(result["errors"])

    def test_msic_code(self):
        data = _document()
        data["supplier"]["msic_code"] = "4711"
        assert "SUP_012" in _codes(validate_document(data)["errors"])

        data["supplier"]["msic_code"] = ""
        assert "SUP_011" in _codes(validate_document(data)["warnings"])

    def test_buyer_without_tin_is_a_warning(self):
        data = _document()
        data["buyer"]["tin"] = ""
        result = validate_document(data)
        assert result["isValid"]
        assert "BUY_002" in _codes(result["warnings"])

    def test_peppol_needs_participant_ids(self):
        result = validate_document(_document(), profile=PEPPOL)
        assert {"SUP_P01", "BUY_P01"} <= _codes(result["errors"])

    def test_line_checks(self):
        data = _document()
        data["items"][0].update({"quantity": "0", "unit_code": "", "tax_category": ""})
        codes = _codes(validate_document(data)["errors"])
        assert {"ITM_003", "ITM_005", "ITM_007", "ITM_010"} <= codes

    def test_unknown_unit_code_is_a_warning(self):
        data = _document()
        data["items"][0]["unit_code"] = "ZZZ"
        result = validate_document(data)
        assert result["isValid"]
        assert "ITM_006" in _codes(result["warnings"])

    def test_net_amount_tolerance(self):
        data = _document()
        data["items"][0]["line_net_amount"] = "50.01"
        data["line_extension_amount"] = "50.01"
        data["tax_exclusive_amount"] = "50.01"
        data["tax_inclusive_amount"] = "53.01"
        assert "ITM_010" not in _codes(validate_document(data)["errors"])

    def test_tax_subtotals_must_match(self):
        data = _document()
        data["tax_subtotals"][0]["tax_amount"] = "2.00"
        assert "TAX_002" in _codes(validate_document(data)["errors"])

    def test_total_checks(self):
        data = _document(tax_inclusive_amount="60.00", payable_amount="53.00")
        result = validate_document(data)
        assert "TOT_003" in _codes(result["errors"])
        assert "TOT_004" in _codes(result["warnings"])

    def test_foreign_currency_needs_exchange_rate(self):
        result = validate_document(_document(currency_code="USD"))
        assert "CURRENCY_001" in _codes(result["errors"])

        result = validate_document(_document(currency_code="USD", exchange_rate="4.70"))
        assert "CURRENCY_001" not in _codes(result["errors"])

    def test_summary_counts_errors_by_category(self):
        data = _document(invoice_number="")
        data["buyer"]["name"] = ""
        summary = validate_document(data)["summary"]
        assert summary["byCategory"]["invoice"] == 1
        assert summary["byCategory"]["buyer"] == 1


def test_quick_check_without_config():
    result = quick_check(_document(), None)
    assert not result["ready"]
    assert "E-Invoice is not enabled" in result["issues"]


# =============================================================================
# Mapping & readiness
# =============================================================================

def test_state_and_country_codes():
    assert state_code("Kuala Lumpur") == "14"
    assert state_code("selangor") == "10"
    assert state_code("Atlantis") == ""
    assert country_code("Malaysia") == "MY"
    assert country_code("sg") == "SG"


@pytest.mark.django_db
class TestMapping:
    def test_build_document_data(self, sent_invoice, config):
        data = build_document_data(sent_invoice, config)
        assert data["invoice_number"] == sent_invoice.invoice_number
        assert data["currency_code"] == "MYR"
        assert data["supplier"]["tin"] == "C12345678901"
        assert data["supplier"]["address"]["state"] == "14"
        assert data["buyer"]["address"]["country"] == "MY"
        assert data["items"][0]["unit_code"] == "C62"
        assert data["line_extension_amount"] == "50.00"
        assert data["total_tax_amount"] == "3.00"
        assert data["payable_amount"] == "53.00"
        assert validate_document(data)["isValid"]


@pytest.mark.django_db
class TestReadiness:
    def test_not_enabled(self, sent_invoice):
        readiness = check_readiness(sent_invoice, None)
        assert not readiness["isReady"]
        assert readiness["summary"]["byCategory"]["config"] == 1

    def test_ready(self, sent_invoice, config):
        readiness = check_readiness(sent_invoice, config)
        assert readiness["isReady"], readiness["errors"]

    def test_missing_company_profile(self, sent_invoice, config):
        company = sent_invoice.company
        company.legal_name = ""
        company.city = ""
        company.save()
        readiness = check_readiness(sent_invoice, config)
        fields = {error["field"] for error in readiness["errors"]}
        assert {"legal_name", "city"} <= fields
        assert readiness["summary"]["byCategory"]["supplier"] == 2


# =============================================================================
# Config & preparation
# =============================================================================

@pytest.mark.django_db
class TestConfig:
    def test_enable_requires_tin(self, actor):
        result = update_config(actor, enabled=True)
        assert not result.success
        assert result.error == "Supplier TIN is required to enable e-Invoice"
        assert not EInvoiceConfig.objects.filter(company=actor.company).exists()

    def test_secret_is_hashed(self, actor):
        result = update_config(actor, enabled=True, supplier_tin="C12345678901", client_secret="s3cret")
        assert result.success
        config = result.data
        assert config.client_secret_hash == hash_client_secret("s3cret")
        assert config.has_client_secret

    def test_partial_update_keeps_other_fields(self, actor, config):
        update_config(actor, myinvois_client_id="client-456")
        config.refresh_from_db()
        assert config.myinvois_client_id == "client-456"
        assert config.supplier_tin == "C12345678901"
        assert config.enabled


@pytest.mark.django_db
class TestPrepareDocument:
    def test_prepare(self, actor, sent_invoice, config):
        result = prepare_document(actor, sent_invoice.id)
        assert result.success, result.error
        document = result.data
        assert document.status == EInvoiceDocument.Status.PENDING
        assert document.payload["invoice_number"] == sent_invoice.invoice_number
        assert document.events.get().event_type == EInvoiceEvent.EventType.PREPARED

    def test_draft_cannot_be_prepared(self, actor, chart, customer, product, invoice_dates, config):
        issue, due = invoice_dates
        draft = create_invoice(
            actor,
            customer_id=customer.id,
            issue_date=issue,
            due_date=due,
            items=[{"product_id": product.id, "quantity": Decimal("1"), "unit_price": Decimal("12.50")}],
        ).data
        result = prepare_document(actor, draft.id)
        assert not result.success
        assert result.error == "Only sent invoices can be prepared for e-invoicing"

    def test_not_ready_carries_readiness(self, actor, sent_invoice):
        result = prepare_document(actor, sent_invoice.id)
        assert not result.success
        assert result.extra["readiness"]["isReady"] is False
        assert not EInvoiceDocument.objects.exists()

    def test_invalid_document_is_stored(self, actor, sent_invoice, config):
        result = prepare_document(actor, sent_invoice.id, profile=PEPPOL)
        assert result.success
        document = result.data
        assert document.status == EInvoiceDocument.Status.INVALID
        assert "SUP_P01" in _codes(document.validation_errors)
        assert document.events.get().event_type == EInvoiceEvent.EventType.VALIDATION_FAILED

    def test_auto_prepare_only_when_switched_on(self, sent_invoice, config):
        assert auto_prepare_on_send(sent_invoice) is None
        config.auto_submit_on_send = True
        config.save()
        result = auto_prepare_on_send(sent_invoice)
        assert result.success

    def test_mark_sent_prepares_when_auto_submit_is_on(self, actor, chart, customer, product, invoice_dates, config):
        config.auto_submit_on_send = True
        config.save()
        issue, due = invoice_dates
        draft = create_invoice(
            actor,
            customer_id=customer.id,
            issue_date=issue,
            due_date=due,
            items=[{"product_id": product.id, "quantity": Decimal("1"), "unit_price": Decimal("12.50")}],
        ).data
        assert mark_sent(actor, draft.id).success
        assert EInvoiceDocument.objects.filter(invoice=draft).count() == 1

    def test_status_lists_documents_newest_first(self, actor, sent_invoice, config):
        first = prepare_document(actor, sent_invoice.id).data
        second = prepare_document(actor, sent_invoice.id).data
        state = invoice_einvoice_status(sent_invoice)
        assert state["latest_document"] == second
        assert [d.id for d in state["documents"]] == [second.id, first.id]
        assert state["readiness"]["isReady"]


@pytest.mark.django_db
class TestEInvoiceAPI:
    def test_config_roundtrip(self, auth_client):
        response = auth_client.get("/api/einvoice/config/")
        assert response.status_code == 200
        assert response.data is None

        response = auth_client.put(
            "/api/einvoice/config/",
            {"enabled": True, "supplier_tin": "c12345678901", "client_secret": "s3cret"},
            format="json",
        )
        assert response.status_code == 200, response.data
        assert response.data["supplier_tin"] == "C12345678901"
        assert response.data["hasClientSecret"] is True
        assert "client_secret" not in response.data

    def test_prepare_and_status(self, auth_client, sent_invoice, config):
        response = auth_client.post(f"/api/invoices/{sent_invoice.id}/einvoice/", {}, format="json")
        assert response.status_code == 201, response.data
        assert response.data["status"] == "PENDING"

        response = auth_client.get(f"/api/invoices/{sent_invoice.id}/einvoice/")
        assert response.status_code == 200
        assert response.data["latestDocument"]["id"] == response.data["allDocuments"][0]["id"]
        assert len(response.data["latestDocument"]["events"]) == 1

    def test_not_ready_is_400_with_readiness(self, auth_client, sent_invoice):
        response = auth_client.post(f"/api/invoices/{sent_invoice.id}/einvoice/", {}, format="json")
        assert response.status_code == 400
        assert response.data["readiness"]["isReady"] is False

    def test_viewer_cannot_configure(self, viewer_client):
        response = viewer_client.put("/api/einvoice/config/", {"enabled": False}, format="json")
        assert response.status_code == 403
