# einvoice/mapper.py
"""
Invoice -> e-invoice document data.

The result is JSON-safe (amounts are strings with two decimals, dates
are ISO strings) so it can be stored as the document payload as is.

Invoice arithmetic maps onto the UBL monetary totals like this:
    line_extension_amount = invoice subtotal
    allowance_total_amount = invoice discount
    tax_exclusive_amount   = subtotal - discount
    total_tax_amount       = invoice tax (charged on the undiscounted subtotal)
    tax_inclusive_amount   = tax_exclusive_amount + total_tax_amount
    payable_amount         = invoice total
"""

from accounting.money import ZERO, money, percent_of

from .constants import (
    COUNTRY_CODES,
    DOCUMENT_VERSION,
    INVOICE,
    PEPPOL_DEFAULT_SCHEME,
    STATE_CODES,
)

PAYMENT_MEANS_BY_METHOD = {
    "CASH": "01",
    "CHEQUE": "20",
    "BANK_TRANSFER": "30",
    "EWALLET": "42",
    "CARD": "48",
}
DEFAULT_UNIT_CODE = "C62"
FEDERAL_TERRITORY_PREFIX = "wilayah persekutuan "


def _amount(value) -> str:
    return str(money(value))


def state_code(state) -> str:
    """Map a state name (or code) to its two-digit LHDN code; "" if unknown."""
    value = (state or "").strip()
    if value in STATE_CODES:
        return value
    value = value.lower()
    for code, name in STATE_CODES.items():
        name = name.lower()
        # "Kuala Lumpur" for "Wilayah Persekutuan Kuala Lumpur"
        if value in (name, name.removeprefix(FEDERAL_TERRITORY_PREFIX)):
            return code
    return ""


def country_code(country) -> str:
    """Map a country name (or code) to ISO 3166 alpha-2; "" if unknown."""
    value = (country or "").strip()
    if value.upper() in COUNTRY_CODES:
        return value.upper()
    for code, name in COUNTRY_CODES.items():
        if name.lower() == value.lower():
            return code
    return ""


def _supplier(company, config):
    street = company.street or company.address
    return {
        "tin": config.supplier_tin if config else company.tax_identification_number,
        "brn": (config.supplier_brn if config else "") or company.registration_number,
        "sst_number": (config.sst_registration_number if config else "") or company.sst_registration_number,
        "ttx_number": config.tourism_tax_number if config else "",
        "legal_name": company.legal_name,
        "trading_name": company.name,
        "address": {
            "street": street,
            "city": company.city,
            "postcode": company.postcode,
            "state": state_code(company.state),
            # Blank country defaults to Malaysia
            "country": country_code(company.country) if company.country else "MY",
        },
        "contact": {"phone": company.phone_number, "email": company.email},
        "msic_code": company.msic_code,
        "business_activity": company.business_activity,
        "peppol_id": config.peppol_participant_id if config else "",
        "peppol_scheme": (config.peppol_scheme_id if config else "") or PEPPOL_DEFAULT_SCHEME,
    }


def _buyer(customer):
    return {
        "tin": customer.tin,
        "brn": customer.brn,
        "id_type": customer.id_type,
        "id_value": customer.id_value,
        "sst_number": customer.sst_registration_number,
        "name": customer.name,
        "address": {
            "street": customer.address,
            "city": customer.city,
            "postcode": customer.postcode,
            "state": state_code(customer.state),
            "country": country_code(customer.country) if customer.country else "MY",
        },
        "contact": {"phone": customer.phone_number, "email": customer.email},
        "peppol_id": "",
    }


def _lines(invoice):
    lines = []
    for number, item in enumerate(invoice.items.select_related("product").all(), start=1):
        product = item.product
        unit_code = product.unit_code if product else DEFAULT_UNIT_CODE
        net = money(item.quantity * item.unit_price)
        lines.append({
            "line_number": number,
            "product_name": item.description or (product.name if product else ""),
            "description": product.description if product else "",
            "quantity": str(item.quantity),
            "unit_code": unit_code or DEFAULT_UNIT_CODE,
            "unit_price": _amount(item.unit_price),
            "line_net_amount": _amount(net),
            "tax_category": item.tax_type,
            "tax_rate": str(invoice.tax_rate),
            "tax_amount": _amount(percent_of(net, invoice.tax_rate)),
            "tax_exemption_reason_code": "",
        })
    return lines


def _tax_subtotals(lines, tax_rate):
    grouped = {}
    for line in lines:
        grouped.setdefault(line["tax_category"], ZERO)
        grouped[line["tax_category"]] += money(line["line_net_amount"])
    return [
        {
            "tax_category": category,
            "taxable_amount": _amount(taxable),
            "tax_amount": _amount(percent_of(taxable, tax_rate)),
            "percent": str(tax_rate),
        }
        for category, taxable in grouped.items()
    ]


def _payment_means(invoice):
    payment = invoice.payments.order_by("-paid_at", "-id").first()
    if payment is None:
        return None
    return {"code": PAYMENT_MEANS_BY_METHOD.get(payment.method, "01"), "reference": payment.reference}


def build_document_data(invoice, config=None) -> dict:
    """Map an invoice, its company and customer, and the e-invoice config to document data."""
    company = invoice.company
    currency = invoice.currency or (config.default_currency_code if config else "MYR")

    lines = _lines(invoice)
    tax_subtotals = _tax_subtotals(lines, invoice.tax_rate)
    total_tax = sum((money(s["tax_amount"]) for s in tax_subtotals), ZERO)
    line_extension = sum((money(line["line_net_amount"]) for line in lines), ZERO)
    allowance = money(invoice.discount_amount)
    tax_exclusive = line_extension - allowance

    return {
        "document_type": INVOICE,
        "document_version": DOCUMENT_VERSION,
        "invoice_number": invoice.invoice_number,
        "issue_date": invoice.issue_date.isoformat(),
        "due_date": invoice.due_date.isoformat() if invoice.due_date else None,
        "currency_code": currency,
        "exchange_rate": None,
        "supplier": _supplier(company, config),
        "buyer": _buyer(invoice.customer),
        "items": lines,
        "tax_subtotals": tax_subtotals,
        "total_tax_amount": _amount(total_tax),
        "line_extension_amount": _amount(line_extension),
        "allowance_total_amount": _amount(allowance),
        "charge_total_amount": _amount(ZERO),
        "tax_exclusive_amount": _amount(tax_exclusive),
        "tax_inclusive_amount": _amount(tax_exclusive + total_tax),
        "payable_amount": _amount(invoice.total),
        "payment_means": _payment_means(invoice),
        "notes": invoice.notes,
        "internal_id": str(invoice.public_id),
    }
