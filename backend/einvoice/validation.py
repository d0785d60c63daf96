# einvoice/validation.py
"""
Validation of e-invoice document data against LHDN MyInvois and PEPPOL
rules.

Each issue is a dict:
    {"field": ..., "message": ..., "category": ..., "severity": ..., "code": ...}

Errors block a document; warnings are stored with it. Amount checks
allow a difference of 0.01.
"""

import datetime
from decimal import Decimal

from accounting.money import ZERO, to_decimal

from .constants import (
    BRN_PATTERNS,
    CURRENCY_CODES,
    EXEMPT_TAX_TYPES,
    MSIC_PATTERN,
    TAX_TYPE_CODES,
    TIN_PATTERN,
    UNIT_CODES,
)

TOLERANCE = Decimal("0.01")

LHDN = "LHDN"
PEPPOL = "PEPPOL"


def validate_tin(tin) -> bool:
    if not tin:
        return False
    return bool(TIN_PATTERN.match(str(tin).strip().upper()))


def validate_brn(brn) -> bool:
    if not brn:
        return False
    normalized = str(brn).strip().upper()
    return any(pattern.match(normalized) for pattern in BRN_PATTERNS)


class _Issues:
    def __init__(self):
        self.errors = []
        self.warnings = []

    def error(self, code, field, message, category):
        self.errors.append(_issue(code, field, message, category, "error"))

    def warning(self, code, field, message, category):
        self.warnings.append(_issue(code, field, message, category, "warning"))


def _issue(code, field, message, category, severity):
    return {"field": field, "message": message, "category": category, "severity": severity, "code": code}


def _amount(value) -> Decimal:
    try:
        return to_decimal(value)
    except ValueError:
        return ZERO


def _differs(a, b) -> bool:
    return abs(_amount(a) - _amount(b)) > TOLERANCE


def _blank(value) -> bool:
    return not value or not str(value).strip()


def _check_header(data, issues):
    number = data.get("invoice_number")
    if _blank(number):
        issues.error("DOC_001", "invoice_number", "Invoice number is required", "invoice")
    elif len(number) > 50:
        issues.error("DOC_002", "invoice_number", "Invoice number must not exceed 50 characters", "invoice")

    issue_date = data.get("issue_date")
    if not issue_date:
        issues.error("DOC_003", "issue_date", "Issue date is required", "invoice")
    elif not isinstance(issue_date, datetime.date):
        try:
            datetime.date.fromisoformat(str(issue_date)[:10])
        except ValueError:
            issues.error("DOC_004", "issue_date", "Invalid issue date format", "invoice")

    currency = data.get("currency_code")
    if not currency:
        issues.error("DOC_005", "currency_code", "Currency code is required", "invoice")
    elif currency not in CURRENCY_CODES:
        issues.warning(
            "DOC_006", "currency_code", f"Currency code {currency} is not in the standard list", "invoice"
        )


def _check_supplier(supplier, issues, profile):
    tin = supplier.get("tin")
    if not tin:
        issues.error("SUP_001", "supplier.tin", "Supplier TIN is required", "supplier")
    elif not validate_tin(tin):
        issues.error(
            "SUP_002",
            "supplier.tin",
            "Invalid TIN format. Expected format: C + 12 digits for company, IG + 10 digits for individual",
            "supplier",
        )

    legal_name = supplier.get("legal_name")
    if _blank(legal_name):
        issues.error("SUP_003", "supplier.legal_name", "Supplier legal name is required", "supplier")
    elif len(legal_name) > 300:
        issues.error("SUP_004", "supplier.legal_name", "Supplier legal name must not exceed 300 characters", "supplier")

    address = supplier.get("address")
    if not address:
        issues.error("SUP_005", "supplier.address", "Supplier address is required", "supplier")
    else:
        for code, part, label in (
            ("SUP_006", "street", "Supplier street address"),
            ("SUP_007", "city", "Supplier city"),
            ("SUP_008", "postcode", "Supplier postcode"),
            ("SUP_009", "country", "Supplier country"),
        ):
            if not address.get(part):
                issues.error(code, f"supplier.address.{part}", f"{label} is required", "supplier")

    contact = supplier.get("contact") or {}
    if not contact.get("phone") and not contact.get("email"):
        issues.warning(
            "SUP_010", "supplier.contact", "Supplier contact information (phone or email) is recommended", "supplier"
        )

    msic = supplier.get("msic_code")
    if not msic:
        issues.warning("SUP_011", "supplier.msic_code", "MSIC code is recommended for Malaysian businesses", "supplier")
    elif not MSIC_PATTERN.match(msic):
        issues.error("SUP_012", "supplier.msic_code", "MSIC code must be a 5-digit number", "supplier")

    if profile == PEPPOL and not supplier.get("peppol_id"):
        issues.error(
            "SUP_P01", "supplier.peppol_id", "PEPPOL participant ID is required for PEPPOL invoices", "supplier"
        )


def _check_buyer(buyer, issues, profile):
    if _blank(buyer.get("name")):
        issues.error("BUY_001", "buyer.name", "Buyer name is required", "buyer")

    tin = buyer.get("tin")
    if not tin and not buyer.get("id_value"):
        issues.warning("BUY_002", "buyer.tin", "Buyer TIN or ID is recommended for B2B transactions", "buyer")
    if tin and not validate_tin(tin):
        issues.error("BUY_003", "buyer.tin", "Invalid buyer TIN format", "buyer")

    if profile == PEPPOL and not buyer.get("peppol_id"):
        issues.error("BUY_P01", "buyer.peppol_id", "PEPPOL participant ID is required for PEPPOL invoices", "buyer")


def _check_items(items, issues):
    if not items:
        issues.error("ITM_001", "items", "At least one line item is required", "items")
        return

    for index, item in enumerate(items):
        prefix = f"items[{index}]"
        line = f"Line {index + 1}"

        if _blank(item.get("product_name")):
            issues.error("ITM_002", f"{prefix}.product_name", f"{line}: Product name is required", "items")

        quantity = _amount(item.get("quantity"))
        unit_price = _amount(item.get("unit_price"))
        if quantity <= 0:
            issues.error("ITM_003", f"{prefix}.quantity", f"{line}: Quantity must be greater than 0", "items")
        if unit_price < 0:
            issues.error("ITM_004", f"{prefix}.unit_price", f"{line}: Unit price cannot be negative", "items")

        unit_code = item.get("unit_code")
        if not unit_code:
            issues.error("ITM_005", f"{prefix}.unit_code", f"{line}: Unit code is required", "items")
        elif unit_code not in UNIT_CODES:
            issues.warning(
                "ITM_006", f"{prefix}.unit_code", f"{line}: Unit code {unit_code} is not in the standard list", "items"
            )

        category = item.get("tax_category")
        if not category:
            issues.error("ITM_007", f"{prefix}.tax_category", f"{line}: Tax category is required", "items")
        elif category not in TAX_TYPE_CODES:
            issues.warning(
                "ITM_008",
                f"{prefix}.tax_category",
                f"{line}: Tax category {category} is not in the standard list",
                "items",
            )

        tax_rate = _amount(item.get("tax_rate"))
        if tax_rate < 0 or tax_rate > 100:
            issues.error("ITM_009", f"{prefix}.tax_rate", f"{line}: Tax rate must be between 0 and 100", "items")

        net = _amount(item.get("line_net_amount"))
        expected_net = quantity * unit_price
        if _differs(net, expected_net):
            issues.error(
                "ITM_010",
                f"{prefix}.line_net_amount",
                f"{line}: Line net amount ({net}) does not match quantity * unit price ({expected_net})",
                "items",
            )

        expected_tax = net * tax_rate / Decimal("100")
        tax_amount = _amount(item.get("tax_amount"))
        if _differs(tax_amount, expected_tax):
            issues.warning(
                "ITM_011",
                f"{prefix}.tax_amount",
                f"{line}: Tax amount ({tax_amount}) may not match expected calculation ({expected_tax:.2f})",
                "items",
            )

        if category in EXEMPT_TAX_TYPES and not item.get("tax_exemption_reason_code"):
            issues.warning(
                "ITM_012",
                f"{prefix}.tax_exemption_reason_code",
                f"{line}: Tax exemption reason code is recommended for exempt items",
                "items",
            )


def _check_tax(data, issues):
    items = data.get("items") or []
    line_tax = sum((_amount(item.get("tax_amount")) for item in items), ZERO)
    subtotal_tax = sum((_amount(s.get("tax_amount")) for s in data.get("tax_subtotals") or []), ZERO)
    total_tax = _amount(data.get("total_tax_amount"))

    if _differs(total_tax, line_tax):
        issues.warning(
            "TAX_001",
            "total_tax_amount",
            f"Total tax amount ({total_tax}) does not match sum of line item taxes ({line_tax:.2f})",
            "tax",
        )
    if _differs(total_tax, subtotal_tax):
        issues.error(
            "TAX_002",
            "tax_subtotals",
            f"Tax subtotals ({subtotal_tax:.2f}) do not match total tax amount ({total_tax})",
            "tax",
        )


def _check_totals(data, issues):
    items = data.get("items") or []
    line_extension = _amount(data.get("line_extension_amount"))
    calculated = sum((_amount(item.get("line_net_amount")) for item in items), ZERO)
    if _differs(line_extension, calculated):
        issues.error(
            "TOT_001",
            "line_extension_amount",
            f"Line extension amount ({line_extension}) does not match sum of line net amounts ({calculated:.2f})",
            "invoice",
        )

    tax_exclusive = _amount(data.get("tax_exclusive_amount"))
    expected_exclusive = (
        line_extension - _amount(data.get("allowance_total_amount")) + _amount(data.get("charge_total_amount"))
    )
    if _differs(tax_exclusive, expected_exclusive):
        issues.error(
            "TOT_002", "tax_exclusive_amount", f"Tax exclusive amount ({tax_exclusive}) calculation error", "invoice"
        )

    total_tax = _amount(data.get("total_tax_amount"))
    tax_inclusive = _amount(data.get("tax_inclusive_amount"))
    if _differs(tax_inclusive, tax_exclusive + total_tax):
        issues.error(
            "TOT_003",
            "tax_inclusive_amount",
            f"Tax inclusive amount ({tax_inclusive}) should equal tax exclusive ({tax_exclusive}) + tax ({total_tax})",
            "invoice",
        )

    payable = _amount(data.get("payable_amount"))
    if _differs(payable, tax_inclusive):
        issues.warning(
            "TOT_004",
            "payable_amount",
            f"Payable amount ({payable}) differs from tax inclusive amount ({tax_inclusive})",
            "invoice",
        )


def summarize(errors, warnings) -> dict:
    """Totals plus error counts per category."""
    by_category = {}
    for issue in errors:
        by_category[issue["category"]] = by_category.get(issue["category"], 0) + 1
    return {"totalErrors": len(errors), "totalWarnings": len(warnings), "byCategory": by_category}


def validate_document(data: dict, profile: str = LHDN) -> dict:
    """
    Validate document data built by ``einvoice.mapper.build_document_data``.

    Returns {"isValid", "errors", "warnings", "summary"}.
    """
    issues = _Issues()

    _check_header(data, issues)
    _check_supplier(data.get("supplier") or {}, issues, profile)
    _check_buyer(data.get("buyer") or {}, issues, profile)
    _check_items(data.get("items") or [], issues)
    _check_tax(data, issues)
    _check_totals(data, issues)

    if data.get("currency_code") != "MYR" and not data.get("exchange_rate"):
        issues.error("CURRENCY_001", "exchange_rate", "Exchange rate is required for non-MYR currency", "invoice")

    return {
        "isValid": not issues.errors,
        "errors": issues.errors,
        "warnings": issues.warnings,
        "summary": summarize(issues.errors, issues.warnings),
    }


def quick_check(data: dict, config) -> dict:
    """
    Short list of blocking problems for a status badge.

    ``config`` is the company's EInvoiceConfig or None.
    """
    problems = []

    if config is None or not config.enabled:
        problems.append("E-Invoice is not enabled")
    if config is None or not config.myinvois_client_id:
        problems.append("MyInvois Client ID is not configured")
    if config is None or not config.supplier_tin:
        problems.append("Supplier TIN is not configured")

    supplier = data.get("supplier") or {}
    address = supplier.get("address") or {}
    if not supplier.get("legal_name"):
        problems.append("Company legal name is missing")
    if not address.get("street"):
        problems.append("Company street address is missing")
    if not address.get("city"):
        problems.append("Company city is missing")
    if not address.get("postcode"):
        problems.append("Company postcode is missing")

    if not (data.get("buyer") or {}).get("name"):
        problems.append("Customer name is missing")
    if not data.get("items"):
        problems.append("Invoice must have at least one item")

    return {"ready": not problems, "issues": problems}
