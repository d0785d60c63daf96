# einvoice/readiness.py
"""
E-invoice readiness: field-presence checks on the config, the company
profile, the customer and the invoice items.

This is what the invoice page shows before a document is prepared;
full document validation lives in einvoice/validation.py.
"""

CATEGORIES = ("config", "supplier", "buyer", "invoice", "items")


def _entry(field, message, category):
    return {"field": field, "message": message, "category": category}


def check_readiness(invoice, config=None) -> dict:
    """
    Returns {"isReady", "errors", "warnings", "summary"}.

    ``config`` is the company's EInvoiceConfig or None.
    """
    errors = []
    warnings = []

    if config is None or not config.enabled:
        errors.append(_entry(
            "config", "E-Invoice is not enabled. Please configure e-Invoice settings first.", "config",
        ))
    else:
        if not config.supplier_tin:
            errors.append(_entry("supplier_tin", "Supplier TIN is required", "supplier"))
        if not config.myinvois_client_id:
            errors.append(_entry("myinvois_client_id", "MyInvois Client ID is required", "config"))
        if not config.client_secret_hash:
            errors.append(_entry("myinvois_client_secret", "MyInvois Client Secret is required", "config"))

    company = invoice.company
    if not company.legal_name:
        errors.append(_entry("legal_name", "Company legal name is required", "supplier"))
    if not company.street and not company.address:
        errors.append(_entry("address", "Company address is required", "supplier"))
    if not company.city:
        errors.append(_entry("city", "Company city is required", "supplier"))
    if not company.postcode:
        errors.append(_entry("postcode", "Company postcode is required", "supplier"))
    if not company.country:
        warnings.append(_entry("country", "Company country not set, defaulting to Malaysia", "supplier"))
    if not company.phone_number:
        warnings.append(_entry("phone_number", "Company phone number is recommended", "supplier"))

    customer = invoice.customer
    if not customer.name:
        errors.append(_entry("customer_name", "Customer name is required", "buyer"))
    if not customer.tin:
        warnings.append(_entry("customer_tin", "Customer TIN is recommended for B2B invoices", "buyer"))

    items = list(invoice.items.select_related("product"))
    if not items:
        errors.append(_entry("items", "Invoice must have at least one item", "invoice"))
    for index, item in enumerate(items):
        if not item.description and not (item.product and item.product.name):
            errors.append(_entry(
                f"items[{index}].description", f"Item {index + 1} must have a description", "items",
            ))

    return {
        "isReady": not errors,
        "errors": errors,
        "warnings": warnings,
        "summary": {
            "totalErrors": len(errors),
            "totalWarnings": len(warnings),
            "byCategory": {
                category: sum(1 for e in errors if e["category"] == category)
                for category in CATEGORIES
            },
        },
    }
