# accounts/permission_defaults.py

_VIEW = {
    "company.view",
    "customers.view",
    "products.view",
    "invoices.view",
    "receipts.view",
    "pos.view",
    "accounts.view",
    "journal.view",
    "reports.view",
    "einvoice.view",
    "dashboard.view",
}

_OPERATE = {
    "customers.manage",
    "products.manage",
    "invoices.create",
    "invoices.send",
    "invoices.record_payment",
    "receipts.create",
    "pos.use",
    "expenses.manage",
    "messaging.send",
}

_MANAGE = {
    "company.manage_settings",
    "company.manage_users",
    "invoices.cancel",
    "invoices.delete",
    "receipts.delete",
    "pos.manage",
    "accounts.manage",
    "journal.create",
    "journal.reverse",
    "tax_rates.manage",
    "bank.manage",
    "reports.export",
    "einvoice.manage",
}

ROLE_DEFAULTS = {
    # OWNER is allowed everything implicitly; the explicit set also covers billing.
    "OWNER": _VIEW | _OPERATE | _MANAGE | {"billing.manage"},
    "ADMIN": _VIEW | _OPERATE | _MANAGE,
    "USER": _VIEW | _OPERATE,
    "VIEWER": set(_VIEW),
}


def all_permission_codes() -> set[str]:
    codes: set[str] = set()
    for s in ROLE_DEFAULTS.values():
        codes |= set(s)
    return codes
