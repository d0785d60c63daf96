# accounting/chart.py
"""
Default chart of accounts seeded for every new company.

The codes below are referenced by automatic postings (SYSTEM_CODES).
"""

from accounting.models import Account

T = Account.AccountType

CASH = "1000"
BANK = "1010"
ACCOUNTS_RECEIVABLE = "1100"
INVENTORY = "1200"
ACCOUNTS_PAYABLE = "2000"
SST_PAYABLE = "2100"
OWNERS_EQUITY = "3000"
RETAINED_EARNINGS = "3100"
SALES_REVENUE = "4000"
GENERAL_EXPENSES = "5000"
COST_OF_GOODS_SOLD = "5100"

DEFAULT_CHART = (
    (CASH, "Cash", T.ASSET),
    (BANK, "Bank", T.ASSET),
    (ACCOUNTS_RECEIVABLE, "Accounts Receivable", T.ASSET),
    (INVENTORY, "Inventory", T.ASSET),
    (ACCOUNTS_PAYABLE, "Accounts Payable", T.LIABILITY),
    (SST_PAYABLE, "SST Payable", T.LIABILITY),
    (OWNERS_EQUITY, "Owner's Equity", T.EQUITY),
    (RETAINED_EARNINGS, "Retained Earnings", T.EQUITY),
    (SALES_REVENUE, "Sales Revenue", T.REVENUE),
    (GENERAL_EXPENSES, "General Expenses", T.EXPENSE),
    (COST_OF_GOODS_SOLD, "Cost of Goods Sold", T.EXPENSE),
)

SYSTEM_CODES = frozenset(code for code, _, _ in DEFAULT_CHART)


def seed_default_chart(company) -> int:
    """Create any missing default accounts. Returns the number created."""
    existing = set(Account.objects.filter(company=company).values_list("code", flat=True))
    to_create = [
        Account(company=company, code=code, name=name, account_type=account_type, is_system=True)
        for code, name, account_type in DEFAULT_CHART
        if code not in existing
    ]
    Account.objects.bulk_create(to_create)
    return len(to_create)
