# accounting/urls.py
"""
URL configuration for accounting API.

Endpoints:
- /accounts/ - Chart of Accounts CRUD and export
- /journal-entries/ - Manual journal entries and reversals
- /ledger/ - Paginated journal lines
- /reports/ - Trial balance, P&L, balance sheet, cash flow
- /dashboard/ - Accounting headline numbers
- /tax-rates/, /expenses/, /bank-accounts/
"""

from django.urls import path

from .views import (
    # Accounts
    AccountListCreateView,
    AccountDetailView,
    AccountExportView,
    # Journal
    JournalEntryListCreateView,
    JournalEntryDetailView,
    JournalReverseView,
    LedgerView,
    # Reports
    TrialBalanceView,
    TrialBalanceExportView,
    ProfitLossView,
    BalanceSheetView,
    CashFlowView,
    AccountingDashboardView,
    # Tax, expenses, bank
    TaxRateListCreateView,
    TaxRateDetailView,
    ExpenseListCreateView,
    BankAccountListCreateView,
    BankAccountDetailView,
    BankImportView,
)

app_name = "accounting"

urlpatterns = [
    # ==========================================================================
    # Accounts (Chart of Accounts)
    # ==========================================================================
    path("accounts/", AccountListCreateView.as_view(), name="account-list-create"),
    path("accounts/export/", AccountExportView.as_view(), name="account-export"),
    path("accounts/<int:pk>/", AccountDetailView.as_view(), name="account-detail"),

    # ==========================================================================
    # Journal
    # ==========================================================================
    path("journal-entries/", JournalEntryListCreateView.as_view(), name="journal-entry-list-create"),
    path("journal-entries/<int:pk>/", JournalEntryDetailView.as_view(), name="journal-entry-detail"),
    path("journal-entries/<int:pk>/reverse/", JournalReverseView.as_view(), name="journal-entry-reverse"),
    path("ledger/", LedgerView.as_view(), name="ledger"),

    # ==========================================================================
    # Reports
    # ==========================================================================
    path("reports/trial-balance/", TrialBalanceView.as_view(), name="trial-balance"),
    path("reports/trial-balance/export/", TrialBalanceExportView.as_view(), name="trial-balance-export"),
    path("reports/profit-loss/", ProfitLossView.as_view(), name="profit-loss"),
    path("reports/balance-sheet/", BalanceSheetView.as_view(), name="balance-sheet"),
    path("reports/cash-flow/", CashFlowView.as_view(), name="cash-flow"),
    path("dashboard/", AccountingDashboardView.as_view(), name="dashboard"),

    # ==========================================================================
    # Tax rates, expenses, bank
    # ==========================================================================
    path("tax-rates/", TaxRateListCreateView.as_view(), name="tax-rate-list-create"),
    path("tax-rates/<int:pk>/", TaxRateDetailView.as_view(), name="tax-rate-detail"),
    path("expenses/", ExpenseListCreateView.as_view(), name="expense-list-create"),
    path("bank-accounts/", BankAccountListCreateView.as_view(), name="bank-account-list-create"),
    path("bank-accounts/<int:pk>/", BankAccountDetailView.as_view(), name="bank-account-detail"),
    path("bank-accounts/<int:pk>/import/", BankImportView.as_view(), name="bank-import"),
]
