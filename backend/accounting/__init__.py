# accounting/__init__.py
"""
Accounting app - double-entry bookkeeping for Invo.

This app provides:
- Account: Chart of Accounts, seeded per company
- JournalEntry / JournalLine: posted double-entry ledger
- TaxRate, Expense, BankAccount / BankTransaction
- Reports: trial balance, P&L, balance sheet, cash flow

Invoices and expenses post through accounting/posting.py.
"""
