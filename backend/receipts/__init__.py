# receipts/__init__.py
"""
Receipts app - proof-of-payment documents for walk-in and POS sales.

Receipts do not touch stock or the ledger; POS orders that complete
create one after stock has been taken.
"""
