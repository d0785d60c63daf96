# invoicing/__init__.py
"""
Invoicing app - invoices, items and payments for Invo.

Lifecycle: DRAFT -> SENT -> PARTIAL/PAID, with OVERDUE set by a periodic
task and CANCELLED reachable before any payment. Sending commits stock
and posts the issue entry; cancelling or deleting undoes both.
"""
