# messaging/__init__.py
"""
Messaging app - WhatsApp links for invoices, receipts and customers.
"""
