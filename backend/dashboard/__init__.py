# dashboard/__init__.py
"""
Dashboard app - read-only overview of invoices, customers, products and revenue.
"""
