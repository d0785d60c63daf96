# customers/__init__.py
"""Customers app - the company's customer book."""
