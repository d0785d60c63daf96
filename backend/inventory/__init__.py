# inventory/__init__.py
"""
Inventory app - products and stock movements.

Stock changes go through inventory/stock.py so each one leaves a
StockMovement row behind.
"""
