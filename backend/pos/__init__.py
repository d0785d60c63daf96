# pos/__init__.py
"""
POS app - restaurant/retail order taking.

The module is switched on per company by creating its PosSettings row.
Orders move KITCHEN -> TO_PAY -> COMPLETED; completing an order takes
stock and writes a receipt.
"""
