# billing/__init__.py
"""
Billing app - subscription plans, limits and Stripe integration for Invo.

Subscription state lives on accounts.Company; this app owns the rules
(plans.py), the Stripe calls (stripe_service.py) and the webhook.
"""
