# billing/urls.py
"""
URL configuration for subscription API.

Endpoints:
- /subscription/ - plan, trial and usage
- /subscription/beta-upgrade/ - start the 100-day trial
- /subscription/checkout/ - Stripe checkout session
- /subscription/customer-portal/ - Stripe billing portal
- /subscription/cancel/ - cancel the Stripe subscription
- /subscription/webhook/ - Stripe webhook (signature-verified, no auth)
"""

from django.urls import path

from .views import (
    BetaUpgradeView,
    CancelSubscriptionView,
    CheckoutView,
    CustomerPortalView,
    StripeWebhookView,
    SubscriptionStatusView,
)

app_name = "billing"

urlpatterns = [
    path("subscription/", SubscriptionStatusView.as_view(), name="status"),
    path("subscription/beta-upgrade/", BetaUpgradeView.as_view(), name="beta-upgrade"),
    path("subscription/checkout/", CheckoutView.as_view(), name="checkout"),
    path("subscription/customer-portal/", CustomerPortalView.as_view(), name="customer-portal"),
    path("subscription/cancel/", CancelSubscriptionView.as_view(), name="cancel"),
    path("subscription/webhook/", StripeWebhookView.as_view(), name="webhook"),
]
