# einvoice/urls.py
"""
URL configuration for e-invoice API.

Endpoints:
- /einvoice/config/ - MyInvois configuration
- /invoices/<id>/einvoice/ - readiness and documents; POST prepares a document
"""

from django.urls import path

from .views import EInvoiceConfigView, InvoiceEInvoiceView

app_name = "einvoice"

urlpatterns = [
    path("einvoice/config/", EInvoiceConfigView.as_view(), name="config"),
    path("invoices/<int:pk>/einvoice/", InvoiceEInvoiceView.as_view(), name="invoice-einvoice"),
]
