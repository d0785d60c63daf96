# messaging/urls.py
"""
URL configuration for WhatsApp links.

Endpoints:
- /messaging/whatsapp/invoices/<id>/ - invoice, payment receipt or follow-up message
- /messaging/whatsapp/receipts/<id>/ - receipt message
- /messaging/whatsapp/customers/<id>/ - greeting or custom message
"""

from django.urls import path

from .views import CustomerWhatsAppView, InvoiceWhatsAppView, ReceiptWhatsAppView

app_name = "messaging"

urlpatterns = [
    path("messaging/whatsapp/invoices/<int:pk>/", InvoiceWhatsAppView.as_view(), name="whatsapp-invoice"),
    path("messaging/whatsapp/receipts/<int:pk>/", ReceiptWhatsAppView.as_view(), name="whatsapp-receipt"),
    path("messaging/whatsapp/customers/<int:pk>/", CustomerWhatsAppView.as_view(), name="whatsapp-customer"),
]
