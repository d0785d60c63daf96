# invoicing/urls.py
"""
URL configuration for invoicing API.

Endpoints:
- /invoices/ - cursor-paginated list and create
- /invoices/export/ - CSV/XLSX/TXT export of the filtered list
- /invoices/<id>/ - retrieve, edit draft (PUT), transition (PATCH), delete
- /invoices/<id>/pdf/ - A4 PDF
"""

from django.urls import path

from .views import InvoiceDetailView, InvoiceExportView, InvoiceListCreateView, InvoicePdfView

app_name = "invoicing"

urlpatterns = [
    path("invoices/", InvoiceListCreateView.as_view(), name="invoice-list-create"),
    path("invoices/export/", InvoiceExportView.as_view(), name="invoice-export"),
    path("invoices/<int:pk>/", InvoiceDetailView.as_view(), name="invoice-detail"),
    path("invoices/<int:pk>/pdf/", InvoicePdfView.as_view(), name="invoice-pdf"),
]
