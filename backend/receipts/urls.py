# receipts/urls.py
"""
URL configuration for receipts API.

Endpoints:
- /receipts/ - cursor-paginated list and create
- /receipts/<id>/ - retrieve, delete
"""

from django.urls import path

from .views import ReceiptDetailView, ReceiptListCreateView

app_name = "receipts"

urlpatterns = [
    path("receipts/", ReceiptListCreateView.as_view(), name="receipt-list-create"),
    path("receipts/<int:pk>/", ReceiptDetailView.as_view(), name="receipt-detail"),
]
