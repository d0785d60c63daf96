# customers/urls.py
"""
URL configuration for customers API.

Endpoints:
- /customers/ - list (search) and create
- /customers/<id>/ - retrieve, update, delete
- /customers/<id>/details/ - customer with purchase totals
"""

from django.urls import path

from .views import CustomerDetailsView, CustomerDetailView, CustomerListCreateView

app_name = "customers"

urlpatterns = [
    path("customers/", CustomerListCreateView.as_view(), name="customer-list-create"),
    path("customers/<int:pk>/", CustomerDetailView.as_view(), name="customer-detail"),
    path("customers/<int:pk>/details/", CustomerDetailsView.as_view(), name="customer-details"),
]
