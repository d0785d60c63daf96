# inventory/urls.py
"""
URL configuration for inventory API.

Endpoints:
- /products/ - list (search, low stock) and create
- /products/<id>/ - retrieve, replace, quick edit, delete
- /products/<id>/image/ - upload or remove the product image
"""

from django.urls import path

from .views import ProductDetailView, ProductImageView, ProductListCreateView

app_name = "inventory"

urlpatterns = [
    path("products/", ProductListCreateView.as_view(), name="product-list-create"),
    path("products/<int:pk>/", ProductDetailView.as_view(), name="product-detail"),
    path("products/<int:pk>/image/", ProductImageView.as_view(), name="product-image"),
]
