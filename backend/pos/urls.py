# pos/urls.py
"""
URL configuration for POS API.

Endpoints:
- /pos/module/ - module switch (not gated)
- /pos/settings/ - rates, layout, printer
- /pos/tables/, /pos/tables/<id>/
- /pos/orders/, /pos/orders/<id>/
- /pos/print/chit/ - kitchen chit text
"""

from django.urls import path

from .views import (
    KitchenChitView,
    PosModuleView,
    PosOrderDetailView,
    PosOrderListCreateView,
    PosSettingsView,
    PosTableDetailView,
    PosTableListCreateView,
)

app_name = "pos"

urlpatterns = [
    path("pos/module/", PosModuleView.as_view(), name="module"),
    path("pos/settings/", PosSettingsView.as_view(), name="settings"),
    path("pos/tables/", PosTableListCreateView.as_view(), name="table-list-create"),
    path("pos/tables/<int:pk>/", PosTableDetailView.as_view(), name="table-detail"),
    path("pos/orders/", PosOrderListCreateView.as_view(), name="order-list-create"),
    path("pos/orders/<int:pk>/", PosOrderDetailView.as_view(), name="order-detail"),
    path("pos/print/chit/", KitchenChitView.as_view(), name="print-chit"),
]
