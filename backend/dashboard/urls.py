# dashboard/urls.py
"""
URL configuration for dashboard API.

Endpoints:
- /dashboard/ - overview
"""

from django.urls import path

from .views import DashboardOverviewView

app_name = "dashboard"

urlpatterns = [
    path("dashboard/", DashboardOverviewView.as_view(), name="overview"),
]
