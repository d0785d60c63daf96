# accounts/urls.py
"""
URL configuration for accounts/auth API.

Endpoints:
- /auth/ - Registration, password and TAC login, logout, me, switch-company
- /user/ - Email and password changes
- /company/ - Company profile
"""

from django.urls import path
from rest_framework_simplejwt.views import TokenRefreshView

from .views import (
    # Auth
    RegisterView,
    PasswordLoginView,
    RequestTacView,
    TacLoginView,
    LogoutView,
    MeView,
    SwitchCompanyView,
    # User
    UpdateEmailView,
    ChangePasswordView,
    # Company
    CompanyView,
)

app_name = "accounts"

urlpatterns = [
    # ==========================================================================
    # Authentication
    # ==========================================================================
    path("auth/register/", RegisterView.as_view(), name="register"),
    path("auth/login-password/", PasswordLoginView.as_view(), name="login-password"),
    path("auth/request-tac/", RequestTacView.as_view(), name="request-tac"),
    path("auth/login/", TacLoginView.as_view(), name="login-tac"),
    path("auth/logout/", LogoutView.as_view(), name="logout"),
    path("auth/refresh/", TokenRefreshView.as_view(), name="token-refresh"),
    path("auth/me/", MeView.as_view(), name="me"),
    path("auth/switch-company/", SwitchCompanyView.as_view(), name="switch-company"),

    # ==========================================================================
    # User
    # ==========================================================================
    path("user/update-email/", UpdateEmailView.as_view(), name="update-email"),
    path("auth/reset-password/", ChangePasswordView.as_view(), name="change-password"),

    # ==========================================================================
    # Company
    # ==========================================================================
    path("company/", CompanyView.as_view(), name="company"),
]
