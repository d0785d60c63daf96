# tests/test_accounts_auth.py
"""
Accounts tests: registration, password and TAC login, role defaults,
company profile.
"""

from datetime import timedelta

import pytest
from django.utils import timezone

from accounts.authz import ActorContext, actor_for_membership
from accounts.commands import (
    _hash_code,
    change_password,
    login_password,
    login_tac,
    normalize_phone,
    parse_company_address,
    register,
    request_tac,
    switch_active_company,
    update_company,
    update_email,
)
from accounts.models import Company, CompanyMembership, CompanyMembershipPermission, InvoPermission, TacCode, User
from accounts.permissions import grant_role_defaults
from accounting.models import Account


@pytest.mark.parametrize("raw,expected", [
    ("012-345 6789", "60123456789"),
    ("+6011 2345 6789", "601123456789"),
    ("60123456789", "60123456789"),
    ("0312345678", ""),
    ("12345", ""),
    ("", ""),
])
def test_normalize_phone(raw, expected):
    assert normalize_phone(raw) == expected


def test_parse_company_address():
    parsed = parse_company_address("12 Jalan Ampang, 50450 Kuala Lumpur, Wilayah Persekutuan, Malaysia")
    assert parsed == {
        "street": "12 Jalan Ampang",
        "postcode": "50450",
        "city": "Kuala Lumpur",
        "state": "Wilayah Persekutuan",
        "country": "Malaysia",
    }
    assert parse_company_address("")["street"] == ""


# =============================================================================
# Registration and login
# =============================================================================

@pytest.mark.django_db
class TestRegister:
    def test_creates_tenant(self):
        result = register(
            email="Aminah@Example.com",
            name="Aminah",
            password="secret123",
            phone_number="012-345 6789",
        )
        assert result.success
        user = result.data["user"]
        company = result.data["company"]

        assert user.email == "aminah@example.com"
        assert user.phone_number == "60123456789"
        assert user.active_company == company
        assert company.name == "Aminah's Business"
        assert company.subscription_status == Company.SubscriptionStatus.TRIAL
        assert CompanyMembership.objects.get(user=user, company=company).role == CompanyMembership.Role.OWNER
        assert Account.objects.filter(company=company, code="1100").exists()
        assert set(result.data["tokens"]) == {"access", "refresh"}

    def test_duplicate_email(self):
        register(email="a@example.com", name="A", password="secret123")
        result = register(email="A@example.com", name="B", password="secret123")
        assert not result.success
        assert result.error == "A user with this email already exists."

    def test_invalid_phone(self):
        result = register(email="a@example.com", name="A", password="secret123", phone_number="0312345678")
        assert result.error == "Please enter a valid Malaysian phone number."


@pytest.mark.django_db
class TestPasswordLogin:
    @pytest.fixture
    def account(self):
        return register(
            email="a@example.com", name="A", password="secret123", phone_number="0123456789",
        ).data["user"]

    def test_by_email_or_phone(self, account):
        assert login_password("A@example.com", "secret123").success
        assert login_password("012 345 6789", "secret123").success

    def test_wrong_password(self, account):
        result = login_password("a@example.com", "nope")
        assert result.error_code == "invalid_credentials"

    def test_inactive_user(self, account):
        account.is_active = False
        account.save()
        assert not login_password("a@example.com", "secret123").success


@pytest.mark.django_db
class TestTacLogin:
    def test_request_stores_hash_only(self):
        result = request_tac("012-345 6789")
        assert result.success
        assert result.data == {"phone_number": "60123456789", "user_exists": False, "expires_in_minutes": 15}
        tac = TacCode.objects.get(phone_number="60123456789")
        assert len(tac.code_hash) == 64

    def test_request_replaces_earlier_code(self):
        request_tac("0123456789")
        request_tac("0123456789")
        assert TacCode.objects.filter(phone_number="60123456789").count() == 1

    def test_invalid_phone(self):
        assert not request_tac("12345").success

    def test_login_creates_user_and_company(self):
        result = login_tac("0123456789", "123456")
        assert result.success
        assert result.data["created"] is True

        user = result.data["user"]
        assert user.phone_number == "60123456789"
        assert user.email == "60123456789@phone.invo.local"
        assert user.name == "User 6789"
        assert user.active_company.name == "User 6789's Business"

    def test_login_with_issued_code(self):
        TacCode.objects.create(
            phone_number="60123456789",
            code_hash=_hash_code("654321"),
            expires_at=timezone.now() + timedelta(minutes=5),
        )
        assert login_tac("0123456789", "654321").success
        assert not TacCode.objects.exists()

    def test_existing_user_is_reused(self, user):
        result = login_tac("0123456789", "123456")
        assert result.data["user"] == user
        assert result.data["created"] is False

    def test_wrong_code_counts_attempt(self):
        TacCode.objects.create(
            phone_number="60123456789",
            code_hash=_hash_code("654321"),
            expires_at=timezone.now() + timedelta(minutes=5),
        )
        result = login_tac("0123456789", "111111")
        assert result.error == "Invalid verification code."
        assert result.error_code == "invalid_credentials"
        assert TacCode.objects.get().attempts == 1

    def test_expired_code(self):
        TacCode.objects.create(
            phone_number="60123456789",
            code_hash=_hash_code("654321"),
            expires_at=timezone.now() - timedelta(minutes=1),
        )
        result = login_tac("0123456789", "654321")
        assert result.error == "Verification code has expired."
        assert not TacCode.objects.exists()

    def test_development_code_disabled_in_production(self, settings):
        settings.IS_PRODUCTION = True
        assert not login_tac("0123456789", "123456").success


# =============================================================================
# Profile
# =============================================================================

@pytest.mark.django_db
class TestProfile:
    def test_update_email_duplicate(self, user, viewer_user):
        result = update_email(user, viewer_user.email.upper())
        assert result.error_code == "duplicate"

    @pytest.mark.parametrize("new_password,error", [
        ("short1", "Password must be at least 8 characters long."),
        ("lettersonly", "Password must contain both letters and numbers."),
    ])
    def test_change_password_rules(self, user, new_password, error):
        assert change_password(user, "password123", new_password).error == error

    def test_change_password_checks_current(self, user):
        user.set_password("oldpass123")
        user.save()
        assert change_password(user, "wrong", "newpass123").error_code == "invalid_credentials"
        assert change_password(user, "oldpass123", "newpass123").success
        user.refresh_from_db()
        assert user.check_password("newpass123")

    def test_switch_company(self, user, second_company):
        assert not switch_active_company(user, second_company.public_id).success
        CompanyMembership.objects.create(user=user, company=second_company, role=CompanyMembership.Role.USER)
        assert switch_active_company(user, second_company.public_id).success
        user.refresh_from_db()
        assert user.active_company == second_company


@pytest.mark.django_db
class TestCompanyProfile:
    def test_address_is_parsed_into_parts(self, actor):
        Company.objects.filter(pk=actor.company.pk).update(street="", city="", postcode="", state="")
        actor.company.refresh_from_db()

        result = update_company(actor, address="1 Jalan Tun Razak, 50400 Kuala Lumpur, Kuala Lumpur, Malaysia")
        company = result.data["company"]
        assert company.street == "1 Jalan Tun Razak"
        assert company.postcode == "50400"
        assert company.city == "Kuala Lumpur"

    def test_name_required(self, actor):
        assert update_company(actor, name="").error == "Company name is required."

    def test_viewer_denied(self, viewer_actor):
        from django.core.exceptions import PermissionDenied

        with pytest.raises(PermissionDenied):
            update_company(viewer_actor, name="Nope")


# =============================================================================
# Role defaults
# =============================================================================

@pytest.mark.django_db
class TestRoleDefaults:
    def test_user_cannot_manage_users(self, company):
        member = User.objects.create_user(email="u@test.com", password="pass12345", name="U")
        membership = CompanyMembership.objects.create(user=member, company=company, role=CompanyMembership.Role.USER)
        grant_role_defaults(membership)
        actor = actor_for_membership(membership)
        assert actor.has("invoices.create")
        assert not actor.has("company.manage_users")

    def test_owner_is_allowed_everything(self, actor):
        assert actor.has("anything.at_all")

    def test_revocation_blocks(self, company):
        member = User.objects.create_user(email="a@test.com", password="pass12345", name="A")
        membership = CompanyMembership.objects.create(user=member, company=company, role=CompanyMembership.Role.ADMIN)
        grant_role_defaults(membership)
        permission = InvoPermission.objects.get(code="company.manage_users")
        CompanyMembershipPermission.objects.filter(membership=membership, permission=permission).delete()
        assert not actor_for_membership(membership).has("company.manage_users")

    def test_inactive_membership_has_nothing(self, owner_membership):
        owner_membership.is_active = False
        actor = ActorContext(user=owner_membership.user, company=owner_membership.company,
                             membership=owner_membership, perms=frozenset())
        assert not actor.has("company.view")

    def test_grant_is_idempotent(self, viewer_membership):
        assert grant_role_defaults(viewer_membership) == 0


# =============================================================================
# API
# =============================================================================

@pytest.mark.django_db
class TestAuthAPI:
    def test_register(self, api_client):
        response = api_client.post("/api/auth/register/", {
            "email": "new@example.com",
            "name": "New",
            "password": "secret123",
            "company_name": "Kedai Baru",
        }, format="json")
        assert response.status_code == 201
        assert response.data["company"]["name"] == "Kedai Baru"
        assert "auth_token" in response.cookies

    def test_tac_flow(self, api_client):
        response = api_client.post("/api/auth/request-tac/", {"phone_number": "0123456789"}, format="json")
        assert response.status_code == 200
        assert response.data["userExists"] is False

        response = api_client.post("/api/auth/login/", {"phone_number": "0123456789", "tac": "123456"}, format="json")
        assert response.status_code == 200
        assert response.data["user"]["phone_number"] == "60123456789"
        assert response.data["access"]

    def test_tac_must_be_six_digits(self, api_client):
        response = api_client.post("/api/auth/login/", {"phone_number": "0123456789", "tac": "12ab"}, format="json")
        assert response.status_code == 400

    def test_bad_password_is_401(self, api_client, user):
        response = api_client.post(
            "/api/auth/login-password/", {"email": user.email, "password": "wrong"}, format="json",
        )
        assert response.status_code == 401
        assert response.data["detail"] == "Invalid credentials."

    def test_me(self, auth_client):
        response = auth_client.get("/api/auth/me/")
        assert response.status_code == 200
        assert response.data["role"] == CompanyMembership.Role.OWNER
        assert "billing.manage" in response.data["permissions"]

    def test_bearer_token(self, api_client, user, owner_membership):
        from accounts.commands import issue_tokens

        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {issue_tokens(user)['access']}")
        assert api_client.get("/api/auth/me/").status_code == 200

    def test_logout_blacklists_refresh(self, api_client, user):
        from accounts.commands import issue_tokens

        refresh = issue_tokens(user)["refresh"]
        response = api_client.post("/api/auth/logout/", {"refresh": refresh}, format="json")
        assert response.status_code == 204
        response = api_client.post("/api/auth/refresh/", {"refresh": refresh}, format="json")
        assert response.status_code == 401

    def test_unauthenticated(self, api_client):
        assert api_client.get("/api/company/").status_code == 401

    def test_company_patch(self, auth_client):
        response = auth_client.patch("/api/company/", {"business_activity": "Catering"}, format="json")
        assert response.status_code == 200
        assert response.data["business_activity"] == "Catering"

    def test_viewer_cannot_patch_company(self, viewer_client):
        response = viewer_client.patch("/api/company/", {"name": "X"}, format="json")
        assert response.status_code == 403
