# tests/conftest.py
"""
Pytest fixtures shared by the backend test suite.

- company / second_company: tenants with a complete legal profile
- owner_membership, viewer_membership: role defaults granted
- actor / viewer_actor: ActorContext built the way tasks and webhooks build it
- chart: default chart of accounts for the company
- customer, product: one of each
- auth_client: APIClient authenticated as the owner
"""

from datetime import timedelta
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.utils import timezone
from rest_framework.test import APIClient

from accounts.authz import actor_for_membership
from accounts.models import Company, CompanyMembership
from accounts.permissions import grant_role_defaults
from accounting.chart import seed_default_chart
from customers.models import Customer
from inventory.models import Product

User = get_user_model()


@pytest.fixture(autouse=True)
def _clear_cache():
    """Cached reads must not leak between tests."""
    cache.clear()
    yield
    cache.clear()


# =============================================================================
# Company & User Fixtures
# =============================================================================

@pytest.fixture
def company(db):
    """A company with everything e-invoicing asks for."""
    return Company.objects.create(
        name="Kedai Runcit Ali",
        legal_name="Kedai Runcit Ali Sdn Bhd",
        owner_name="Ali bin Abu",
        registration_number="202301012345",
        tax_identification_number="C12345678901",
        msic_code="47111",
        email="hello@kedaiali.my",
        phone_number="60123456789",
        street="12 Jalan Ampang",
        city="Kuala Lumpur",
        postcode="50450",
        state="Kuala Lumpur",
        country="Malaysia",
    )


@pytest.fixture
def second_company(db):
    """A second tenant for isolation tests."""
    return Company.objects.create(name="Other Co", legal_name="Other Co Sdn Bhd")


@pytest.fixture
def user(db, company):
    user = User.objects.create_user(
        email="owner@test.com",
        password="testpass123",
        name="Test Owner",
        phone_number="60123456789",
    )
    user.active_company = company
    user.save()
    return user


@pytest.fixture
def viewer_user(db, company):
    user = User.objects.create_user(
        email="viewer@test.com",
        password="testpass123",
        name="Test Viewer",
    )
    user.active_company = company
    user.save()
    return user


@pytest.fixture
def owner_membership(db, company, user):
    membership = CompanyMembership.objects.create(
        company=company,
        user=user,
        role=CompanyMembership.Role.OWNER,
        is_active=True,
    )
    grant_role_defaults(membership, granted_by=None)
    return membership


@pytest.fixture
def viewer_membership(db, company, viewer_user):
    membership = CompanyMembership.objects.create(
        company=company,
        user=viewer_user,
        role=CompanyMembership.Role.VIEWER,
        is_active=True,
    )
    grant_role_defaults(membership, granted_by=None)
    return membership


# =============================================================================
# Actor Context Fixtures
# =============================================================================

@pytest.fixture
def actor(owner_membership):
    """ActorContext for the owner."""
    return actor_for_membership(owner_membership)


@pytest.fixture
def viewer_actor(viewer_membership):
    """ActorContext for a read-only member."""
    return actor_for_membership(viewer_membership)


# =============================================================================
# Data Fixtures
# =============================================================================

@pytest.fixture
def chart(company):
    """Default chart of accounts."""
    seed_default_chart(company)
    return company


@pytest.fixture
def customer(company):
    return Customer.objects.create(
        company=company,
        name="Siti Nurhaliza",
        email="siti@example.com",
        phone_number="60198765432",
        address="8 Jalan Tun Razak",
        city="Kuala Lumpur",
        postcode="50400",
        state="Kuala Lumpur",
        tin="C98765432101",
    )


@pytest.fixture
def product(company):
    return Product.objects.create(
        company=company,
        name="Nasi Lemak Pack",
        sku="NL-001",
        price=Decimal("12.50"),
        cost=Decimal("6.00"),
        quantity=Decimal("20"),
    )


@pytest.fixture
def service_product(company):
    """A product without stock tracking."""
    return Product.objects.create(
        company=company,
        name="Delivery",
        price=Decimal("5.00"),
        quantity=Decimal("0"),
        disable_stock_management=True,
    )


@pytest.fixture
def invoice_dates():
    issue = timezone.localdate()
    return issue, issue + timedelta(days=30)


# =============================================================================
# API Client Fixtures
# =============================================================================

@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def auth_client(api_client, user, owner_membership, chart):
    """Authenticated as the owner with the default chart in place."""
    api_client.force_authenticate(user=user)
    return api_client


@pytest.fixture
def viewer_client(viewer_user, viewer_membership):
    client = APIClient()
    client.force_authenticate(user=viewer_user)
    return client
