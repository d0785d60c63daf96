# accounts/models.py
"""
Identity and tenancy models.

- User: logs in with email + password or phone + TAC
- Company: the tenant. Every business row points at one. Also holds the
  legal profile printed on invoices and the subscription state.
- CompanyMembership: user's role inside a company
- InvoPermission / CompanyMembershipPermission: explicit permission grants
- TacCode: one-time phone login codes
"""
import uuid

from django.conf import settings
from django.contrib.auth.models import AbstractUser, BaseUserManager
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _


class UserManager(BaseUserManager):
    use_in_migrations = True

    def _create_user(self, email, password, **extra_fields):
        if not email:
            raise ValueError("The given email must be set")
        email = self.normalize_email(email)
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_user(self, email, password=None, **extra_fields):
        extra_fields.setdefault("is_staff", False)
        extra_fields.setdefault("is_superuser", False)
        return self._create_user(email, password, **extra_fields)

    def create_superuser(self, email, password, **extra_fields):
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)

        if extra_fields.get("is_staff") is not True:
            raise ValueError("Superuser must have is_staff=True.")
        if extra_fields.get("is_superuser") is not True:
            raise ValueError("Superuser must have is_superuser=True.")

        return self._create_user(email, password, **extra_fields)


class User(AbstractUser):
    username = None
    public_id = models.UUIDField(default=uuid.uuid4, editable=False, unique=True)
    email = models.EmailField("email address", unique=True)
    name = models.CharField(max_length=150)
    phone_number = models.CharField(max_length=20, unique=True, null=True, blank=True)

    active_company = models.ForeignKey(
        "accounts.Company",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="+",
    )

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = ["name"]

    objects = UserManager()

    def __str__(self):
        return self.email

    def get_active_membership(self):
        if not self.active_company_id:
            return None
        return self.memberships.filter(company_id=self.active_company_id, is_active=True).first()


class Company(models.Model):
    """
    Tenant. Name is the trading name; legal_name and the registration
    numbers are what goes on invoices and e-invoice documents.
    """

    class SubscriptionStatus(models.TextChoices):
        FREE = "FREE", "Free"
        TRIAL = "TRIAL", "Trial"
        ACTIVE = "ACTIVE", "Active"
        PAST_DUE = "PAST_DUE", "Past due"
        CANCELED = "CANCELED", "Canceled"

    public_id = models.UUIDField(default=uuid.uuid4, editable=False, unique=True)
    name = models.CharField(max_length=255)
    currency = models.CharField(max_length=3, default="MYR")

    # Legal profile
    legal_name = models.CharField(max_length=255, blank=True, default="")
    owner_name = models.CharField(max_length=255, blank=True, default="")
    registration_number = models.CharField(max_length=50, blank=True, default="")
    tax_identification_number = models.CharField(max_length=20, blank=True, default="")
    sst_registration_number = models.CharField(max_length=50, blank=True, default="")
    msic_code = models.CharField(max_length=5, blank=True, default="")
    business_activity = models.CharField(max_length=255, blank=True, default="")
    email = models.EmailField(blank=True, default="")
    phone_number = models.CharField(max_length=20, blank=True, default="")
    address = models.TextField(blank=True, default="")
    street = models.CharField(max_length=255, blank=True, default="")
    city = models.CharField(max_length=100, blank=True, default="")
    postcode = models.CharField(max_length=10, blank=True, default="")
    state = models.CharField(max_length=100, blank=True, default="")
    country = models.CharField(max_length=100, default="Malaysia")
    logo_url = models.URLField(blank=True, default="")

    # Subscription
    subscription_status = models.CharField(
        max_length=10,
        choices=SubscriptionStatus.choices,
        default=SubscriptionStatus.FREE,
    )
    trial_start_date = models.DateTimeField(null=True, blank=True)
    trial_end_date = models.DateTimeField(null=True, blank=True)
    stripe_customer_id = models.CharField(max_length=100, blank=True, default="")
    stripe_subscription_id = models.CharField(max_length=100, blank=True, default="")
    stripe_price_id = models.CharField(max_length=100, blank=True, default="")
    current_period_end = models.DateTimeField(null=True, blank=True)

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Company")
        verbose_name_plural = _("Companies")
        indexes = [
            models.Index(fields=["stripe_customer_id"]),
        ]

    def __str__(self):
        return self.name

    @property
    def display_name(self) -> str:
        return self.legal_name or self.name


class InvoPermission(models.Model):
    """Catalogue of permission codes ("invoices.create", ...)."""

    code = models.CharField(max_length=100, unique=True)
    name = models.CharField(max_length=255)
    module = models.CharField(max_length=50)
    description = models.TextField(blank=True, default="")

    class Meta:
        ordering = ["module", "code"]

    def __str__(self):
        return self.code


class CompanyMembership(models.Model):
    class Role(models.TextChoices):
        OWNER = "OWNER", "Owner"
        ADMIN = "ADMIN", "Admin"
        USER = "USER", "User"
        VIEWER = "VIEWER", "Viewer"

    public_id = models.UUIDField(default=uuid.uuid4, editable=False, unique=True)
    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name="memberships")
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="memberships")
    role = models.CharField(max_length=10, choices=Role.choices, default=Role.USER)
    is_active = models.BooleanField(default=True)
    permissions = models.ManyToManyField(
        InvoPermission,
        through="CompanyMembershipPermission",
        through_fields=("membership", "permission"),
        related_name="memberships",
        blank=True,
    )
    joined_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["company", "user"], name="uniq_membership_company_user"),
        ]

    def __str__(self):
        return f"{self.user_id}@{self.company_id} ({self.role})"

    def has_permission(self, code: str) -> bool:
        if not self.is_active:
            return False
        if self.role == self.Role.OWNER:
            return True
        return self.permissions.filter(code=code).exists()


class CompanyMembershipPermission(models.Model):
    membership = models.ForeignKey(CompanyMembership, on_delete=models.CASCADE, related_name="permission_grants")
    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name="+")
    permission = models.ForeignKey(InvoPermission, on_delete=models.CASCADE, related_name="grants")
    granted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="+",
    )
    granted_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["membership", "permission"], name="uniq_membership_permission"),
        ]


class TacCode(models.Model):
    """
    One-time login code sent to a phone number.

    Only the SHA-256 of the code is stored.
    """

    phone_number = models.CharField(max_length=20, db_index=True)
    code_hash = models.CharField(max_length=64)
    expires_at = models.DateTimeField()
    attempts = models.PositiveSmallIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"TAC {self.phone_number} (expires {self.expires_at:%H:%M})"

    @property
    def is_expired(self) -> bool:
        return timezone.now() > self.expires_at
