# accounts/commands.py
"""
Command layer for accounts operations.

ALL identity and company-profile mutations go through these commands:
- Registration (user + company + owner membership + chart of accounts)
- Password and TAC login
- Email / password changes
- Company profile updates

Views parse requests and shape responses; commands validate and write.
"""

import hashlib
import logging
import re
import secrets
from datetime import timedelta

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import transaction
from django.utils import timezone
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken

from accounts.authz import ActorContext, require
from accounts.email_service import PLACEHOLDER_EMAIL_DOMAIN, has_deliverable_email, send_tac_email
from accounts.models import Company, CompanyMembership, TacCode
from accounts.permissions import grant_role_defaults
from messaging.whatsapp import format_phone_number

logger = logging.getLogger(__name__)

User = get_user_model()

MALAYSIAN_MOBILE_RE = re.compile(r"^601\d{8,9}$")


class CommandResult:
    """
    Wrapper for command results with success/failure info.

    ``error_code`` lets views pick a status other than 400 (duplicates,
    plan limits, bad credentials); ``extra`` carries fields that belong in
    the error body next to ``detail``.

    Usage:
        result = register(email=..., name=..., password=...)
        if result.success:
            user = result.data["user"]
        else:
            error_message = result.error
    """

    def __init__(self, success: bool, data=None, error: str = None, error_code: str = None, extra: dict = None):
        self.success = success
        self.data = data
        self.error = error
        self.error_code = error_code
        self.extra = extra or {}

    @classmethod
    def ok(cls, data=None):
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str, code: str = None, **extra):
        return cls(success=False, error=error, error_code=code, extra=extra)


def _hash_code(code: str) -> str:
    return hashlib.sha256(code.encode()).hexdigest()


def issue_tokens(user) -> dict:
    refresh = RefreshToken.for_user(user)
    return {"access": str(refresh.access_token), "refresh": str(refresh)}


def normalize_phone(phone_number: str) -> str:
    """Normalize to 60XXXXXXXXX; empty string when the number is not a Malaysian mobile."""
    formatted = format_phone_number(phone_number or "")
    return formatted if MALAYSIAN_MOBILE_RE.match(formatted) else ""


# =============================================================================
# Registration
# =============================================================================

def create_company_for_user(user, company_name: str = None, phone_number: str = "") -> Company:
    """
    Create the user's company with everything a fresh tenant needs.

    1. Company "{name}'s Business" (or the given name)
    2. OWNER membership with role defaults
    3. Default chart of accounts
    4. Trial subscription
    5. Active company on the user
    """
    from accounting.chart import seed_default_chart
    from billing.plans import start_trial

    name = (company_name or "").strip() or f"{user.name}'s Business"
    company = Company.objects.create(
        name=name,
        legal_name=name,
        owner_name=user.name,
        email=user.email if has_deliverable_email(user) else "",
        phone_number=phone_number or user.phone_number or "",
    )

    membership = CompanyMembership.objects.create(
        company=company,
        user=user,
        role=CompanyMembership.Role.OWNER,
    )
    grant_role_defaults(membership, granted_by=None)
    seed_default_chart(company)
    start_trial(company)

    user.active_company = company
    user.save(update_fields=["active_company"])

    logger.info("Company created", extra={"company_id": company.id, "user_id": user.id})
    return company


@transaction.atomic
def register(
    email: str,
    name: str,
    password: str,
    phone_number: str = "",
    company_name: str = "",
) -> CommandResult:
    """
    Register a new user with a new company.

    Returns:
        CommandResult with user, company and tokens
    """
    email = email.lower().strip()
    if User.objects.filter(email=email).exists():
        return CommandResult.fail("A user with this email already exists.")

    phone = ""
    if phone_number:
        phone = normalize_phone(phone_number)
        if not phone:
            return CommandResult.fail("Please enter a valid Malaysian phone number.")
        if User.objects.filter(phone_number=phone).exists():
            return CommandResult.fail("A user with this phone number already exists.")

    user = User.objects.create_user(
        email=email,
        password=password,
        name=name.strip(),
        phone_number=phone or None,
    )
    company = create_company_for_user(user, company_name=company_name, phone_number=phone)

    from accounts.email_service import send_welcome_email
    transaction.on_commit(lambda: send_welcome_email(user, company))

    return CommandResult.ok({"user": user, "company": company, "tokens": issue_tokens(user)})


# =============================================================================
# Login
# =============================================================================

def login_password(identifier: str, password: str) -> CommandResult:
    """Authenticate by email or phone number and password."""
    identifier = (identifier or "").strip()
    if "@" in identifier:
        user = User.objects.filter(email=identifier.lower()).first()
    else:
        phone = normalize_phone(identifier)
        user = User.objects.filter(phone_number=phone).first() if phone else None

    if user is None or not user.is_active or not user.check_password(password):
        return CommandResult.fail("Invalid credentials.", code="invalid_credentials")

    user.last_login = timezone.now()
    user.save(update_fields=["last_login"])
    return CommandResult.ok({"user": user, "tokens": issue_tokens(user)})


@transaction.atomic
def request_tac(phone_number: str) -> CommandResult:
    """
    Create a fresh login code for a phone number.

    Earlier codes for the phone are removed. The code goes out by email
    when the phone belongs to a user with a real address; otherwise it is
    only logged in debug mode.
    """
    phone = normalize_phone(phone_number)
    if not phone:
        return CommandResult.fail("Please enter a valid Malaysian phone number.")

    code = f"{secrets.randbelow(1_000_000):06d}"
    TacCode.objects.filter(phone_number=phone).delete()
    TacCode.objects.create(
        phone_number=phone,
        code_hash=_hash_code(code),
        expires_at=timezone.now() + timedelta(minutes=settings.TAC_TTL_MINUTES),
    )

    user = User.objects.filter(phone_number=phone).first()
    if user is not None and has_deliverable_email(user):
        transaction.on_commit(lambda: send_tac_email(user, code))
    elif settings.DEBUG:
        logger.debug("TAC generated", extra={"phone_number": phone, "code": code})

    return CommandResult.ok({
        "phone_number": phone,
        "user_exists": user is not None,
        "expires_in_minutes": settings.TAC_TTL_MINUTES,
    })


def _accepts_development_code(code: str) -> bool:
    return not settings.IS_PRODUCTION and code == settings.TAC_DEVELOPMENT_CODE


@transaction.atomic
def login_tac(phone_number: str, code: str) -> CommandResult:
    """
    Verify a TAC and sign the phone in.

    Unknown phones get a user and a company created on the spot.
    """
    phone = normalize_phone(phone_number)
    if not phone:
        return CommandResult.fail("Please enter a valid Malaysian phone number.")

    code = (code or "").strip()
    tac = TacCode.objects.select_for_update().filter(phone_number=phone).first()

    if tac is not None and tac.is_expired:
        tac.delete()
        tac = None
        if not _accepts_development_code(code):
            return CommandResult.fail("Verification code has expired.", code="invalid_credentials")

    if tac is not None and tac.code_hash == _hash_code(code):
        tac.delete()
    elif _accepts_development_code(code):
        if tac is not None:
            tac.delete()
    else:
        if tac is not None:
            tac.attempts += 1
            tac.save(update_fields=["attempts"])
        return CommandResult.fail("Invalid verification code.", code="invalid_credentials")

    created = False
    user = User.objects.filter(phone_number=phone).first()
    if user is None:
        digits = re.sub(r"\D", "", phone)
        user = User.objects.create_user(
            email=f"{digits}@{PLACEHOLDER_EMAIL_DOMAIN}",
            password=None,
            name=f"User {phone[-4:]}",
            phone_number=phone,
        )
        create_company_for_user(user, phone_number=phone)
        created = True
        logger.info("User created from TAC login", extra={"user_id": user.id})

    user.last_login = timezone.now()
    user.save(update_fields=["last_login"])
    return CommandResult.ok({"user": user, "created": created, "tokens": issue_tokens(user)})


def logout(refresh_token: str = None) -> CommandResult:
    """Blacklist the refresh token when one is supplied."""
    if refresh_token:
        try:
            RefreshToken(refresh_token).blacklist()
        except TokenError:
            return CommandResult.fail("Invalid token")
    return CommandResult.ok({"success": True})


# =============================================================================
# User profile
# =============================================================================

@transaction.atomic
def update_email(user, email: str) -> CommandResult:
    email = email.lower().strip()
    if User.objects.filter(email=email).exclude(pk=user.pk).exists():
        return CommandResult.fail("This email is already in use.", code="duplicate")

    user.email = email
    user.save(update_fields=["email"])
    return CommandResult.ok({"user": user})


def validate_new_password(password: str) -> str:
    """Return an error message, or "" when the password is acceptable."""
    if len(password) < 8:
        return "Password must be at least 8 characters long."
    if not re.search(r"[a-zA-Z]", password) or not re.search(r"[0-9]", password):
        return "Password must contain both letters and numbers."
    return ""


@transaction.atomic
def change_password(user, current_password: str, new_password: str) -> CommandResult:
    error = validate_new_password(new_password)
    if error:
        return CommandResult.fail(error)

    if not user.check_password(current_password):
        return CommandResult.fail("Current password is incorrect.", code="invalid_credentials")

    user.set_password(new_password)
    user.save(update_fields=["password"])
    logger.info("Password changed", extra={"user_id": user.id})
    return CommandResult.ok({"success": True})


# =============================================================================
# Company profile
# =============================================================================

COMPANY_PROFILE_FIELDS = (
    "name",
    "legal_name",
    "owner_name",
    "registration_number",
    "tax_identification_number",
    "sst_registration_number",
    "msic_code",
    "business_activity",
    "email",
    "phone_number",
    "address",
    "street",
    "city",
    "postcode",
    "state",
    "country",
    "logo_url",
)

_POSTCODE_RE = re.compile(r"^(\d{5})\s*(.*)$")


def parse_company_address(address: str) -> dict:
    """
    Split a one-line address into street, postcode, city, state and country.

    "12 Jalan Ampang, 50450 Kuala Lumpur, Wilayah Persekutuan, Malaysia"
    -> street "12 Jalan Ampang", postcode "50450", city "Kuala Lumpur",
       state "Wilayah Persekutuan", country "Malaysia"
    """
    parts = [p.strip() for p in (address or "").split(",") if p.strip()]
    result = {"street": "", "postcode": "", "city": "", "state": "", "country": ""}
    if not parts:
        return result

    result["street"] = parts[0]
    rest = parts[1:]

    for i, part in enumerate(rest):
        match = _POSTCODE_RE.match(part)
        if match:
            result["postcode"] = match.group(1)
            result["city"] = match.group(2).strip()
            rest = rest[i + 1:]
            break
    else:
        if rest:
            result["city"] = rest[0]
            rest = rest[1:]

    if not result["city"] and rest:
        result["city"], rest = rest[0], rest[1:]
    if len(rest) >= 2:
        result["state"], result["country"] = rest[0], rest[-1]
    elif len(rest) == 1:
        result["state"] = rest[0]

    return result


def format_company_address(company) -> str:
    location = ", ".join(p for p in (company.postcode, company.city, company.state, company.country) if p)
    return ", ".join(p for p in (company.street, location) if p)


@transaction.atomic
def update_company(actor: ActorContext, **updates) -> CommandResult:
    """
    Update the company profile.

    When ``address`` is given and the structured parts are blank, the parts
    are filled from the parsed address.
    """
    require(actor, "company.manage_settings")

    company = Company.objects.select_for_update().get(pk=actor.company.pk)

    changed = []
    for field in COMPANY_PROFILE_FIELDS:
        if field not in updates:
            continue
        value = updates[field]
        if value is None:
            value = ""
        if getattr(company, field) != value:
            setattr(company, field, value)
            changed.append(field)

    if company.address and not (company.street and company.city and company.postcode):
        parsed = parse_company_address(company.address)
        for field, value in parsed.items():
            if value and not getattr(company, field):
                setattr(company, field, value)
                changed.append(field)
    elif not company.address and company.street:
        company.address = format_company_address(company)
        changed.append("address")

    if not company.name:
        return CommandResult.fail("Company name is required.")

    if changed:
        company.save(update_fields=sorted(set(changed)) + ["updated_at"])
        logger.info("Company profile updated", extra={"company_id": company.id, "fields": sorted(set(changed))})

    return CommandResult.ok({"company": company})


@transaction.atomic
def switch_active_company(user, company_public_id) -> CommandResult:
    membership = (
        CompanyMembership.objects.select_related("company")
        .filter(user=user, company__public_id=company_public_id, is_active=True)
        .first()
    )
    if membership is None:
        return CommandResult.fail("You are not a member of this company.")

    user.active_company = membership.company
    user.save(update_fields=["active_company"])
    return CommandResult.ok({"company": membership.company})
