# accounts/authz.py
"""
Authorization utilities.

Provides:
- ActorContext: who is acting, in which company, with which permissions
- resolve_actor: build the context from a request
- require / require_any: raise PermissionDenied unless granted

OWNER memberships are allowed everything. Other roles only hold the
codes granted to them (role defaults plus manual grants).
"""

from dataclasses import dataclass
from typing import FrozenSet

from django.core.exceptions import PermissionDenied
from rest_framework.exceptions import NotAuthenticated

from accounts.models import CompanyMembership, Company


@dataclass(frozen=True)
class ActorContext:
    """
    Immutable context for the current actor (user + company).

    Passed to every command so it knows whose data it may touch.
    """
    user: object  # User model
    company: Company
    membership: CompanyMembership
    perms: FrozenSet[str]

    def has(self, code: str) -> bool:
        if not self.membership.is_active:
            return False
        if self.membership.role == CompanyMembership.Role.OWNER:
            return True
        return code in self.perms

    @property
    def is_owner(self) -> bool:
        return self.membership.role == CompanyMembership.Role.OWNER

    @property
    def role(self) -> str:
        return self.membership.role


def actor_for_membership(membership: CompanyMembership) -> ActorContext:
    """Build an ActorContext from a membership (tasks, webhooks, tests)."""
    perms = frozenset(membership.permissions.values_list("code", flat=True))
    return ActorContext(
        user=membership.user,
        company=membership.company,
        membership=membership,
        perms=perms,
    )


def resolve_actor(request) -> ActorContext:
    """
    Extract ActorContext from the current request.

    Membership and permissions are loaded fresh on every request so that
    role changes take effect immediately. A user without an active company
    but with a single membership gets that company selected.

    Raises:
        NotAuthenticated: If user is not authenticated
        PermissionDenied: If user has no active company or membership
    """
    user = getattr(request, "user", None)

    if not user or not user.is_authenticated:
        raise NotAuthenticated("Authentication required.")

    if not user.active_company_id:
        memberships = list(
            CompanyMembership.objects.filter(user=user, is_active=True).values_list("company_id", flat=True)[:2]
        )
        if len(memberships) != 1:
            raise PermissionDenied("No active company selected. Please select a company first.")
        user.active_company_id = memberships[0]
        user.save(update_fields=["active_company"])

    try:
        membership = CompanyMembership.objects.select_related(
            "company", "user",
        ).get(
            user=user,
            company_id=user.active_company_id,
            is_active=True,
        )
    except CompanyMembership.DoesNotExist:
        raise PermissionDenied("You are not an active member of the selected company.")

    return actor_for_membership(membership)


def require(actor: ActorContext, code: str) -> None:
    """
    Require that the actor has a specific permission.

    Example:
        require(actor, "invoices.create")
        # If we get here, permission is granted
    """
    if not actor.has(code):
        raise PermissionDenied(f"Permission denied: {code}")


def require_any(actor: ActorContext, *codes: str) -> None:
    """Require that the actor has AT LEAST ONE of the specified permissions."""
    for code in codes:
        if actor.has(code):
            return

    raise PermissionDenied(f"Permission denied: requires one of {', '.join(codes)}")
