# pos/permissions.py

from rest_framework.permissions import BasePermission

from accounts.authz import resolve_actor
from pos.commands import is_pos_enabled

POS_DISABLED_MESSAGE = "POS module is disabled. Enable it in Settings."


class PosModuleEnabled(BasePermission):
    """Deny every POS endpoint while the company has no PosSettings row."""
    message = POS_DISABLED_MESSAGE

    def has_permission(self, request, view):
        actor = resolve_actor(request)
        return is_pos_enabled(actor.company)
