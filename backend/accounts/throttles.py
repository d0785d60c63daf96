# accounts/throttles.py
"""
Rate limits for the unauthenticated auth endpoints.

Rates live in settings.REST_FRAMEWORK['DEFAULT_THROTTLE_RATES']:
registration and login are counted per client IP, TAC requests per
destination phone number so one number cannot be flooded from many IPs.
"""

from rest_framework.throttling import AnonRateThrottle, SimpleRateThrottle


class RegistrationThrottle(AnonRateThrottle):
    """5 sign-ups per hour per IP."""
    scope = "registration"


class LoginThrottle(AnonRateThrottle):
    """10 password or TAC login attempts per minute per IP."""
    scope = "login"


class TacRequestThrottle(SimpleRateThrottle):
    """
    5 verification codes per hour per phone number.

    Requests without a usable number fall back to the client IP; the view
    rejects them anyway, but they still count.
    """
    scope = "tac_request"

    def get_cache_key(self, request, view):
        from accounts.commands import normalize_phone

        phone = normalize_phone(str(request.data.get("phone_number", "")))
        return self.cache_format % {
            "scope": self.scope,
            "ident": phone or self.get_ident(request),
        }
