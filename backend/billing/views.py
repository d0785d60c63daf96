# billing/views.py
"""
Subscription endpoints and the Stripe webhook.
"""

import logging

import stripe
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.authz import require, resolve_actor
from invo_backend.responses import error_response

from . import stripe_service
from .commands import beta_upgrade, cancel, open_portal, start_checkout
from .plans import subscription_status
from .serializers import ReturnUrlSerializer
from .webhooks import handle_event

logger = logging.getLogger(__name__)


def _return_url(request):
    serializer = ReturnUrlSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    return serializer.validated_data.get("returnUrl") or None


class SubscriptionStatusView(APIView):
    """
    GET /api/subscription/ -> status, plan, trial dates, usage against limits
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "company.view")
        return Response(subscription_status(actor.company))


class BetaUpgradeView(APIView):
    """
    POST /api/subscription/beta-upgrade/
    """
    permission_classes = [IsAuthenticated]

    def post(self, request):
        actor = resolve_actor(request)
        result = beta_upgrade(actor)
        company = result.data["company"]
        return Response({
            "success": True,
            "message": result.data["message"],
            "redirectUrl": "/settings?success=true&trial=true",
            "subscription": subscription_status(company),
        })


class CheckoutView(APIView):
    """
    POST /api/subscription/checkout/ {"returnUrl": ...} -> {"url": ...}
    """
    permission_classes = [IsAuthenticated]

    def post(self, request):
        actor = resolve_actor(request)
        result = start_checkout(actor, _return_url(request))
        if not result.success:
            return error_response(result)
        return Response(result.data)


class CustomerPortalView(APIView):
    """
    POST /api/subscription/customer-portal/ {"returnUrl": ...} -> {"url": ...}
    """
    permission_classes = [IsAuthenticated]

    def post(self, request):
        actor = resolve_actor(request)
        result = open_portal(actor, _return_url(request))
        if not result.success:
            return error_response(result)
        return Response(result.data)


class CancelSubscriptionView(APIView):
    """
    POST /api/subscription/cancel/
    """
    permission_classes = [IsAuthenticated]

    def post(self, request):
        actor = resolve_actor(request)
        result = cancel(actor)
        if not result.success:
            return error_response(result)
        return Response({"success": True, "subscription": subscription_status(result.data)})


class StripeWebhookView(APIView):
    """
    POST /api/subscription/webhook/

    Authenticated by the Stripe-Signature header, not by a user token.
    """
    authentication_classes = []
    permission_classes = [AllowAny]
    throttle_classes = []

    def post(self, request):
        signature = request.META.get("HTTP_STRIPE_SIGNATURE", "")
        try:
            event = stripe_service.construct_event(request.body, signature)
        except (ValueError, stripe.SignatureVerificationError) as exc:
            logger.warning("Stripe webhook rejected", extra={"error": str(exc)})
            return Response(
                {"detail": "Webhook signature verification failed"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        outcome = handle_event(event)
        return Response({"received": True, "outcome": outcome})
