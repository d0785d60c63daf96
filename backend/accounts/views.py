# accounts/views.py
"""
Thin views that delegate to the commands layer.

Login-type views return the token pair in the body and set the access
token as an httpOnly cookie for the browser client.
"""

from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from invo_backend.responses import error_response

from .authentication import clear_auth_cookie, set_auth_cookie
from .authz import resolve_actor, require
from .commands import (
    change_password,
    login_password,
    login_tac,
    logout,
    register,
    request_tac,
    switch_active_company,
    update_company,
    update_email,
)
from .serializers import (
    ChangePasswordSerializer,
    CompanySerializer,
    CompanyUpdateSerializer,
    MembershipSerializer,
    PasswordLoginSerializer,
    RegistrationSerializer,
    SwitchCompanySerializer,
    TacLoginSerializer,
    TacRequestSerializer,
    UpdateEmailSerializer,
    UserSerializer,
)
from .throttles import LoginThrottle, RegistrationThrottle, TacRequestThrottle


def _session_response(data, status_code=status.HTTP_200_OK):
    tokens = data["tokens"]
    body = {
        "user": UserSerializer(data["user"]).data,
        "access": tokens["access"],
        "refresh": tokens["refresh"],
    }
    if "company" in data:
        body["company"] = CompanySerializer(data["company"]).data
    response = Response(body, status=status_code)
    set_auth_cookie(response, tokens["access"])
    return response


# =============================================================================
# Authentication
# =============================================================================

class RegisterView(APIView):
    permission_classes = [permissions.AllowAny]
    throttle_classes = [RegistrationThrottle]

    def post(self, request):
        serializer = RegistrationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = register(**serializer.validated_data)
        if not result.success:
            return error_response(result)
        return _session_response(result.data, status.HTTP_201_CREATED)


class PasswordLoginView(APIView):
    permission_classes = [permissions.AllowAny]
    throttle_classes = [LoginThrottle]

    def post(self, request):
        serializer = PasswordLoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = login_password(
            serializer.validated_data["identifier"],
            serializer.validated_data["password"],
        )
        if not result.success:
            return error_response(result)
        return _session_response(result.data)


class RequestTacView(APIView):
    permission_classes = [permissions.AllowAny]
    throttle_classes = [TacRequestThrottle]

    def post(self, request):
        serializer = TacRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = request_tac(serializer.validated_data["phone_number"])
        if not result.success:
            return error_response(result)
        return Response({
            "success": True,
            "message": "Verification code sent successfully",
            "userExists": result.data["user_exists"],
            "expiresInMinutes": result.data["expires_in_minutes"],
        })


class TacLoginView(APIView):
    permission_classes = [permissions.AllowAny]
    throttle_classes = [LoginThrottle]

    def post(self, request):
        serializer = TacLoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = login_tac(
            serializer.validated_data["phone_number"],
            serializer.validated_data["tac"],
        )
        if not result.success:
            return error_response(result)
        return _session_response(result.data)


class LogoutView(APIView):
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        result = logout(request.data.get("refresh"))
        if not result.success:
            return error_response(result)
        response = Response(status=status.HTTP_204_NO_CONTENT)
        clear_auth_cookie(response)
        return response


class MeView(APIView):
    """
    GET /api/auth/me/ -> user, active company, role and permission codes
    """
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        memberships = request.user.memberships.filter(is_active=True).select_related("company")
        return Response({
            "user": UserSerializer(actor.user).data,
            "company": CompanySerializer(actor.company).data,
            "role": actor.role,
            "permissions": sorted(actor.perms),
            "memberships": MembershipSerializer(memberships, many=True).data,
        })


class SwitchCompanyView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        serializer = SwitchCompanySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = switch_active_company(request.user, serializer.validated_data["company_id"])
        if not result.success:
            return error_response(result)
        return Response(CompanySerializer(result.data["company"]).data)


# =============================================================================
# User profile
# =============================================================================

class UpdateEmailView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        serializer = UpdateEmailSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = update_email(request.user, serializer.validated_data["email"])
        if not result.success:
            return error_response(result)
        return Response(UserSerializer(result.data["user"]).data)


class ChangePasswordView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        serializer = ChangePasswordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = change_password(
            request.user,
            serializer.validated_data["current_password"],
            serializer.validated_data["new_password"],
        )
        if not result.success:
            return error_response(result)
        return Response({"success": True, "message": "Password updated successfully"})


# =============================================================================
# Company
# =============================================================================

class CompanyView(APIView):
    """
    GET /api/company/ -> company profile
    PUT/PATCH /api/company/ -> update company profile
    """
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "company.view")
        return Response(CompanySerializer(actor.company).data)

    def patch(self, request):
        actor = resolve_actor(request)
        serializer = CompanyUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        result = update_company(actor, **serializer.validated_data)
        if not result.success:
            return error_response(result)
        return Response(CompanySerializer(result.data["company"]).data)

    put = patch
