# invo_backend/responses.py
"""
Turn a failed CommandResult into an HTTP response.

Commands fail with a message and an optional code; the code picks the
status, anything else is a plain 400.
"""

from rest_framework import status
from rest_framework.response import Response

ERROR_STATUS = {
    "invalid_credentials": status.HTTP_401_UNAUTHORIZED,
    "limit_reached": status.HTTP_403_FORBIDDEN,
    "not_found": status.HTTP_404_NOT_FOUND,
    "duplicate": status.HTTP_409_CONFLICT,
    "too_large": status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
    "unavailable": status.HTTP_503_SERVICE_UNAVAILABLE,
}


def error_response(result) -> Response:
    body = {"detail": result.error}
    body.update(result.extra)
    return Response(body, status=ERROR_STATUS.get(result.error_code, status.HTTP_400_BAD_REQUEST))
