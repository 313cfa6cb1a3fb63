"""Translate drop lifecycle exceptions into API error responses."""

from rest_framework import status
from rest_framework.response import Response

from apps.drops.exceptions import (
    InvalidInputError,
    StateError,
    ActorNotAllowedError,
    PaymentError,
    ConcurrencyError,
    SuspensionError,
)

# Most specific first
STATUS_FOR_ERROR = [
    (InvalidInputError, status.HTTP_400_BAD_REQUEST),
    (StateError, status.HTTP_409_CONFLICT),
    (ActorNotAllowedError, status.HTTP_403_FORBIDDEN),
    (PaymentError, status.HTTP_402_PAYMENT_REQUIRED),
    (ConcurrencyError, status.HTTP_409_CONFLICT),
    (SuspensionError, status.HTTP_403_FORBIDDEN),
]


def error_response(exc):
    """
    Build the JSON error response for a DropsServiceError.

    Body: ``{'error': message, 'code': code}``; payment errors add the
    decline ``reason`` and whether another card may succeed.
    """
    http_status = status.HTTP_400_BAD_REQUEST
    for error_class, candidate in STATUS_FOR_ERROR:
        if isinstance(exc, error_class):
            http_status = candidate
            break

    body = {'error': str(exc), 'code': exc.code}
    if isinstance(exc, PaymentError):
        body['reason'] = exc.reason
        body['retry_with_other_method'] = exc.is_retryable_with_other_method
    return Response(body, status=http_status)
