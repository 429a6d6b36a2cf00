"""
Domain exceptions and the DRF exception handler.
"""
import logging
from rest_framework.views import exception_handler
from rest_framework.response import Response
from rest_framework import status
from django_ratelimit.exceptions import Ratelimited
from django.http import JsonResponse

logger = logging.getLogger(__name__)

LOGIN_RETRY_AFTER = 60


def ratelimit_view(request, exception):
    """
    View used by django-ratelimit when a limit blocks a request.

    Returns 429 with a Retry-After header instead of the default 403.
    """
    from apps.core.logging import SecurityLogger

    ip_address = request.META.get('REMOTE_ADDR', 'unknown')

    SecurityLogger.log_rate_limit_exceeded(
        endpoint=request.path,
        ip_address=ip_address,
    )

    response = JsonResponse(
        {
            'error': 'Rate limit exceeded. Please try again later.',
            'code': 'RATE_LIMIT_EXCEEDED',
            'retry_after': LOGIN_RETRY_AFTER,
        },
        status=429
    )
    response['Retry-After'] = str(LOGIN_RETRY_AFTER)
    return response


def custom_exception_handler(exc, context):
    """
    Exception handler that logs errors and returns a consistent payload.

    Domain exceptions carry their own status code and are rendered as
    ``{'error', 'code', 'details', 'request_id'}``. Anything DRF does not
    know about becomes a generic 500 without internal details.
    """
    request = context.get('request')
    request_id = getattr(request, 'request_id', None) if request else None

    if isinstance(exc, Ratelimited):
        logger.warning(
            "Rate limit exceeded",
            extra={
                'request_id': request_id,
                'path': request.path if request else None,
            }
        )
        response = Response(
            {
                'error': 'Rate limit exceeded. Please try again later.',
                'code': 'RATE_LIMIT_EXCEEDED',
                'request_id': request_id,
                'retry_after': LOGIN_RETRY_AFTER,
            },
            status=status.HTTP_429_TOO_MANY_REQUESTS
        )
        response['Retry-After'] = str(LOGIN_RETRY_AFTER)
        return response

    if isinstance(exc, GestioException):
        log = logger.error if exc.status_code >= 500 else logger.info
        log(
            f"{exc.__class__.__name__}: {exc.message}",
            extra={
                'request_id': request_id,
                'path': request.path if request else None,
                'details': exc.details,
            }
        )
        return Response(
            {
                'error': exc.message,
                'code': exc.code,
                'details': exc.details,
                'request_id': request_id,
            },
            status=exc.status_code
        )

    response = exception_handler(exc, context)

    if response is None:
        logger.error(
            f"API Exception: {exc.__class__.__name__}",
            extra={
                'exception': str(exc),
                'request_id': request_id,
                'path': request.path if request else None,
                'method': request.method if request else None,
            },
            exc_info=True
        )
        return Response(
            {
                'error': 'Internal server error',
                'code': 'INTERNAL_ERROR',
                'request_id': request_id,
            },
            status=status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    if request_id and isinstance(response.data, dict):
        response.data['request_id'] = request_id

    return response


class GestioException(Exception):
    """Base exception for Gestio-specific errors."""
    status_code = 400
    code = 'ERROR'

    def __init__(self, message, details=None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class NoActiveTenantError(GestioException):
    """Raised when no active company can be resolved for the user."""
    status_code = 403
    code = 'NO_ACTIVE_COMPANY'

    def __init__(self, message='No active company', details=None):
        super().__init__(message, details)


class NotFoundError(GestioException):
    """Raised when an entity is absent or belongs to another company."""
    status_code = 404
    code = 'NOT_FOUND'


class AuthenticationError(GestioException):
    """Raised when authentication fails."""
    status_code = 401
    code = 'UNAUTHORIZED'


class PermissionDeniedError(GestioException):
    """Raised when the member lacks a permission or an action is forbidden."""
    status_code = 403
    code = 'FORBIDDEN'


class ValidationError(GestioException):
    """Raised when input validation fails."""
    status_code = 400
    code = 'INVALID_INPUT'


class ConflictError(GestioException):
    """Raised when the operation collides with existing state."""
    status_code = 409
    code = 'CONFLICT'


class StorageError(GestioException):
    """Raised when the object store rejects an operation."""
    status_code = 502
    code = 'STORAGE_ERROR'


class PersistenceError(GestioException):
    """
    Raised when a database write fails unexpectedly.

    Carries a generic message only. The original error is logged by the
    service that caught it.
    """
    status_code = 500
    code = 'PERSISTENCE_ERROR'
