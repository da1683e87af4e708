"""
Exception hierarchy and DRF exception handler.
"""
import logging
from rest_framework.response import Response
from rest_framework import exceptions as drf_exceptions
from rest_framework import status

logger = logging.getLogger(__name__)

DRF_ERROR_CODES = {
    400: 'VALIDATION_ERROR',
    401: 'UNAUTHORIZED',
    403: 'FORBIDDEN',
    404: 'NOT_FOUND',
    405: 'METHOD_NOT_ALLOWED',
    415: 'UNSUPPORTED_MEDIA_TYPE',
    429: 'RATE_LIMITED',
}


class CanteiroException(Exception):
    """Base exception for Canteiro-specific errors."""

    status_code = 500
    code = 'ERROR'

    def __init__(self, message, details=None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class DuplicateMembership(CanteiroException):
    """Raised when an active membership already exists for (organization, user)."""
    status_code = 400
    code = 'DUPLICATE_MEMBERSHIP'


class MembershipNotFound(CanteiroException):
    """Raised when a membership operation requires an active membership."""
    status_code = 404
    code = 'NOT_FOUND'


class LastAdministrator(CanteiroException):
    """Raised when an operation would leave an organization without an Administrator."""
    status_code = 400
    code = 'LAST_ADMINISTRATOR'


class AccessDenied(CanteiroException):
    """
    Base class for authorization denials.

    Raised only inside the policy evaluator. Callers of the data access
    gateway never see these: they get an empty result instead.
    """
    status_code = 404
    code = 'NOT_FOUND'
    reason = 'denied'


class NotAuthorized(AccessDenied):
    """Principal has no active membership in the resource's organization."""
    reason = 'not_authorized'


class IsolationViolation(AccessDenied):
    """Principal's organization does not match the resource's organization."""
    reason = 'isolation_violation'


class RoleNotPermitted(AccessDenied):
    """Active member whose role is not allowed to perform the action."""
    reason = 'role_not_permitted'


class AuditWriteFailure(CanteiroException):
    """
    Raised when an audit entry cannot be written.

    Fatal to the enclosing transaction: the mutation is rolled back.
    """
    status_code = 500
    code = 'INTERNAL_ERROR'


class AuditLogImmutable(CanteiroException):
    """Raised when application code tries to update or delete an audit entry."""


class OrganizationReassignment(CanteiroException):
    """Raised when a tenant-scoped row is saved with a different organization."""


class AuthenticationError(CanteiroException):
    """Raised when authentication fails."""
    status_code = 401
    code = 'AUTHENTICATION_FAILED'


class ValidationError(CanteiroException):
    """Raised when input validation fails."""
    status_code = 400
    code = 'VALIDATION_ERROR'


def _error_body(code, message, request_id=None, details=None):
    body = {'error': {'code': code, 'message': message}}
    if details:
        body['error']['details'] = details
    if request_id:
        body['request_id'] = request_id
    return body


def custom_exception_handler(exc, context):
    """
    Custom exception handler that logs errors and returns consistent format.

    Access denials render as "not found" so callers cannot tell a foreign
    resource from a missing one. Audit write failures render as a generic
    internal error.
    """
    request = context.get('request')
    request_id = getattr(request, 'request_id', None) if request else None

    if isinstance(exc, CanteiroException):
        if isinstance(exc, AccessDenied):
            message = 'Not found.'
        elif exc.status_code >= 500:
            message = 'An unexpected error occurred'
        else:
            message = exc.message

        log = logger.error if exc.status_code >= 500 else logger.warning
        log(
            f"API Exception: {exc.__class__.__name__}",
            extra={
                'exception': str(exc),
                'request_id': request_id,
                'path': request.path if request else None,
                'method': request.method if request else None,
            },
            exc_info=exc.status_code >= 500
        )

        details = exc.details if exc.status_code < 500 and not isinstance(exc, AccessDenied) else None
        return Response(
            _error_body(exc.code, message, request_id, details),
            status=exc.status_code
        )

    # rest_framework.views loads the authentication classes, which import this module.
    from rest_framework.views import exception_handler

    # Call DRF's default exception handler first
    response = exception_handler(exc, context)

    logger.error(
        f"API Exception: {exc.__class__.__name__}",
        extra={
            'exception': str(exc),
            'request_id': request_id,
            'path': request.path if request else None,
            'method': request.method if request else None,
        },
        exc_info=response is None
    )

    # If DRF didn't handle it, return a generic 500 error
    if response is None:
        return Response(
            _error_body('INTERNAL_ERROR', 'An unexpected error occurred', request_id),
            status=status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    code = DRF_ERROR_CODES.get(response.status_code, 'ERROR')
    if isinstance(exc, drf_exceptions.ValidationError):
        response.data = _error_body(code, 'Validation error', request_id, response.data)
    else:
        detail = response.data.get('detail', '') if isinstance(response.data, dict) else ''
        response.data = _error_body(code, str(detail) or code.replace('_', ' ').capitalize(), request_id)

    return response
