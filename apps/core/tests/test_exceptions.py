"""
Tests for the API exception handler.
"""
import pytest
from rest_framework import exceptions as drf_exceptions
from rest_framework.test import APIRequestFactory
from rest_framework.request import Request

from apps.core.exceptions import (
    custom_exception_handler, AuditWriteFailure, IsolationViolation,
    LastAdministrator, RoleNotPermitted, ValidationError
)


def _context(request_id='req-123'):
    django_request = APIRequestFactory().get('/v1/sites')
    django_request.request_id = request_id
    return {'request': Request(django_request)}


class TestCustomExceptionHandler:
    """Error bodies are {"error": {"code", "message"}, "request_id"}."""

    def test_validation_error_keeps_details(self):
        exc = ValidationError('Validation error', details={'name': ['Required.']})

        response = custom_exception_handler(exc, _context())

        assert response.status_code == 400
        assert response.data['error']['code'] == 'VALIDATION_ERROR'
        assert response.data['error']['details'] == {'name': ['Required.']}
        assert response.data['request_id'] == 'req-123'

    def test_domain_error_message(self):
        response = custom_exception_handler(LastAdministrator('Keep one admin'), _context())

        assert response.status_code == 400
        assert response.data['error'] == {'code': 'LAST_ADMINISTRATOR', 'message': 'Keep one admin'}

    @pytest.mark.parametrize('exc_class', [IsolationViolation, RoleNotPermitted])
    def test_access_denials_render_as_not_found(self, exc_class):
        response = custom_exception_handler(exc_class('internal reason'), _context())

        assert response.status_code == 404
        assert response.data['error']['code'] == 'NOT_FOUND'
        assert 'internal reason' not in str(response.data)

    def test_audit_failure_is_generic_internal_error(self):
        exc = AuditWriteFailure("Failed to write audit entry 'domain.obra_created'",
                                details={'entity_type': 'obra'})

        response = custom_exception_handler(exc, _context())

        assert response.status_code == 500
        assert response.data['error'] == {
            'code': 'INTERNAL_ERROR',
            'message': 'An unexpected error occurred',
        }

    def test_drf_permission_denied(self):
        response = custom_exception_handler(drf_exceptions.PermissionDenied(), _context())

        assert response.status_code == 403
        assert response.data['error']['code'] == 'FORBIDDEN'
        assert response.data['request_id'] == 'req-123'

    def test_drf_not_found(self):
        response = custom_exception_handler(drf_exceptions.NotFound(), _context())

        assert response.status_code == 404
        assert response.data['error']['code'] == 'NOT_FOUND'

    def test_drf_validation_error(self):
        exc = drf_exceptions.ValidationError({'amount': ['Must be positive.']})

        response = custom_exception_handler(exc, _context())

        assert response.status_code == 400
        assert response.data['error']['message'] == 'Validation error'
        assert response.data['error']['details'] == {'amount': ['Must be positive.']}

    def test_unhandled_exception_is_500(self):
        response = custom_exception_handler(RuntimeError('secret detail'), _context())

        assert response.status_code == 500
        assert response.data['error']['code'] == 'INTERNAL_ERROR'
        assert 'secret detail' not in str(response.data)
