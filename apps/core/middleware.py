"""
Core middleware for request processing.
"""
import re
import threading
import uuid
import logging
from django.utils.deprecation import MiddlewareMixin

logger = logging.getLogger(__name__)

_request_context = threading.local()

# Incoming ids are stored on audit entries (max 64 chars).
REQUEST_ID_PATTERN = re.compile(r'[A-Za-z0-9._:-]{1,64}')


def set_log_context(**values):
    """Attach values (request_id, organization_id) to log records of this thread."""
    for key, value in values.items():
        setattr(_request_context, key, value)


def clear_log_context():
    _request_context.__dict__.clear()


def get_request_id():
    return getattr(_request_context, 'request_id', None)


class RequestIDMiddleware(MiddlewareMixin):
    """
    Inject a unique request_id into each request for tracing.
    The request_id is added to the request object and to log records.
    """

    def process_request(self, request):
        """Generate and attach request_id to the request."""
        request_id = request.headers.get('X-Request-ID', '')
        if not REQUEST_ID_PATTERN.fullmatch(request_id):
            request_id = str(uuid.uuid4())
        request.request_id = request_id
        set_log_context(request_id=request_id)

    def process_response(self, request, response):
        """Add request_id to response headers."""
        if hasattr(request, 'request_id'):
            response['X-Request-ID'] = request.request_id
        clear_log_context()
        return response


class ContextFilter(logging.Filter):
    """
    Add request_id and organization_id to log records from thread-local storage.
    """

    def filter(self, record):
        if not getattr(record, 'request_id', None):
            record.request_id = getattr(_request_context, 'request_id', None)
        if not getattr(record, 'organization_id', None):
            record.organization_id = getattr(_request_context, 'organization_id', None)
        return True
