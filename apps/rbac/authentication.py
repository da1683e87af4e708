"""
DRF authentication backed by JWT bearer tokens.
"""
import logging
from rest_framework.authentication import BaseAuthentication, get_authorization_header
from rest_framework.exceptions import AuthenticationFailed

from apps.rbac.services import AuthService

logger = logging.getLogger(__name__)


class JWTAuthentication(BaseAuthentication):
    """
    Authenticate ``Authorization: Bearer <token>`` requests.

    The token only identifies the user. The organization and role are
    resolved afterwards from the membership table.
    """

    keyword = 'Bearer'

    def authenticate(self, request):
        auth = get_authorization_header(request).split()
        if not auth or auth[0].lower() != self.keyword.lower().encode():
            return None

        if len(auth) != 2:
            raise AuthenticationFailed('Invalid Authorization header.')

        try:
            token = auth[1].decode()
        except UnicodeError:
            raise AuthenticationFailed('Invalid token.')

        user = AuthService.get_user_from_jwt(token)
        if user is None:
            logger.info(
                "Rejected bearer token",
                extra={'request_id': getattr(request, 'request_id', None)}
            )
            raise AuthenticationFailed('Invalid or expired token.')

        return user, token

    def authenticate_header(self, request):
        return self.keyword
