"""
RBAC REST API views.

Implements endpoints for:
- Advisory permission hints for the current principal
"""
from rest_framework import status
from rest_framework.views import APIView
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema

from apps.core.permissions import HasOrganizationAccess, get_principal
from apps.rbac.serializers import PermissionHintsSerializer
from apps.rbac.services import PolicyEvaluator


@extend_schema(
    tags=['RBAC'],
    summary='Permission hints for the current organization',
    description='''
Role held in the resolved organization plus the routes and actions that role
may use. Intended for hiding navigation in the client.

These hints are advisory: every request is still authorized server-side.
    ''',
    responses={200: PermissionHintsSerializer}
)
class MyPermissionsView(APIView):
    """
    GET /v1/me/permissions
    """
    permission_classes = [HasOrganizationAccess]

    def get(self, request):
        principal = get_principal(request)
        data = {
            'organization_id': principal.organization_id,
            'role': principal.role,
            'routes': PolicyEvaluator.allowed_routes(principal.role),
            'actions': PolicyEvaluator.allowed_actions(principal.role),
        }
        return Response(PermissionHintsSerializer(data).data, status=status.HTTP_200_OK)
