"""
Membership management REST API views.

All operations act on the organization of the resolved principal. Granting
the Administrator role additionally requires ``membership.grant_admin``.
"""
from rest_framework import status
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework.exceptions import PermissionDenied
from drf_spectacular.utils import extend_schema, extend_schema_view

from apps.core.exceptions import ValidationError
from apps.core.pagination import StandardResultsSetPagination
from apps.core.permissions import HasOrganizationAccess, get_principal
from apps.core.security_logger import SecurityLogger
from apps.rbac.models import Role, User
from apps.rbac.services import PolicyEvaluator
from apps.tenants.models import Membership
from apps.tenants.serializers import (
    MembershipSerializer, MembershipCreateSerializer,
    MembershipUpdateSerializer, AcceptInvitationSerializer
)
from apps.tenants.services import TenantDirectory


def _require_grant_admin(request, principal, role):
    """Only roles holding membership.grant_admin may hand out Administrator."""
    if role != Role.ADMINISTRATOR:
        return
    if not PolicyEvaluator.is_allowed(principal, 'membership.grant_admin'):
        SecurityLogger.log_route_denied(
            principal.user_id, principal.organization_id, principal.role, request.path
        )
        raise PermissionDenied()


@extend_schema_view(
    get=extend_schema(
        tags=['Memberships'],
        summary='List organization members',
        responses={200: MembershipSerializer(many=True)}
    ),
    post=extend_schema(
        tags=['Memberships'],
        summary='Add or invite a member',
        description='''
Add an existing user to the current organization with a role, or create a
pending invitation (`invite: true`). Re-adding a removed member reactivates
the existing row.

Granting `Administrator` requires the `membership.grant_admin` action.
        ''',
        request=MembershipCreateSerializer,
        responses={201: MembershipSerializer}
    ),
)
class MembershipListView(APIView):
    """
    GET|POST /v1/memberships
    """
    permission_classes = [HasOrganizationAccess]
    required_actions = {'GET': 'membership.view', 'POST': 'membership.add'}
    pagination_class = StandardResultsSetPagination

    def get(self, request):
        principal = get_principal(request)
        memberships = Membership.objects.filter(
            organization_id=principal.organization_id
        ).select_related('user')

        status_filter = request.query_params.get('status')
        if status_filter:
            memberships = memberships.filter(status=status_filter)

        paginator = self.pagination_class()
        page = paginator.paginate_queryset(memberships, request)
        return paginator.get_paginated_response(MembershipSerializer(page, many=True).data)

    def post(self, request):
        principal = get_principal(request)
        serializer = MembershipCreateSerializer(data=request.data)
        if not serializer.is_valid():
            raise ValidationError('Validation error', details=serializer.errors)

        role = Role(serializer.validated_data['role'])
        _require_grant_admin(request, principal, role)

        user = User.objects.by_email(serializer.validated_data['email'])
        if user is None:
            raise ValidationError(
                'Validation error',
                details={'email': ['No user is registered with this email.']}
            )

        if serializer.validated_data['invite']:
            membership = TenantDirectory.invite_membership(
                principal.organization_id, user.pk, role, actor=principal
            )
        else:
            membership = TenantDirectory.add_membership(
                principal.organization_id, user.pk, role, actor=principal
            )

        return Response(MembershipSerializer(membership).data, status=status.HTTP_201_CREATED)


@extend_schema_view(
    patch=extend_schema(
        tags=['Memberships'],
        summary='Change member role',
        description='Takes effect on the member\'s next request; no re-login needed.',
        request=MembershipUpdateSerializer,
        responses={200: MembershipSerializer}
    ),
    delete=extend_schema(
        tags=['Memberships'],
        summary='Remove member',
        description='Access is revoked immediately. The membership row is kept as `removed`.',
        responses={204: None}
    ),
)
class MembershipDetailView(APIView):
    """
    PATCH|DELETE /v1/memberships/{user_id}
    """
    permission_classes = [HasOrganizationAccess]
    required_actions = {'PATCH': 'membership.change_role', 'DELETE': 'membership.remove'}

    def patch(self, request, user_id):
        principal = get_principal(request)
        serializer = MembershipUpdateSerializer(data=request.data)
        if not serializer.is_valid():
            raise ValidationError('Validation error', details=serializer.errors)

        role = Role(serializer.validated_data['role'])
        _require_grant_admin(request, principal, role)

        membership = TenantDirectory.change_role(
            principal.organization_id, user_id, role, actor=principal
        )
        return Response(MembershipSerializer(membership).data, status=status.HTTP_200_OK)

    def delete(self, request, user_id):
        principal = get_principal(request)
        TenantDirectory.remove_membership(principal.organization_id, user_id, actor=principal)
        return Response(status=status.HTTP_204_NO_CONTENT)


@extend_schema(
    tags=['Memberships'],
    summary='Accept invitation',
    description='Activate a pending invitation for the authenticated user.',
    request=AcceptInvitationSerializer,
    responses={200: MembershipSerializer}
)
class AcceptInvitationView(APIView):
    """
    POST /v1/memberships/accept

    The invitee has no active membership yet, so only authentication is required.
    """
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = AcceptInvitationSerializer(data=request.data)
        if not serializer.is_valid():
            raise ValidationError('Validation error', details=serializer.errors)

        membership = TenantDirectory.accept_invitation(
            serializer.validated_data['organization_id'], request.user
        )
        return Response(MembershipSerializer(membership).data, status=status.HTTP_200_OK)
