"""
Audit trail REST API views.
"""
import uuid

from rest_framework import serializers
from rest_framework.views import APIView
from drf_spectacular.utils import extend_schema, OpenApiParameter

from apps.audit.models import AuditLogEntry
from apps.audit.serializers import AuditLogEntrySerializer
from apps.core.exceptions import ValidationError
from apps.core.pagination import StandardResultsSetPagination
from apps.core.permissions import HasOrganizationAccess, get_principal, requires_action


def _uuid_param(request, name):
    value = request.query_params.get(name)
    if not value:
        return None
    try:
        return uuid.UUID(value)
    except ValueError:
        raise ValidationError('Validation error', details={name: ['Must be a valid UUID.']})


def _datetime_param(request, name):
    value = request.query_params.get(name)
    if not value:
        return None
    try:
        return serializers.DateTimeField().to_internal_value(value)
    except serializers.ValidationError as exc:
        raise ValidationError('Validation error', details={name: exc.detail})


@extend_schema(
    tags=['Audit'],
    summary='List audit entries',
    description='''
Audit entries of the current organization, newest first.
Includes `domain.*` mutations and `security.access_denied` attempts.
    ''',
    parameters=[
        OpenApiParameter('action', str, description='Exact action, e.g. domain.obra_updated'),
        OpenApiParameter('entity_type', str, description='Entity name, e.g. obra'),
        OpenApiParameter('entity_id', str, description='Entity UUID'),
        OpenApiParameter('actor_id', str, description='Acting user UUID'),
        OpenApiParameter('from_date', str, description='ISO timestamp lower bound'),
        OpenApiParameter('to_date', str, description='ISO timestamp upper bound'),
    ],
    responses={200: AuditLogEntrySerializer(many=True)}
)
@requires_action('audit.view')
class AuditLogListView(APIView):
    """
    GET /v1/audit-logs
    """
    permission_classes = [HasOrganizationAccess]
    pagination_class = StandardResultsSetPagination

    def get(self, request):
        principal = get_principal(request)
        logs = AuditLogEntry.objects.for_organization(principal.organization_id)

        action = request.query_params.get('action')
        if action:
            logs = logs.by_action(action)

        entity_type = request.query_params.get('entity_type')
        if entity_type:
            logs = logs.by_entity(entity_type, _uuid_param(request, 'entity_id'))

        actor_id = _uuid_param(request, 'actor_id')
        if actor_id:
            logs = logs.for_actor(actor_id)

        from_date = _datetime_param(request, 'from_date')
        if from_date:
            logs = logs.filter(created_at__gte=from_date)

        to_date = _datetime_param(request, 'to_date')
        if to_date:
            logs = logs.filter(created_at__lte=to_date)

        paginator = self.pagination_class()
        page = paginator.paginate_queryset(logs, request)
        serializer = AuditLogEntrySerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)
