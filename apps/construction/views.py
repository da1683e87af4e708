"""
Construction resource REST API views.

Every read and write goes through DataAccessGateway with the request's
principal. Rows that are foreign, hidden from the caller's role, or
missing all answer 404; only route-level denials answer 403.
"""

from django.core.exceptions import ValidationError as DjangoValidationError
from django.utils import timezone
from rest_framework import status
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.exceptions import NotFound
from drf_spectacular.utils import extend_schema, extend_schema_view

from apps.construction.models import (
    Site, DailyReport, Expense, Equipment, TeamMember, Document
)
from apps.construction.serializers import (
    SiteSerializer, DailyReportSerializer, ExpenseSerializer,
    EquipmentSerializer, TeamMemberSerializer, DocumentSerializer,
    AttendanceSerializer
)
from apps.core.exceptions import ValidationError
from apps.core.pagination import StandardResultsSetPagination
from apps.core.permissions import HasOrganizationAccess, get_principal
from apps.rbac.gateway import DataAccessGateway


class ResourceListView(APIView):
    """
    GET|POST for one tenant-scoped model.

    Subclasses set ``model``, ``serializer_class`` and ``filter_params``
    (query params parsed by their model field, used as exact-match filters).
    """
    permission_classes = [HasOrganizationAccess]
    pagination_class = StandardResultsSetPagination
    model = None
    serializer_class = None
    filter_params = ()

    def get_required_action(self, request):
        entity = self.model.audit_entity
        return {'GET': f'{entity}.view', 'POST': f'{entity}.create'}.get(request.method)

    def get_filters(self, request):
        filters = {}
        for param in self.filter_params:
            value = request.query_params.get(param)
            if not value:
                continue
            field = self.model._meta.get_field(param)
            try:
                filters[param] = field.to_python(value)
            except DjangoValidationError as exc:
                raise ValidationError('Validation error', details={param: exc.messages})
        return filters

    def get(self, request):
        principal = get_principal(request)
        queryset = DataAccessGateway.filter(principal, self.model, **self.get_filters(request))

        paginator = self.pagination_class()
        page = paginator.paginate_queryset(queryset, request)
        return paginator.get_paginated_response(self.serializer_class(page, many=True).data)

    def post(self, request):
        principal = get_principal(request)
        serializer = self.serializer_class(data=request.data)
        if not serializer.is_valid():
            raise ValidationError('Validation error', details=serializer.errors)

        instance = DataAccessGateway.create(principal, self.model, serializer.validated_data)
        if instance is None:
            # A referenced row outside the caller's organization.
            raise NotFound()

        return Response(self.serializer_class(instance).data, status=status.HTTP_201_CREATED)


class ResourceDetailView(APIView):
    """
    GET|PATCH|DELETE for one row of a tenant-scoped model.

    Only reads carry a route-level action. Whether a write is allowed
    depends on the stored row (its organization and owner), so writes are
    decided by the gateway and a refused write is indistinguishable from a
    missing row.
    """
    permission_classes = [HasOrganizationAccess]
    model = None
    serializer_class = None

    def get_required_action(self, request):
        if request.method == 'GET':
            return f'{self.model.audit_entity}.view'
        return None

    def get(self, request, pk):
        instance = DataAccessGateway.get(get_principal(request), self.model, pk)
        if instance is None:
            raise NotFound()
        return Response(self.serializer_class(instance).data)

    def patch(self, request, pk):
        principal = get_principal(request)
        serializer = self.serializer_class(data=request.data, partial=True)
        if not serializer.is_valid():
            raise ValidationError('Validation error', details=serializer.errors)

        affected = DataAccessGateway.update(principal, self.model, pk, serializer.validated_data)
        if not affected:
            raise NotFound()

        instance = DataAccessGateway.get(principal, self.model, pk)
        if instance is None:
            return Response(status=status.HTTP_204_NO_CONTENT)
        return Response(self.serializer_class(instance).data)

    def delete(self, request, pk):
        affected = DataAccessGateway.delete(get_principal(request), self.model, pk)
        if not affected:
            raise NotFound()
        return Response(status=status.HTTP_204_NO_CONTENT)


class ResourceActionView(APIView):
    """
    POST a named domain action (``policy_action``) on one row.

    Subclasses implement ``apply(target, principal, data)``.
    """
    permission_classes = [HasOrganizationAccess]
    model = None
    serializer_class = None
    policy_action = None
    input_serializer_class = None

    def get_required_action(self, request):
        return self.policy_action

    def apply(self, target, principal, data):
        raise NotImplementedError

    def post(self, request, pk):
        principal = get_principal(request)
        data = {}
        if self.input_serializer_class is not None:
            serializer = self.input_serializer_class(data=request.data)
            if not serializer.is_valid():
                raise ValidationError('Validation error', details=serializer.errors)
            data = serializer.validated_data

        changed = []

        def apply(target, acting_principal):
            self.apply(target, acting_principal, data)
            changed.append(target)

        affected = DataAccessGateway.perform(principal, self.model, pk, self.policy_action, apply)
        if not affected:
            raise NotFound()
        return Response(self.serializer_class(changed[0]).data)


class ApproveView(ResourceActionView):
    """Four-eyes approval: the owner of the row can never approve it."""

    def apply(self, target, principal, data):
        if target.status == self.model.STATUS_APPROVED:
            raise ValidationError(f'{self.model._meta.verbose_name.capitalize()} is already approved')
        target.status = self.model.STATUS_APPROVED
        target.approved_by_id = principal.user_id
        target.approved_at = timezone.now()


# Sites

@extend_schema_view(
    get=extend_schema(tags=['Sites'], summary='List sites', responses={200: SiteSerializer(many=True)}),
    post=extend_schema(tags=['Sites'], summary='Create site', request=SiteSerializer,
                       responses={201: SiteSerializer}),
)
class SiteListView(ResourceListView):
    """GET|POST /v1/sites"""
    model = Site
    serializer_class = SiteSerializer
    filter_params = ('status', 'kind')


@extend_schema_view(
    get=extend_schema(tags=['Sites'], summary='Get site', responses={200: SiteSerializer}),
    patch=extend_schema(tags=['Sites'], summary='Update site', request=SiteSerializer,
                        responses={200: SiteSerializer}),
    delete=extend_schema(tags=['Sites'], summary='Delete site', responses={204: None}),
)
class SiteDetailView(ResourceDetailView):
    """GET|PATCH|DELETE /v1/sites/{id}"""
    model = Site
    serializer_class = SiteSerializer


# Daily reports

@extend_schema_view(
    get=extend_schema(
        tags=['Daily Reports'],
        summary='List daily reports',
        description='Collaborators only see reports they wrote.',
        responses={200: DailyReportSerializer(many=True)}
    ),
    post=extend_schema(tags=['Daily Reports'], summary='Create daily report',
                       request=DailyReportSerializer, responses={201: DailyReportSerializer}),
)
class DailyReportListView(ResourceListView):
    """GET|POST /v1/daily-reports"""
    model = DailyReport
    serializer_class = DailyReportSerializer
    filter_params = ('status', 'site_id', 'date')


@extend_schema_view(
    get=extend_schema(tags=['Daily Reports'], summary='Get daily report',
                      responses={200: DailyReportSerializer}),
    patch=extend_schema(tags=['Daily Reports'], summary='Update daily report',
                        request=DailyReportSerializer, responses={200: DailyReportSerializer}),
    delete=extend_schema(tags=['Daily Reports'], summary='Delete daily report', responses={204: None}),
)
class DailyReportDetailView(ResourceDetailView):
    """GET|PATCH|DELETE /v1/daily-reports/{id}"""
    model = DailyReport
    serializer_class = DailyReportSerializer


@extend_schema(
    tags=['Daily Reports'],
    summary='Approve daily report',
    description='Requires `rdo.approve`. The author of a report cannot approve it.',
    request=None,
    responses={200: DailyReportSerializer}
)
class DailyReportApproveView(ApproveView):
    """POST /v1/daily-reports/{id}/approve"""
    model = DailyReport
    serializer_class = DailyReportSerializer
    policy_action = 'rdo.approve'


# Expenses

@extend_schema_view(
    get=extend_schema(tags=['Expenses'], summary='List expenses',
                      responses={200: ExpenseSerializer(many=True)}),
    post=extend_schema(tags=['Expenses'], summary='Register expense',
                       request=ExpenseSerializer, responses={201: ExpenseSerializer}),
)
class ExpenseListView(ResourceListView):
    """GET|POST /v1/expenses"""
    model = Expense
    serializer_class = ExpenseSerializer
    filter_params = ('status', 'category', 'site_id')


@extend_schema_view(
    get=extend_schema(tags=['Expenses'], summary='Get expense', responses={200: ExpenseSerializer}),
    patch=extend_schema(tags=['Expenses'], summary='Update expense',
                        request=ExpenseSerializer, responses={200: ExpenseSerializer}),
    delete=extend_schema(tags=['Expenses'], summary='Delete expense', responses={204: None}),
)
class ExpenseDetailView(ResourceDetailView):
    """GET|PATCH|DELETE /v1/expenses/{id}"""
    model = Expense
    serializer_class = ExpenseSerializer


@extend_schema(
    tags=['Expenses'],
    summary='Approve expense',
    description='Requires `expense.approve`. Whoever registered the expense cannot approve it.',
    request=None,
    responses={200: ExpenseSerializer}
)
class ExpenseApproveView(ApproveView):
    """POST /v1/expenses/{id}/approve"""
    model = Expense
    serializer_class = ExpenseSerializer
    policy_action = 'expense.approve'


# Equipment

@extend_schema_view(
    get=extend_schema(tags=['Equipment'], summary='List equipment',
                      responses={200: EquipmentSerializer(many=True)}),
    post=extend_schema(tags=['Equipment'], summary='Register equipment',
                       request=EquipmentSerializer, responses={201: EquipmentSerializer}),
)
class EquipmentListView(ResourceListView):
    """GET|POST /v1/equipment"""
    model = Equipment
    serializer_class = EquipmentSerializer
    filter_params = ('status', 'site_id')


@extend_schema_view(
    get=extend_schema(tags=['Equipment'], summary='Get equipment', responses={200: EquipmentSerializer}),
    patch=extend_schema(tags=['Equipment'], summary='Update equipment',
                        request=EquipmentSerializer, responses={200: EquipmentSerializer}),
    delete=extend_schema(tags=['Equipment'], summary='Delete equipment', responses={204: None}),
)
class EquipmentDetailView(ResourceDetailView):
    """GET|PATCH|DELETE /v1/equipment/{id}"""
    model = Equipment
    serializer_class = EquipmentSerializer


# Team members

@extend_schema_view(
    get=extend_schema(tags=['Team Members'], summary='List team members',
                      responses={200: TeamMemberSerializer(many=True)}),
    post=extend_schema(tags=['Team Members'], summary='Add team member',
                       request=TeamMemberSerializer, responses={201: TeamMemberSerializer}),
)
class TeamMemberListView(ResourceListView):
    """GET|POST /v1/team-members"""
    model = TeamMember
    serializer_class = TeamMemberSerializer
    filter_params = ('site_id',)


@extend_schema_view(
    get=extend_schema(tags=['Team Members'], summary='Get team member',
                      responses={200: TeamMemberSerializer}),
    patch=extend_schema(tags=['Team Members'], summary='Update team member',
                        request=TeamMemberSerializer, responses={200: TeamMemberSerializer}),
    delete=extend_schema(tags=['Team Members'], summary='Remove team member', responses={204: None}),
)
class TeamMemberDetailView(ResourceDetailView):
    """GET|PATCH|DELETE /v1/team-members/{id}"""
    model = TeamMember
    serializer_class = TeamMemberSerializer


@extend_schema(
    tags=['Team Members'],
    summary='Record attendance',
    description='Any member may record attendance, including roles that cannot list team members.',
    request=AttendanceSerializer,
    responses={200: TeamMemberSerializer}
)
class TeamMemberAttendanceView(ResourceActionView):
    """POST /v1/team-members/{id}/attendance"""
    model = TeamMember
    serializer_class = TeamMemberSerializer
    input_serializer_class = AttendanceSerializer
    policy_action = 'colaborador.record_attendance'

    def apply(self, target, principal, data):
        target.last_attendance_at = data.get('at') or timezone.now()


# Documents

@extend_schema_view(
    get=extend_schema(tags=['Documents'], summary='List documents',
                      responses={200: DocumentSerializer(many=True)}),
    post=extend_schema(tags=['Documents'], summary='Register document',
                       request=DocumentSerializer, responses={201: DocumentSerializer}),
)
class DocumentListView(ResourceListView):
    """GET|POST /v1/documents"""
    model = Document
    serializer_class = DocumentSerializer
    filter_params = ('kind', 'site_id')


@extend_schema_view(
    get=extend_schema(tags=['Documents'], summary='Get document', responses={200: DocumentSerializer}),
    patch=extend_schema(tags=['Documents'], summary='Update document',
                        request=DocumentSerializer, responses={200: DocumentSerializer}),
    delete=extend_schema(tags=['Documents'], summary='Delete document', responses={204: None}),
)
class DocumentDetailView(ResourceDetailView):
    """GET|PATCH|DELETE /v1/documents/{id}"""
    model = Document
    serializer_class = DocumentSerializer
