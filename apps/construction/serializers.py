"""
Serializers for construction resources.

References to other tenant-scoped rows are plain ids. They are resolved by
the data access gateway inside the caller's organization, never here.
"""
from rest_framework import serializers

from apps.construction.models import (
    Site, DailyReport, Expense, Equipment, TeamMember, Document
)

TENANT_READ_ONLY = ['id', 'organization_id', 'owner_id', 'created_at', 'updated_at']


class TenantScopedSerializer(serializers.ModelSerializer):
    """Base serializer exposing organization and owner as read-only ids."""

    organization_id = serializers.UUIDField(read_only=True)
    owner_id = serializers.UUIDField(read_only=True)


class SiteSerializer(TenantScopedSerializer):
    class Meta:
        model = Site
        fields = TENANT_READ_ONLY + [
            'name', 'slug', 'location', 'client', 'kind', 'status',
            'start_date', 'expected_end_date', 'budget'
        ]
        read_only_fields = TENANT_READ_ONLY

    def validate(self, attrs):
        start = attrs.get('start_date', getattr(self.instance, 'start_date', None))
        end = attrs.get('expected_end_date', getattr(self.instance, 'expected_end_date', None))
        if start and end and end < start:
            raise serializers.ValidationError(
                {'expected_end_date': 'Expected end date cannot be before the start date.'}
            )
        return attrs


class DailyReportSerializer(TenantScopedSerializer):
    site_id = serializers.UUIDField()
    approved_by_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = DailyReport
        fields = TENANT_READ_ONLY + [
            'site_id', 'date', 'weather', 'activities', 'notes',
            'status', 'approved_by_id', 'approved_at'
        ]
        read_only_fields = TENANT_READ_ONLY + ['approved_at']

    def validate_status(self, value):
        # Approval has its own endpoint.
        if value in (DailyReport.STATUS_APPROVED, DailyReport.STATUS_REJECTED):
            raise serializers.ValidationError("Use the approval endpoint to approve or reject.")
        return value


class ExpenseSerializer(TenantScopedSerializer):
    site_id = serializers.UUIDField(required=False, allow_null=True)
    approved_by_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = Expense
        fields = TENANT_READ_ONLY + [
            'site_id', 'description', 'amount', 'category', 'status',
            'spent_on', 'approved_by_id', 'approved_at'
        ]
        read_only_fields = TENANT_READ_ONLY + ['status', 'approved_at']

    def validate_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError("Amount must be positive.")
        return value


class EquipmentSerializer(TenantScopedSerializer):
    site_id = serializers.UUIDField(required=False, allow_null=True)

    class Meta:
        model = Equipment
        fields = TENANT_READ_ONLY + ['name', 'code', 'status', 'site_id']
        read_only_fields = TENANT_READ_ONLY


class TeamMemberSerializer(TenantScopedSerializer):
    site_id = serializers.UUIDField(required=False, allow_null=True)

    class Meta:
        model = TeamMember
        fields = TENANT_READ_ONLY + [
            'name', 'function', 'phone', 'email', 'site_id', 'last_attendance_at'
        ]
        read_only_fields = TENANT_READ_ONLY + ['last_attendance_at']


class DocumentSerializer(TenantScopedSerializer):
    site_id = serializers.UUIDField(required=False, allow_null=True)

    class Meta:
        model = Document
        fields = TENANT_READ_ONLY + ['site_id', 'title', 'kind', 'storage_path']
        read_only_fields = TENANT_READ_ONLY


class AttendanceSerializer(serializers.Serializer):
    at = serializers.DateTimeField(required=False, help_text="Defaults to now")
