"""
Serializers for the audit trail.
"""
from rest_framework import serializers
from apps.audit.models import AuditLogEntry


class AuditLogEntrySerializer(serializers.ModelSerializer):
    timestamp = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = AuditLogEntry
        fields = [
            'id', 'timestamp', 'organization_id', 'actor_id', 'action',
            'entity_type', 'entity_id', 'metadata', 'request_id'
        ]
        read_only_fields = fields
