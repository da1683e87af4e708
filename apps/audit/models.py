"""
Audit trail model.

Entries reference organizations, actors and entities by id only, so they
outlive the rows they describe.
"""
from datetime import timedelta

from django.core.serializers.json import DjangoJSONEncoder
from django.db import models
from django.utils import timezone

from apps.core.exceptions import AuditLogImmutable
from apps.core.models import BaseModel


class AuditLogQuerySet(models.QuerySet):
    """Query helpers for audit entries. Bulk writes are refused."""

    def update(self, **kwargs):
        raise AuditLogImmutable("Audit log entries cannot be updated")

    def delete(self):
        raise AuditLogImmutable("Audit log entries cannot be deleted")

    def for_organization(self, organization_id):
        return self.filter(organization_id=organization_id)

    def for_actor(self, actor_id):
        return self.filter(actor_id=actor_id)

    def by_action(self, action):
        return self.filter(action=action)

    def by_entity(self, entity_type, entity_id=None):
        """Get entries for an entity type and optionally one entity."""
        qs = self.filter(entity_type=entity_type)
        if entity_id:
            qs = qs.filter(entity_id=entity_id)
        return qs

    def by_request(self, request_id):
        return self.filter(request_id=request_id)

    def recent(self, days=30):
        """Get entries from the last N days."""
        cutoff = timezone.now() - timedelta(days=days)
        return self.filter(created_at__gte=cutoff)


class AuditLogEntry(BaseModel):
    """
    One immutable audit record.

    ``action`` is namespaced: ``domain.<entity>_<created|updated|deleted>``
    for mutations, ``security.access_denied`` for refused write attempts.
    """

    organization_id = models.UUIDField(
        db_index=True,
        help_text="Organization the audited entity belongs to"
    )
    actor_id = models.UUIDField(
        null=True,
        blank=True,
        db_index=True,
        help_text="User who performed the action (null for system actions)"
    )
    action = models.CharField(
        max_length=100,
        db_index=True,
        help_text="Namespaced action (e.g., 'domain.obra_created')"
    )
    entity_type = models.CharField(
        max_length=50,
        help_text="Entity name (e.g., 'obra', 'rdo', 'membership')"
    )
    entity_id = models.UUIDField(
        null=True,
        blank=True,
        help_text="ID of the audited entity"
    )
    metadata = models.JSONField(
        default=dict,
        blank=True,
        encoder=DjangoJSONEncoder,
        help_text="Created payload, field diff or deleted snapshot"
    )
    request_id = models.CharField(
        max_length=64,
        blank=True,
        default='',
        db_index=True,
        help_text="Request ID for tracing"
    )

    objects = AuditLogQuerySet.as_manager()

    class Meta:
        db_table = 'audit_log_entries'
        ordering = ['-created_at']
        verbose_name_plural = 'audit log entries'
        indexes = [
            models.Index(fields=['organization_id', 'created_at'], name='audit_log_e_organiz_8a2f10_idx'),
            models.Index(fields=['entity_type', 'entity_id'], name='audit_log_e_entity__3d9b47_idx'),
            models.Index(fields=['organization_id', 'action', 'created_at'], name='audit_log_e_organiz_e51c08_idx'),
        ]

    def __str__(self):
        return f"{self.organization_id} - {self.actor_id or 'system'} - {self.action}"

    @property
    def timestamp(self):
        return self.created_at

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise AuditLogImmutable("Audit log entries cannot be updated")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise AuditLogImmutable("Audit log entries cannot be deleted")
