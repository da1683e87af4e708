"""
Audit pipeline.

Every mutation writes exactly one entry inside the mutation's own atomic
block. A failed audit write aborts that block, so no change is ever
committed without its record.
"""
import json
import logging
from typing import Any, Dict, Optional

from django.core.serializers.json import DjangoJSONEncoder
from django.db import DatabaseError, connection

from apps.audit.models import AuditLogEntry
from apps.core.exceptions import AuditWriteFailure
from apps.core.middleware import get_request_id
from apps.core.security_logger import SecurityLogger
from apps.rbac.principal import Principal

logger = logging.getLogger(__name__)

CREATED = 'created'
UPDATED = 'updated'
DELETED = 'deleted'

ACCESS_DENIED = 'security.access_denied'

# Never copied into audit metadata.
SNAPSHOT_EXCLUDE = frozenset({'password_hash', 'updated_at', 'deleted_at', 'deleted_by_id'})


def snapshot(instance) -> Dict[str, Any]:
    """Concrete field values of a model instance, keyed by attribute name."""
    return {
        field.attname: getattr(instance, field.attname)
        for field in instance._meta.concrete_fields
        if field.attname not in SNAPSHOT_EXCLUDE
    }


def diff(before: Dict[str, Any], after: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    """Changed fields as ``{field: {'old': ..., 'new': ...}}``."""
    return {
        key: {'old': before.get(key), 'new': value}
        for key, value in after.items()
        if before.get(key) != value
    }


def actor_id_of(actor):
    if actor is None:
        return None
    if isinstance(actor, Principal):
        return actor.user_id
    return actor.pk


class AuditPipeline:
    """
    Writes audit entries for mutations and refused write attempts.
    """

    @classmethod
    def record_mutation(cls, actor, instance, verb: str, metadata: Optional[Dict[str, Any]] = None,
                        organization_id=None, entity_id=None) -> AuditLogEntry:
        """
        Record a create, update or delete of ``instance``.

        Args:
            actor: Principal, User or None for system actions
            instance: Mutated model instance (declares ``audit_entity``)
            verb: One of 'created', 'updated', 'deleted'
            metadata: Created payload, field diff or deleted snapshot
            organization_id: Defaults to ``instance.organization_id``
            entity_id: Defaults to ``instance.pk`` (needed after a delete)

        Returns:
            AuditLogEntry instance

        Raises:
            AuditWriteFailure: If called outside a transaction or the write fails
        """
        if verb not in (CREATED, UPDATED, DELETED):
            raise ValueError(f"Unknown audit verb '{verb}'")

        entity_type = instance.audit_entity
        return cls._write(
            action=f"domain.{entity_type}_{verb}",
            organization_id=organization_id or instance.organization_id,
            actor_id=actor_id_of(actor),
            entity_type=entity_type,
            entity_id=entity_id or instance.pk,
            metadata=metadata or {},
        )

    @classmethod
    def record_denied(cls, principal: Principal, action: str, organization_id,
                      entity_type: str, entity_id, reason: str) -> AuditLogEntry:
        """
        Record a refused write attempt against the target's organization.

        The caller never sees this entry or the reason.
        """
        return cls._write(
            action=ACCESS_DENIED,
            organization_id=organization_id,
            actor_id=principal.user_id,
            entity_type=entity_type,
            entity_id=entity_id,
            metadata={
                'attempted_action': action,
                'reason': reason,
                'principal_organization_id': principal.organization_id,
            },
        )

    @classmethod
    def _write(cls, action, organization_id, actor_id, entity_type, entity_id, metadata):
        if not connection.in_atomic_block:
            exc = AuditWriteFailure("Audit entries must be written inside the mutation's transaction")
            SecurityLogger.log_audit_failure(exc, action, organization_id, entity_id)
            raise exc

        try:
            payload = json.loads(json.dumps(metadata, cls=DjangoJSONEncoder))
            entry = AuditLogEntry.objects.create(
                organization_id=organization_id,
                actor_id=actor_id,
                action=action,
                entity_type=entity_type,
                entity_id=entity_id,
                metadata=payload,
                request_id=get_request_id() or '',
            )
        except (DatabaseError, TypeError, ValueError) as exc:
            SecurityLogger.log_audit_failure(exc, action, organization_id, entity_id)
            raise AuditWriteFailure(
                f"Failed to write audit entry '{action}'",
                details={'entity_type': entity_type},
            ) from exc

        logger.debug(
            f"Audit entry written: {action}",
            extra={'organization_id': str(organization_id), 'entity_id': str(entity_id)}
        )
        return entry
