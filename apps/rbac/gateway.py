"""
Data access gateway.

The only path from request code to tenant-scoped rows. Every call takes a
resolved principal first; the organization is always taken from the
principal (for reads and creates) or from the stored row (for writes),
never from the caller's payload.

Denied and cross-organization requests get an empty result: ``None``,
an empty queryset or zero affected rows. The reason is only visible in the
security log and the audit trail.
"""
import logging
from typing import Any, Callable, Dict, Optional

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import models, transaction

from apps.audit.services import AuditPipeline, CREATED, UPDATED, DELETED, diff, snapshot
from apps.core.exceptions import ValidationError
from apps.core.security_logger import SecurityLogger
from apps.rbac.principal import Principal
from apps.rbac.services import PolicyEvaluator
from apps.tenants.models import TenantScopedModel

logger = logging.getLogger(__name__)

# Fields no caller may write.
PROTECTED_FIELDS = frozenset({
    'id', 'pk', 'organization', 'organization_id', 'owner', 'owner_id',
    'created_at', 'updated_at', 'deleted_at', 'deleted_by', 'deleted_by_id',
})

ACTION_ONLY_MESSAGE = 'Only writable through a domain action.'


class DataAccessGateway:
    """
    Tenant-isolating facade over the ORM for tenant-scoped models.
    """

    @classmethod
    def scoped(cls, principal: Optional[Principal], model):
        """
        Base queryset for the principal.

        Filters by the principal's organization, and by owner for
        owner-scoped models when the role lacks ``<entity>.view.any``.
        Caller filters can only narrow it.
        """
        if principal is None:
            return model.objects.none()

        entity = model.audit_entity
        decision = PolicyEvaluator.evaluate(principal, f'{entity}.view', principal.organization_id)
        if not decision:
            return model.objects.none()

        queryset = model.objects.filter(organization_id=principal.organization_id)
        if model.owner_scoped_reads and not cls._role_allows(decision.role, f'{entity}.view.any'):
            queryset = queryset.filter(owner_id=principal.user_id)
        return queryset

    @classmethod
    def filter(cls, principal: Optional[Principal], model, *args, **filters):
        return cls.scoped(principal, model).filter(*args, **filters)

    @classmethod
    def get(cls, principal: Optional[Principal], model, pk):
        """
        Fetch one row by id, or None if it is foreign, hidden or missing.
        """
        try:
            instance = cls.scoped(principal, model).filter(pk=pk).first()
        except (ValueError, DjangoValidationError):
            return None

        if instance is None and principal is not None:
            cls._log_foreign_read(principal, model, pk)
        return instance

    @classmethod
    def create(cls, principal: Optional[Principal], model, data: Dict[str, Any]):
        """
        Create a row in the principal's organization, owned by the principal.

        Returns:
            The created instance, or None if denied or a referenced row is
            not visible in the principal's organization
        """
        if principal is None:
            return None

        entity = model.audit_entity
        data = cls._writable(model, data)

        with transaction.atomic():
            decision = PolicyEvaluator.evaluate(
                principal, f'{entity}.create', principal.organization_id, entity_type=entity
            )
            if not decision:
                return None

            data = cls._bind_relations(principal, model, data)
            if data is None:
                return None

            instance = model(
                organization_id=principal.organization_id,
                owner_id=principal.user_id,
                **data
            )
            instance.save()
            AuditPipeline.record_mutation(principal, instance, CREATED, snapshot(instance))

        logger.info(
            f"{model.__name__} created",
            extra={'organization_id': str(principal.organization_id), 'entity_id': str(instance.pk)}
        )
        return instance

    @classmethod
    def update(cls, principal: Optional[Principal], model, pk, changes: Dict[str, Any]) -> int:
        """
        Apply ``changes`` to one row.

        Returns:
            Number of rows affected (0 or 1)
        """
        if principal is None:
            return 0

        entity = model.audit_entity
        changes = cls._writable(model, changes)

        with transaction.atomic():
            target = cls._lock(model, pk)
            if target is None:
                return 0
            if not cls._authorize_write(principal, target, f'{entity}.edit.any'):
                return 0

            changes = cls._bind_relations(principal, model, changes)
            if changes is None:
                return 0

            cls._check_action_only_transition(model, target, changes)

            before = snapshot(target)
            for field_name, value in changes.items():
                setattr(target, field_name, value)
            target.save()
            AuditPipeline.record_mutation(principal, target, UPDATED, diff(before, snapshot(target)))

        return 1

    @classmethod
    def delete(cls, principal: Optional[Principal], model, pk) -> int:
        """
        Soft delete one row. It records ``deleted_at``/``deleted_by`` and
        drops out of every scoped read.

        Returns:
            Number of rows affected (0 or 1)

        Raises:
            ValidationError: If other rows still reference the target
        """
        if principal is None:
            return 0

        entity = model.audit_entity

        with transaction.atomic():
            target = cls._lock(model, pk)
            if target is None:
                return 0
            if not cls._authorize_write(principal, target, f'{entity}.delete'):
                return 0

            cls._check_unreferenced(target)

            deleted_snapshot = snapshot(target)
            target.deleted_by_id = principal.user_id
            target.delete()
            AuditPipeline.record_mutation(principal, target, DELETED, deleted_snapshot)

        return 1

    @classmethod
    def perform(cls, principal: Optional[Principal], model, pk, action: str,
                apply: Callable[[Any, Principal], None]) -> int:
        """
        Run an audited domain action (e.g. 'rdo.approve') on one row.

        ``apply`` mutates the locked instance; the gateway saves and audits it.
        ``apply`` may raise ValidationError to abort without changes.

        Returns:
            Number of rows affected (0 or 1)
        """
        if principal is None:
            return 0

        with transaction.atomic():
            target = cls._lock(model, pk)
            if target is None:
                return 0
            if not cls._authorize_write(principal, target, action):
                return 0

            before = snapshot(target)
            apply(target, principal)
            target.save()
            metadata = diff(before, snapshot(target))
            metadata['action'] = action
            AuditPipeline.record_mutation(principal, target, UPDATED, metadata)

        return 1

    @classmethod
    def _role_allows(cls, role, action: str) -> bool:
        rule = PolicyEvaluator.table.action_rule(action)
        return rule is not None and rule.allows(role)

    @classmethod
    def _lock(cls, model, pk):
        try:
            return model.objects.select_for_update().filter(pk=pk).first()
        except (ValueError, DjangoValidationError):
            return None

    @classmethod
    def _authorize_write(cls, principal: Principal, target, action: str) -> bool:
        entity = target.audit_entity
        decision = PolicyEvaluator.evaluate(
            principal,
            action,
            target.organization_id,
            target.owner_id,
            entity_type=entity,
            entity_id=target.pk,
        )
        if decision:
            return True

        AuditPipeline.record_denied(
            principal, action, target.organization_id, entity, target.pk, decision.reason
        )
        return False

    @classmethod
    def _writable(cls, model, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Drop protected fields. Reject unknown ones and anything only a
        domain action may write.
        """
        allowed = {}
        names = {}
        for field in model._meta.concrete_fields:
            names[field.name] = field.name
            names[field.attname] = field.name

        unknown = []
        action_only = []
        for key, value in (data or {}).items():
            if key in PROTECTED_FIELDS:
                logger.debug(f"Ignoring protected field '{key}' on {model.__name__}")
                continue
            if key not in names:
                unknown.append(key)
                continue
            name = names[key]
            if name in model.action_only_fields or value in model.action_only_values.get(name, ()):
                action_only.append(key)
                continue
            allowed[key] = value

        if unknown:
            raise ValidationError(
                "Unknown fields",
                details={key: ['Unknown field.'] for key in unknown}
            )
        if action_only:
            raise ValidationError(
                "Fields only writable through a domain action",
                details={key: [ACTION_ONLY_MESSAGE] for key in action_only}
            )
        return allowed

    @classmethod
    def _check_action_only_transition(cls, model, target, changes: Dict[str, Any]):
        """
        Values set by a domain action (e.g. an approved status) are not
        edited back by a plain update.
        """
        for name, values in model.action_only_values.items():
            current = getattr(target, name)
            if current in values and changes.get(name, current) != current:
                raise ValidationError(
                    "Fields only writable through a domain action",
                    details={name: [ACTION_ONLY_MESSAGE]}
                )

    @classmethod
    def _check_unreferenced(cls, target):
        """
        Refuse to delete a row that live rows still reference through a
        protected foreign key.
        """
        for relation in target._meta.related_objects:
            if relation.on_delete is not models.PROTECT or relation.many_to_many:
                continue
            related_model = relation.related_model
            manager = related_model._default_manager
            if manager.filter(**{relation.field.name: target}).exists():
                raise ValidationError(
                    f"{target._meta.verbose_name.capitalize()} is still referenced by other records"
                )
    @classmethod
    def _bind_relations(cls, principal: Principal, model, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Resolve references to other tenant-scoped rows inside the
        principal's organization. Returns None if any is not found there.
        """
        data = dict(data)
        for field in model._meta.concrete_fields:
            if not field.many_to_one or not issubclass(field.related_model, TenantScopedModel):
                continue

            for key in (field.name, field.attname):
                if key not in data:
                    continue
                value = data.pop(key)
                if value is None:
                    data[field.name] = None
                    continue

                related_pk = getattr(value, 'pk', value)
                try:
                    related = field.related_model.objects.filter(
                        pk=related_pk,
                        organization_id=principal.organization_id,
                    ).first()
                except (ValueError, DjangoValidationError):
                    related = None

                if related is None:
                    SecurityLogger.log_not_authorized(
                        principal.user_id,
                        principal.organization_id,
                        f'{model.audit_entity}.{field.name}',
                        entity_id=related_pk,
                    )
                    return None
                data[field.name] = related
        return data

    @classmethod
    def _log_foreign_read(cls, principal: Principal, model, pk):
        try:
            organization_id = model.objects.filter(pk=pk).values_list('organization_id', flat=True).first()
        except (ValueError, DjangoValidationError):
            return
        if organization_id is not None and organization_id != principal.organization_id:
            SecurityLogger.log_isolation_violation(
                user_id=principal.user_id,
                principal_organization_id=principal.organization_id,
                resource_organization_id=organization_id,
                action=f'{model.audit_entity}.view',
                entity_type=model.audit_entity,
                entity_id=pk,
            )
