"""
Tenant directory service.

Answers "which role does user U hold in organization O" and owns the
membership lifecycle:
- Adding, inviting and reactivating members
- Role changes (effective on the next evaluation)
- Removal (row kept, status flipped)
- Principal resolution for each request
"""
import logging
import uuid
from typing import Optional

from django.db import transaction
from django.utils import timezone

from apps.audit.services import (
    AuditPipeline, CREATED, UPDATED, DELETED, actor_id_of, diff, snapshot
)
from apps.core.exceptions import (
    DuplicateMembership, MembershipNotFound, LastAdministrator, ValidationError
)
from apps.rbac.models import Role
from apps.rbac.principal import Principal
from apps.tenants.models import Membership

logger = logging.getLogger(__name__)


def _as_uuid(value) -> Optional[uuid.UUID]:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        return None


def _as_role(role) -> Role:
    try:
        return Role(role)
    except ValueError:
        raise ValidationError(
            f"Unknown role '{role}'",
            details={'role': [f"Must be one of: {', '.join(Role.values)}"]}
        )


class TenantDirectory:
    """
    Membership lookups and lifecycle operations.

    Only ``active`` memberships count for authorization. Nothing here is
    cached: every lookup reads the store.
    """

    @classmethod
    def get_membership(cls, user_id, organization_id) -> Optional[Membership]:
        """
        Get the active membership of a user in an organization.

        Invited and removed memberships are treated as absent.
        """
        user_id = _as_uuid(user_id)
        organization_id = _as_uuid(organization_id)
        if user_id is None or organization_id is None:
            return None
        return Membership.objects.get_active(organization_id, user_id)

    @classmethod
    def list_active_memberships(cls, user_id):
        """Active memberships of a user, oldest first."""
        return Membership.objects.for_user(user_id).select_related('organization')

    @classmethod
    def resolve_principal(cls, user, organization_id=None) -> Optional[Principal]:
        """
        Resolve the principal a request acts as.

        Args:
            user: Authenticated user
            organization_id: Requested organization context; defaults to the
                user's first active membership

        Returns:
            Principal, or None if the user has no active membership there
        """
        if user is None or not getattr(user, 'is_active', False):
            return None

        if organization_id:
            membership = cls.get_membership(user.pk, organization_id)
        else:
            membership = Membership.objects.for_user(user.pk).first()

        if membership is None:
            return None

        return Principal(
            user_id=user.pk,
            organization_id=membership.organization_id,
            role=Role(membership.role),
        )

    @classmethod
    @transaction.atomic
    def add_membership(cls, organization_id, user_id, role, actor=None) -> Membership:
        """
        Grant a user an active role in an organization.

        Reactivates an invited or removed row instead of creating a second one.

        Raises:
            DuplicateMembership: If an active membership already exists
            ValidationError: If role is unknown
        """
        role = _as_role(role)
        membership = Membership.objects.select_for_update().filter(
            organization_id=organization_id,
            user_id=user_id,
        ).first()

        if membership is not None and membership.is_active:
            raise DuplicateMembership(
                "User is already a member of this organization",
                details={'user_id': str(user_id)}
            )

        if membership is None:
            membership = Membership.objects.create(
                organization_id=organization_id,
                user_id=user_id,
                role=role,
                status=Membership.STATUS_ACTIVE,
                invited_by_id=actor_id_of(actor),
                joined_at=timezone.now(),
            )
            AuditPipeline.record_mutation(actor, membership, CREATED, {
                'user_id': membership.user_id,
                'role': membership.role,
                'status': membership.status,
            })
        else:
            before = snapshot(membership)
            membership.role = role
            membership.status = Membership.STATUS_ACTIVE
            membership.joined_at = timezone.now()
            membership.removed_at = None
            membership.save(update_fields=['role', 'status', 'joined_at', 'removed_at', 'updated_at'])
            AuditPipeline.record_mutation(actor, membership, UPDATED, diff(before, snapshot(membership)))

        logger.info(
            "Membership activated",
            extra={'organization_id': str(organization_id), 'user_id': str(user_id), 'role': role.value}
        )
        return membership

    @classmethod
    @transaction.atomic
    def invite_membership(cls, organization_id, user_id, role, actor=None) -> Membership:
        """
        Create a pending invitation. Grants nothing until accepted.

        Raises:
            DuplicateMembership: If the user is already active or invited
        """
        role = _as_role(role)
        membership = Membership.objects.select_for_update().filter(
            organization_id=organization_id,
            user_id=user_id,
        ).first()

        if membership is not None and membership.status != Membership.STATUS_REMOVED:
            raise DuplicateMembership(
                "User is already a member or has a pending invitation",
                details={'user_id': str(user_id)}
            )

        invited_by_id = actor_id_of(actor)
        if membership is None:
            membership = Membership.objects.create(
                organization_id=organization_id,
                user_id=user_id,
                role=role,
                status=Membership.STATUS_INVITED,
                invited_by_id=invited_by_id,
            )
            AuditPipeline.record_mutation(actor, membership, CREATED, {
                'user_id': membership.user_id,
                'role': membership.role,
                'status': membership.status,
            })
        else:
            before = snapshot(membership)
            membership.role = role
            membership.status = Membership.STATUS_INVITED
            membership.invited_by_id = invited_by_id
            membership.removed_at = None
            membership.save(update_fields=['role', 'status', 'invited_by', 'removed_at', 'updated_at'])
            AuditPipeline.record_mutation(actor, membership, UPDATED, diff(before, snapshot(membership)))

        return membership

    @classmethod
    @transaction.atomic
    def accept_invitation(cls, organization_id, user) -> Membership:
        """
        Activate a pending invitation for the invited user.

        Raises:
            MembershipNotFound: If there is no pending invitation
        """
        membership = Membership.objects.select_for_update().filter(
            organization_id=organization_id,
            user_id=user.pk,
            status=Membership.STATUS_INVITED,
        ).first()
        if membership is None:
            raise MembershipNotFound("No pending invitation for this organization")

        before = snapshot(membership)
        membership.status = Membership.STATUS_ACTIVE
        membership.joined_at = timezone.now()
        membership.save(update_fields=['status', 'joined_at', 'updated_at'])
        AuditPipeline.record_mutation(user, membership, UPDATED, diff(before, snapshot(membership)))
        return membership

    @classmethod
    @transaction.atomic
    def change_role(cls, organization_id, user_id, new_role, actor=None) -> Membership:
        """
        Change the role of an active member.

        Takes effect on the next evaluation; no role is cached anywhere.

        Raises:
            MembershipNotFound: If there is no active membership
            LastAdministrator: If this demotes the only Administrator
        """
        new_role = _as_role(new_role)
        membership = cls._lock_active(organization_id, user_id)

        if membership.role == Role.ADMINISTRATOR and new_role != Role.ADMINISTRATOR:
            cls._guard_last_administrator(membership)

        before = snapshot(membership)
        membership.role = new_role
        membership.save(update_fields=['role', 'updated_at'])
        AuditPipeline.record_mutation(actor, membership, UPDATED, diff(before, snapshot(membership)))

        logger.info(
            "Membership role changed",
            extra={
                'organization_id': str(organization_id),
                'user_id': str(user_id),
                'old_role': before['role'],
                'new_role': new_role.value,
            }
        )
        return membership

    @classmethod
    @transaction.atomic
    def remove_membership(cls, organization_id, user_id, actor=None) -> Membership:
        """
        Remove a member. The row is kept with status ``removed``.

        Raises:
            MembershipNotFound: If there is no active membership
            LastAdministrator: If this removes the only Administrator
        """
        membership = cls._lock_active(organization_id, user_id)

        if membership.role == Role.ADMINISTRATOR:
            cls._guard_last_administrator(membership)

        removed_snapshot = snapshot(membership)
        membership.status = Membership.STATUS_REMOVED
        membership.removed_at = timezone.now()
        membership.save(update_fields=['status', 'removed_at', 'updated_at'])
        AuditPipeline.record_mutation(actor, membership, DELETED, removed_snapshot)

        logger.info(
            "Membership removed",
            extra={'organization_id': str(organization_id), 'user_id': str(user_id)}
        )
        return membership

    @classmethod
    def _lock_active(cls, organization_id, user_id) -> Membership:
        membership = Membership.objects.select_for_update().filter(
            organization_id=organization_id,
            user_id=user_id,
            status=Membership.STATUS_ACTIVE,
        ).first()
        if membership is None:
            raise MembershipNotFound("Membership not found")
        return membership

    @classmethod
    def _guard_last_administrator(cls, membership: Membership):
        others = Membership.objects.for_organization(membership.organization_id).filter(
            role=Role.ADMINISTRATOR,
        ).exclude(pk=membership.pk)
        if not others.exists():
            raise LastAdministrator(
                "An organization must keep at least one Administrator"
            )
