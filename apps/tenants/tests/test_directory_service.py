"""
Tests for the tenant directory: membership lookups and lifecycle.
"""
import uuid

import pytest

from apps.audit.models import AuditLogEntry
from apps.core.exceptions import (
    DuplicateMembership, LastAdministrator, MembershipNotFound, ValidationError
)
from apps.rbac.models import Role
from apps.tenants.models import Membership
from apps.tenants.services import TenantDirectory


@pytest.mark.django_db
class TestGetMembership:
    """Only active memberships are visible to authorization."""

    def test_active_membership_found(self, organization, admin_user):
        membership = TenantDirectory.get_membership(admin_user.pk, organization.pk)

        assert membership is not None
        assert membership.role == Role.ADMINISTRATOR

    def test_accepts_string_ids(self, organization, admin_user):
        assert TenantDirectory.get_membership(str(admin_user.pk), str(organization.pk)) is not None

    def test_invalid_ids_return_none(self, organization):
        assert TenantDirectory.get_membership('not-a-uuid', organization.pk) is None
        assert TenantDirectory.get_membership(None, organization.pk) is None

    def test_other_organization_not_found(self, admin_user, other_organization):
        assert TenantDirectory.get_membership(admin_user.pk, other_organization.pk) is None

    def test_invited_membership_is_absent(self, organization, admin_user, make_user):
        invitee = make_user('invitee@alpha.example')
        TenantDirectory.invite_membership(organization.pk, invitee.pk, Role.MANAGER, actor=admin_user)

        assert TenantDirectory.get_membership(invitee.pk, organization.pk) is None

    def test_removed_membership_is_absent(self, organization, admin_user, collaborator_user):
        TenantDirectory.remove_membership(organization.pk, collaborator_user.pk, actor=admin_user)

        assert TenantDirectory.get_membership(collaborator_user.pk, organization.pk) is None


@pytest.mark.django_db
class TestResolvePrincipal:

    def test_defaults_to_first_active_membership(self, organization, admin_user, other_organization):
        TenantDirectory.add_membership(other_organization.pk, admin_user.pk, Role.COLLABORATOR)

        principal = TenantDirectory.resolve_principal(admin_user)

        assert principal.organization_id == organization.pk
        assert principal.role == Role.ADMINISTRATOR

    def test_explicit_organization(self, organization, admin_user, other_organization):
        TenantDirectory.add_membership(other_organization.pk, admin_user.pk, Role.COLLABORATOR)

        principal = TenantDirectory.resolve_principal(admin_user, str(other_organization.pk))

        assert principal.organization_id == other_organization.pk
        assert principal.role == Role.COLLABORATOR

    def test_requested_organization_without_membership(self, organization, admin_user, other_organization):
        assert TenantDirectory.resolve_principal(admin_user, other_organization.pk) is None

    def test_garbage_organization_header(self, organization, admin_user):
        assert TenantDirectory.resolve_principal(admin_user, 'garbage') is None

    def test_inactive_user(self, organization, admin_user):
        admin_user.is_active = False
        admin_user.save()

        assert TenantDirectory.resolve_principal(admin_user, organization.pk) is None

    def test_user_without_memberships(self, make_user):
        assert TenantDirectory.resolve_principal(make_user('loner@example.com')) is None


@pytest.mark.django_db
class TestAddMembership:

    def test_creates_active_membership_and_audits(self, organization, admin_user, make_user):
        user = make_user('new@alpha.example')

        membership = TenantDirectory.add_membership(organization.pk, user.pk, 'Manager', actor=admin_user)

        assert membership.status == Membership.STATUS_ACTIVE
        assert membership.role == Role.MANAGER
        assert membership.invited_by_id == admin_user.pk
        assert membership.joined_at is not None

        entry = AuditLogEntry.objects.get(action='domain.membership_created', entity_id=membership.pk)
        assert entry.organization_id == organization.pk
        assert entry.actor_id == admin_user.pk
        assert entry.metadata['role'] == 'Manager'

    def test_duplicate_active_membership(self, organization, admin_user, manager_user):
        with pytest.raises(DuplicateMembership):
            TenantDirectory.add_membership(organization.pk, manager_user.pk, Role.COLLABORATOR)

    def test_unknown_role(self, organization, make_user):
        user = make_user('new@alpha.example')

        with pytest.raises(ValidationError):
            TenantDirectory.add_membership(organization.pk, user.pk, 'Owner')

    def test_reactivates_removed_membership(self, organization, admin_user, collaborator_user):
        removed = TenantDirectory.remove_membership(organization.pk, collaborator_user.pk, actor=admin_user)

        membership = TenantDirectory.add_membership(
            organization.pk, collaborator_user.pk, Role.MANAGER, actor=admin_user
        )

        assert membership.pk == removed.pk
        assert membership.status == Membership.STATUS_ACTIVE
        assert membership.removed_at is None
        assert Membership.objects.filter(organization=organization, user=collaborator_user).count() == 1

        entry = AuditLogEntry.objects.filter(
            action='domain.membership_updated', entity_id=membership.pk
        ).latest('created_at')
        assert entry.metadata['status'] == {'old': 'removed', 'new': 'active'}
        assert entry.metadata['role'] == {'old': 'Collaborator', 'new': 'Manager'}


@pytest.mark.django_db
class TestInvitations:

    def test_invite_then_accept(self, organization, admin_user, make_user):
        invitee = make_user('invitee@alpha.example')

        invitation = TenantDirectory.invite_membership(
            organization.pk, invitee.pk, Role.COLLABORATOR, actor=admin_user
        )
        assert invitation.status == Membership.STATUS_INVITED
        assert TenantDirectory.resolve_principal(invitee, organization.pk) is None

        membership = TenantDirectory.accept_invitation(organization.pk, invitee)

        assert membership.status == Membership.STATUS_ACTIVE
        assert TenantDirectory.resolve_principal(invitee, organization.pk).role == Role.COLLABORATOR

    def test_invite_existing_member(self, organization, manager_user):
        with pytest.raises(DuplicateMembership):
            TenantDirectory.invite_membership(organization.pk, manager_user.pk, Role.COLLABORATOR)

    def test_accept_without_invitation(self, organization, make_user):
        with pytest.raises(MembershipNotFound):
            TenantDirectory.accept_invitation(organization.pk, make_user('nobody@example.com'))


@pytest.mark.django_db
class TestChangeRole:

    def test_change_role_takes_effect_immediately(self, organization, admin_user, manager_user):
        principal = TenantDirectory.resolve_principal(manager_user, organization.pk)

        TenantDirectory.change_role(organization.pk, manager_user.pk, Role.COLLABORATOR, actor=admin_user)

        membership = TenantDirectory.get_membership(principal.user_id, principal.organization_id)
        assert membership.role == Role.COLLABORATOR
        assert AuditLogEntry.objects.filter(
            action='domain.membership_updated', entity_id=membership.pk
        ).exists()

    def test_cannot_demote_last_administrator(self, organization, admin_user):
        with pytest.raises(LastAdministrator):
            TenantDirectory.change_role(organization.pk, admin_user.pk, Role.MANAGER)

    def test_can_demote_when_another_administrator_exists(self, organization, admin_user, manager_user):
        TenantDirectory.change_role(organization.pk, manager_user.pk, Role.ADMINISTRATOR, actor=admin_user)

        membership = TenantDirectory.change_role(organization.pk, admin_user.pk, Role.MANAGER, actor=manager_user)

        assert membership.role == Role.MANAGER

    def test_change_role_of_non_member(self, organization, make_user):
        with pytest.raises(MembershipNotFound):
            TenantDirectory.change_role(organization.pk, make_user('x@example.com').pk, Role.MANAGER)


@pytest.mark.django_db
class TestRemoveMembership:

    def test_remove_keeps_row(self, organization, admin_user, collaborator_user):
        membership = TenantDirectory.remove_membership(organization.pk, collaborator_user.pk, actor=admin_user)

        assert membership.status == Membership.STATUS_REMOVED
        assert membership.removed_at is not None
        assert Membership.objects.filter(pk=membership.pk).exists()

        entry = AuditLogEntry.objects.get(action='domain.membership_deleted', entity_id=membership.pk)
        assert entry.metadata['status'] == 'active'
        assert entry.metadata['user_id'] == str(collaborator_user.pk)

    def test_cannot_remove_last_administrator(self, organization, admin_user):
        with pytest.raises(LastAdministrator):
            TenantDirectory.remove_membership(organization.pk, admin_user.pk)

    def test_remove_twice(self, organization, admin_user, collaborator_user):
        TenantDirectory.remove_membership(organization.pk, collaborator_user.pk, actor=admin_user)

        with pytest.raises(MembershipNotFound):
            TenantDirectory.remove_membership(organization.pk, collaborator_user.pk, actor=admin_user)

    def test_unknown_user(self, organization):
        with pytest.raises(MembershipNotFound):
            TenantDirectory.remove_membership(organization.pk, uuid.uuid4())
