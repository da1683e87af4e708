"""
Tests for membership management API endpoints.
"""
import pytest
from rest_framework import status

from apps.audit.models import AuditLogEntry
from apps.rbac.models import Role
from apps.tenants.models import Membership
from apps.tenants.services import TenantDirectory


@pytest.mark.django_db
class TestMembershipList:
    """Test GET /v1/memberships."""

    def test_admin_lists_members(self, client_for, organization, admin_user, manager_user, collaborator_user):
        response = client_for(admin_user).get('/v1/memberships')

        assert response.status_code == status.HTTP_200_OK
        emails = {row['email'] for row in response.data['results']}
        assert emails == {admin_user.email, manager_user.email, collaborator_user.email}

    def test_only_own_organization(self, client_for, organization, admin_user, other_organization, other_admin):
        response = client_for(admin_user).get('/v1/memberships')

        emails = {row['email'] for row in response.data['results']}
        assert other_admin.email not in emails

    def test_collaborator_forbidden(self, client_for, organization, collaborator_user):
        response = client_for(collaborator_user).get('/v1/memberships')

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data['error']['code'] == 'FORBIDDEN'

    def test_unauthenticated(self, api_client):
        response = api_client.get('/v1/memberships')

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.django_db
class TestMembershipCreate:
    """Test POST /v1/memberships."""

    def test_admin_adds_member(self, client_for, organization, admin_user, make_user):
        user = make_user('new@alpha.example')

        response = client_for(admin_user).post(
            '/v1/memberships', {'email': user.email, 'role': 'Manager'}, format='json'
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['role'] == 'Manager'
        assert response.data['status'] == 'active'
        assert TenantDirectory.get_membership(user.pk, organization.pk).role == Role.MANAGER

    def test_invite(self, client_for, organization, admin_user, make_user):
        user = make_user('invitee@alpha.example')

        response = client_for(admin_user).post(
            '/v1/memberships', {'email': user.email, 'invite': True}, format='json'
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['status'] == 'invited'

    def test_unknown_email(self, client_for, organization, admin_user):
        response = client_for(admin_user).post(
            '/v1/memberships', {'email': 'ghost@example.com'}, format='json'
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'email' in response.data['error']['details']

    def test_duplicate(self, client_for, organization, admin_user, manager_user):
        response = client_for(admin_user).post(
            '/v1/memberships', {'email': manager_user.email}, format='json'
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['error']['code'] == 'DUPLICATE_MEMBERSHIP'

    def test_manager_cannot_grant_administrator(self, client_for, organization, manager_user, make_user):
        user = make_user('new@alpha.example')

        response = client_for(manager_user).post(
            '/v1/memberships', {'email': user.email, 'role': 'Administrator'}, format='json'
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert not Membership.objects.filter(organization=organization, user=user).exists()

    def test_manager_adds_collaborator(self, client_for, organization, manager_user, make_user):
        user = make_user('new@alpha.example')

        response = client_for(manager_user).post(
            '/v1/memberships', {'email': user.email, 'role': 'Collaborator'}, format='json'
        )

        assert response.status_code == status.HTTP_201_CREATED


@pytest.mark.django_db
class TestMembershipDetail:
    """Test PATCH|DELETE /v1/memberships/{user_id}."""

    def test_change_role(self, client_for, organization, admin_user, collaborator_user):
        response = client_for(admin_user).patch(
            f'/v1/memberships/{collaborator_user.pk}', {'role': 'Manager'}, format='json'
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data['role'] == 'Manager'

    def test_manager_cannot_change_roles(self, client_for, organization, manager_user, collaborator_user):
        response = client_for(manager_user).patch(
            f'/v1/memberships/{collaborator_user.pk}', {'role': 'Manager'}, format='json'
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_demoting_last_administrator(self, client_for, organization, admin_user):
        response = client_for(admin_user).patch(
            f'/v1/memberships/{admin_user.pk}', {'role': 'Manager'}, format='json'
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['error']['code'] == 'LAST_ADMINISTRATOR'

    def test_remove_revokes_access(self, client_for, organization, admin_user, manager_user):
        manager_client = client_for(manager_user)
        assert manager_client.get('/v1/sites').status_code == status.HTTP_200_OK

        response = client_for(admin_user).delete(f'/v1/memberships/{manager_user.pk}')

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert manager_client.get('/v1/sites').status_code == status.HTTP_403_FORBIDDEN

    def test_member_of_other_organization(self, client_for, organization, admin_user,
                                          other_organization, other_admin):
        response = client_for(admin_user).delete(f'/v1/memberships/{other_admin.pk}')

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert TenantDirectory.get_membership(other_admin.pk, other_organization.pk) is not None


@pytest.mark.django_db
class TestAcceptInvitation:
    """Test POST /v1/memberships/accept."""

    def test_accept(self, client_for, organization, admin_user, make_user):
        invitee = make_user('invitee@alpha.example')
        TenantDirectory.invite_membership(organization.pk, invitee.pk, Role.COLLABORATOR, actor=admin_user)

        response = client_for(invitee).post(
            '/v1/memberships/accept', {'organization_id': str(organization.pk)}, format='json'
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data['status'] == 'active'
        assert AuditLogEntry.objects.filter(
            action='domain.membership_updated', actor_id=invitee.pk
        ).exists()

    def test_accept_without_invitation(self, client_for, organization, make_user):
        response = client_for(make_user('nobody@example.com')).post(
            '/v1/memberships/accept', {'organization_id': str(organization.pk)}, format='json'
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND
