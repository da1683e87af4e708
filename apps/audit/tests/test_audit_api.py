"""
Tests for the audit trail endpoint and rollback on failed audit writes.
"""
from unittest.mock import patch

import pytest
from django.db import DatabaseError

from apps.audit.models import AuditLogEntry
from apps.construction.models import Site


@pytest.mark.django_db
class TestAuditLogList:

    def test_lists_own_organization_only(self, client_for, admin_user, organization, other_admin,
                                         other_organization):
        client_for(admin_user, organization).post('/v1/sites', {'name': 'Alpha Site'}, format='json')
        client_for(other_admin, other_organization).post('/v1/sites', {'name': 'Beta Site'}, format='json')

        response = client_for(admin_user, organization).get('/v1/audit-logs', {'entity_type': 'obra'})

        assert response.status_code == 200
        results = response.json()['results']
        assert len(results) == 1
        assert results[0]['action'] == 'domain.obra_created'
        assert results[0]['organization_id'] == str(organization.pk)
        assert results[0]['metadata']['name'] == 'Alpha Site'

    def test_filter_by_action(self, client_for, admin_user, organization, manager_user):
        response = client_for(admin_user, organization).get(
            '/v1/audit-logs', {'action': 'domain.membership_created'}
        )

        actions = {entry['action'] for entry in response.json()['results']}
        assert actions == {'domain.membership_created'}

    def test_filter_by_actor(self, client_for, admin_user, organization, manager_user):
        client_for(manager_user, organization).post('/v1/sites', {'name': 'By manager'}, format='json')

        response = client_for(admin_user, organization).get('/v1/audit-logs', {'actor_id': str(manager_user.pk)})

        results = response.json()['results']
        assert [entry['action'] for entry in results] == ['domain.obra_created']

    def test_invalid_uuid_filter(self, client_for, admin_user, organization):
        response = client_for(admin_user, organization).get('/v1/audit-logs', {'actor_id': 'nope'})

        assert response.status_code == 400
        assert 'actor_id' in response.json()['error']['details']

    def test_invalid_date_filter(self, client_for, admin_user, organization):
        client = client_for(admin_user, organization)

        from_response = client.get('/v1/audit-logs', {'from_date': 'yesterday'})
        to_response = client.get('/v1/audit-logs', {'to_date': '2024-13-45'})

        assert from_response.status_code == 400
        assert 'from_date' in from_response.json()['error']['details']
        assert to_response.status_code == 400
        assert 'to_date' in to_response.json()['error']['details']

    def test_filter_by_date_range(self, client_for, admin_user, organization):
        client = client_for(admin_user, organization)
        client.post('/v1/sites', {'name': 'Alpha Site'}, format='json')

        recent = client.get('/v1/audit-logs', {'entity_type': 'obra', 'from_date': '2000-01-01T00:00:00Z'})
        ancient = client.get('/v1/audit-logs', {'entity_type': 'obra', 'to_date': '2000-01-02T00:00:00Z'})

        assert recent.status_code == 200
        assert recent.json()['count'] == 1
        assert ancient.status_code == 200
        assert ancient.json()['count'] == 0

    def test_denied_attempts_visible_to_target_organization(self, client_for, admin_user, organization,
                                                           other_admin, other_organization):
        site_id = client_for(admin_user, organization).post(
            '/v1/sites', {'name': 'Alpha Site'}, format='json'
        ).json()['id']

        attempt = client_for(other_admin, other_organization).patch(
            f'/v1/sites/{site_id}', {'name': 'HACKED'}, format='json'
        )
        assert attempt.status_code == 404

        victim_view = client_for(admin_user, organization).get(
            '/v1/audit-logs', {'action': 'security.access_denied'}
        ).json()['results']
        attacker_view = client_for(other_admin, other_organization).get(
            '/v1/audit-logs', {'action': 'security.access_denied'}
        ).json()['results']

        assert len(victim_view) == 1
        assert victim_view[0]['actor_id'] == str(other_admin.pk)
        assert attacker_view == []

    def test_collaborator_forbidden(self, client_for, collaborator_user, organization):
        response = client_for(collaborator_user, organization).get('/v1/audit-logs')

        assert response.status_code == 403
        assert response.json()['error']['code'] == 'FORBIDDEN'

    def test_write_methods_not_allowed(self, client_for, admin_user, organization):
        response = client_for(admin_user, organization).post('/v1/audit-logs', {}, format='json')

        assert response.status_code == 405


@pytest.mark.django_db
class TestAuditFailureRollback:

    def test_create_rolled_back_with_generic_error(self, client_for, admin_user, organization):
        with patch.object(AuditLogEntry.objects, 'create', side_effect=DatabaseError('disk full')):
            response = client_for(admin_user, organization).post('/v1/sites', {'name': 'Lost'}, format='json')

        assert response.status_code == 500
        assert response.json()['error'] == {
            'code': 'INTERNAL_ERROR',
            'message': 'An unexpected error occurred',
        }
        assert not Site.objects.filter(name='Lost').exists()

    def test_update_rolled_back(self, client_for, admin_user, organization):
        client = client_for(admin_user, organization)
        site_id = client.post('/v1/sites', {'name': 'Original'}, format='json').json()['id']

        with patch.object(AuditLogEntry.objects, 'create', side_effect=DatabaseError('disk full')):
            response = client.patch(f'/v1/sites/{site_id}', {'name': 'Changed'}, format='json')

        assert response.status_code == 500
        assert Site.objects.get(pk=site_id).name == 'Original'
