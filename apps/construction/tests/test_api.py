"""
Tests for the construction resource endpoints.
"""
import datetime
import uuid

import pytest

from apps.audit.models import AuditLogEntry
from apps.construction.models import DailyReport, Expense, Site, TeamMember


@pytest.fixture
def admin_client(client_for, admin_user, organization):
    return client_for(admin_user, organization)


@pytest.fixture
def manager_client(client_for, manager_user, organization):
    return client_for(manager_user, organization)


@pytest.fixture
def collaborator_client(client_for, collaborator_user, organization):
    return client_for(collaborator_user, organization)


@pytest.fixture
def attacker_client(client_for, other_admin, other_organization):
    return client_for(other_admin, other_organization)


@pytest.fixture
def site_id(admin_client):
    response = admin_client.post('/v1/sites', {'name': 'Residencial Jardins', 'kind': 'residential'}, format='json')
    assert response.status_code == 201
    return response.json()['id']


def create_report(client, site_id, date='2024-05-10'):
    response = client.post('/v1/daily-reports', {
        'site_id': site_id,
        'date': date,
        'weather': 'sunny',
        'activities': 'Concretagem da laje',
    }, format='json')
    assert response.status_code == 201
    return response.json()['id']


@pytest.mark.django_db
class TestSites:

    def test_create_and_read(self, admin_client, site_id, organization, admin_user):
        response = admin_client.get(f'/v1/sites/{site_id}')

        assert response.status_code == 200
        data = response.json()
        assert data['name'] == 'Residencial Jardins'
        assert data['organization_id'] == str(organization.pk)
        assert data['owner_id'] == str(admin_user.pk)

    def test_list_filter(self, admin_client, site_id):
        admin_client.post('/v1/sites', {'name': 'Shopping Sul', 'kind': 'commercial'}, format='json')

        response = admin_client.get('/v1/sites', {'kind': 'commercial'})

        assert response.json()['count'] == 1
        assert response.json()['results'][0]['name'] == 'Shopping Sul'

    def test_organization_in_payload_ignored(self, admin_client, organization, other_organization):
        response = admin_client.post('/v1/sites', {
            'name': 'Smuggled',
            'organization_id': str(other_organization.pk),
        }, format='json')

        assert response.status_code == 201
        assert response.json()['organization_id'] == str(organization.pk)

    def test_end_before_start_rejected(self, admin_client):
        response = admin_client.post('/v1/sites', {
            'name': 'Backwards',
            'start_date': '2024-06-01',
            'expected_end_date': '2024-01-01',
        }, format='json')

        assert response.status_code == 400
        assert 'expected_end_date' in response.json()['error']['details']

    def test_update(self, manager_client, site_id):
        response = manager_client.patch(f'/v1/sites/{site_id}', {'status': 'in_progress'}, format='json')

        assert response.status_code == 200
        assert response.json()['status'] == 'in_progress'

    def test_collaborator_cannot_create(self, collaborator_client):
        response = collaborator_client.post('/v1/sites', {'name': 'Nope'}, format='json')

        assert response.status_code == 403
        assert not Site.objects.filter(name='Nope').exists()

    def test_collaborator_update_looks_missing(self, collaborator_client, site_id):
        response = collaborator_client.patch(f'/v1/sites/{site_id}', {'name': 'X'}, format='json')

        assert response.status_code == 404

    def test_admin_deletes(self, admin_client, site_id):
        assert admin_client.delete(f'/v1/sites/{site_id}').status_code == 204
        assert not Site.objects.filter(pk=site_id).exists()
        assert Site.objects_with_deleted.get(pk=site_id).is_deleted
        assert admin_client.get(f'/v1/sites/{site_id}').status_code == 404
        assert AuditLogEntry.objects.by_action('domain.obra_deleted').count() == 1

    def test_manager_delete_looks_missing(self, manager_client, site_id):
        assert manager_client.delete(f'/v1/sites/{site_id}').status_code == 404
        assert Site.objects.filter(pk=site_id).exists()

    def test_referenced_site_not_deleted(self, admin_client, site_id):
        create_report(admin_client, site_id)

        response = admin_client.delete(f'/v1/sites/{site_id}')

        assert response.status_code == 400
        assert Site.objects.filter(pk=site_id).exists()

    def test_unknown_id(self, admin_client):
        assert admin_client.get(f'/v1/sites/{uuid.uuid4()}').status_code == 404


@pytest.mark.django_db
class TestCrossTenant:

    def test_read_foreign_site(self, attacker_client, site_id):
        assert attacker_client.get(f'/v1/sites/{site_id}').status_code == 404
        assert attacker_client.get('/v1/sites').json()['count'] == 0

    def test_update_foreign_site(self, attacker_client, site_id):
        response = attacker_client.patch(f'/v1/sites/{site_id}', {'name': 'HACKED'}, format='json')

        assert response.status_code == 404
        assert Site.objects.get(pk=site_id).name == 'Residencial Jardins'

    def test_delete_foreign_site(self, attacker_client, site_id):
        assert attacker_client.delete(f'/v1/sites/{site_id}').status_code == 404
        assert Site.objects.filter(pk=site_id).exists()

    def test_report_on_foreign_site(self, attacker_client, site_id):
        response = attacker_client.post('/v1/daily-reports', {
            'site_id': site_id,
            'date': '2024-05-10',
        }, format='json')

        assert response.status_code == 404
        assert not DailyReport.objects.exists()

    def test_header_for_foreign_organization(self, client_for, other_admin, organization, site_id):
        client = client_for(other_admin, organization)

        assert client.get('/v1/sites').status_code == 403

    def test_malformed_filter_id(self, admin_client):
        response = admin_client.get('/v1/daily-reports', {'site_id': 'abc'})

        assert response.status_code == 400

    def test_malformed_filter_date(self, admin_client):
        response = admin_client.get('/v1/daily-reports', {'date': 'not-a-date'})

        assert response.status_code == 400
        assert 'date' in response.json()['error']['details']

    def test_filter_by_date(self, manager_client, site_id):
        create_report(manager_client, site_id, date='2024-05-10')
        create_report(manager_client, site_id, date='2024-05-11')

        response = manager_client.get('/v1/daily-reports', {'date': '2024-05-11'})

        assert response.status_code == 200
        assert [report['date'] for report in response.json()['results']] == ['2024-05-11']


@pytest.mark.django_db
class TestDailyReports:

    def test_collaborator_sees_own_reports_only(self, manager_client, collaborator_client, site_id):
        own_id = create_report(collaborator_client, site_id)
        other_id = create_report(manager_client, site_id, date='2024-05-11')

        listed = [report['id'] for report in collaborator_client.get('/v1/daily-reports').json()['results']]

        assert listed == [own_id]
        assert collaborator_client.get(f'/v1/daily-reports/{other_id}').status_code == 404
        assert manager_client.get('/v1/daily-reports').json()['count'] == 2

    def test_collaborator_edits_own_report(self, collaborator_client, site_id):
        report_id = create_report(collaborator_client, site_id)

        response = collaborator_client.patch(
            f'/v1/daily-reports/{report_id}', {'notes': 'Chuva à tarde'}, format='json'
        )

        assert response.status_code == 200
        assert response.json()['notes'] == 'Chuva à tarde'

    def test_status_approved_only_through_approval(self, collaborator_client, site_id):
        report_id = create_report(collaborator_client, site_id)

        response = collaborator_client.patch(
            f'/v1/daily-reports/{report_id}', {'status': 'approved'}, format='json'
        )

        assert response.status_code == 400
        assert DailyReport.objects.get(pk=report_id).status == DailyReport.STATUS_DRAFT

    def test_manager_approves_collaborator_report(self, manager_client, collaborator_client, site_id,
                                                  manager_user):
        report_id = create_report(collaborator_client, site_id)

        response = manager_client.post(f'/v1/daily-reports/{report_id}/approve')

        assert response.status_code == 200
        assert response.json()['status'] == 'approved'
        assert response.json()['approved_by_id'] == str(manager_user.pk)
        entry = AuditLogEntry.objects.by_action('domain.rdo_updated').get()
        assert entry.metadata['action'] == 'rdo.approve'

    def test_approving_twice_rejected(self, manager_client, collaborator_client, site_id):
        report_id = create_report(collaborator_client, site_id)
        manager_client.post(f'/v1/daily-reports/{report_id}/approve')

        response = manager_client.post(f'/v1/daily-reports/{report_id}/approve')

        assert response.status_code == 400
        assert AuditLogEntry.objects.by_action('domain.rdo_updated').count() == 1

    def test_manager_cannot_approve_own_report(self, manager_client, site_id):
        report_id = create_report(manager_client, site_id)

        response = manager_client.post(f'/v1/daily-reports/{report_id}/approve')

        assert response.status_code == 404
        assert DailyReport.objects.get(pk=report_id).status == DailyReport.STATUS_DRAFT
        denied = AuditLogEntry.objects.by_action('security.access_denied').get()
        assert denied.metadata['attempted_action'] == 'rdo.approve'

    def test_collaborator_cannot_approve(self, collaborator_client, manager_client, site_id):
        report_id = create_report(manager_client, site_id)

        assert collaborator_client.post(f'/v1/daily-reports/{report_id}/approve').status_code == 403


@pytest.mark.django_db
class TestExpenses:

    def test_register_and_approve(self, collaborator_client, admin_client):
        response = collaborator_client.post('/v1/expenses', {
            'description': 'Vergalhão CA-50',
            'amount': '1520.40',
            'category': 'materials',
            'status': 'approved',
        }, format='json')
        assert response.status_code == 201
        assert response.json()['status'] == Expense.STATUS_PENDING

        approved = admin_client.post(f"/v1/expenses/{response.json()['id']}/approve")

        assert approved.status_code == 200
        assert approved.json()['status'] == Expense.STATUS_APPROVED

    def test_non_positive_amount(self, collaborator_client):
        response = collaborator_client.post('/v1/expenses', {
            'description': 'Nada',
            'amount': '0',
        }, format='json')

        assert response.status_code == 400
        assert 'amount' in response.json()['error']['details']


@pytest.mark.django_db
class TestTeamMembers:

    def test_collaborator_records_attendance(self, manager_client, collaborator_client):
        member_id = manager_client.post('/v1/team-members', {
            'name': 'José Pedreiro',
            'function': 'Pedreiro',
        }, format='json').json()['id']

        response = collaborator_client.post(
            f'/v1/team-members/{member_id}/attendance', {'at': '2024-05-10T07:30:00Z'}, format='json'
        )

        assert response.status_code == 200
        assert TeamMember.objects.get(pk=member_id).last_attendance_at == datetime.datetime(
            2024, 5, 10, 7, 30, tzinfo=datetime.timezone.utc
        )

    def test_collaborator_cannot_list(self, collaborator_client):
        assert collaborator_client.get('/v1/team-members').status_code == 403

    def test_foreign_attendance(self, manager_client, attacker_client):
        member_id = manager_client.post('/v1/team-members', {'name': 'Maria'}, format='json').json()['id']

        response = attacker_client.post(f'/v1/team-members/{member_id}/attendance', {}, format='json')

        assert response.status_code == 404
        assert TeamMember.objects.get(pk=member_id).last_attendance_at is None


@pytest.mark.django_db
class TestEquipmentAndDocuments:

    def test_equipment_on_site(self, manager_client, site_id):
        response = manager_client.post('/v1/equipment', {
            'name': 'Betoneira 400L', 'code': 'BT-01', 'site_id': site_id
        }, format='json')

        assert response.status_code == 201
        assert manager_client.get('/v1/equipment', {'site_id': site_id}).json()['count'] == 1

    def test_collaborator_edits_own_document_only(self, collaborator_client, admin_client):
        own = collaborator_client.post('/v1/documents', {'title': 'Foto fachada', 'kind': 'photo'}, format='json')
        other = admin_client.post('/v1/documents', {'title': 'Contrato', 'kind': 'contract'}, format='json')

        assert collaborator_client.patch(
            f"/v1/documents/{own.json()['id']}", {'title': 'Foto fachada 2'}, format='json'
        ).status_code == 200
        assert collaborator_client.patch(
            f"/v1/documents/{other.json()['id']}", {'title': 'Mine now'}, format='json'
        ).status_code == 404
