"""
Pytest configuration and fixtures.
"""
import pytest
from django.conf import settings
import django


def pytest_configure(config):
    """Configure Django settings for tests."""
    settings.DATABASES['default'] = {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
        'ATOMIC_REQUESTS': False,
    }
    settings.PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']
    # The test client speaks plain http.
    settings.SECURE_SSL_REDIRECT = False
    django.setup()


TEST_PASSWORD = 'SecurePass123!'


@pytest.fixture
def api_client():
    """Return DRF API client."""
    from rest_framework.test import APIClient
    return APIClient()


@pytest.fixture
def make_user(db):
    """Factory creating active users with a known password."""
    from apps.rbac.models import User

    def _make_user(email, **extra):
        return User.objects.create_user(email=email, password=TEST_PASSWORD, **extra)

    return _make_user


@pytest.fixture
def admin_user(make_user):
    return make_user('admin@alpha.example')


@pytest.fixture
def organization(admin_user):
    """Organization owned by admin_user (Administrator membership included)."""
    from apps.tenants.services import OrganizationService
    return OrganizationService.create_for_user(admin_user, 'Alpha Construtora')


@pytest.fixture
def manager_user(make_user, organization, admin_user):
    from apps.rbac.models import Role
    from apps.tenants.services import TenantDirectory

    user = make_user('manager@alpha.example')
    TenantDirectory.add_membership(organization.pk, user.pk, Role.MANAGER, actor=admin_user)
    return user


@pytest.fixture
def collaborator_user(make_user, organization, admin_user):
    from apps.rbac.models import Role
    from apps.tenants.services import TenantDirectory

    user = make_user('collaborator@alpha.example')
    TenantDirectory.add_membership(organization.pk, user.pk, Role.COLLABORATOR, actor=admin_user)
    return user


@pytest.fixture
def other_admin(make_user):
    return make_user('admin@beta.example')


@pytest.fixture
def other_organization(other_admin):
    """A second, unrelated organization for isolation tests."""
    from apps.tenants.services import OrganizationService
    return OrganizationService.create_for_user(other_admin, 'Beta Engenharia')


@pytest.fixture
def principal_for(db):
    """Resolve the principal of a user inside an organization."""
    from apps.tenants.services import TenantDirectory

    def _principal_for(user, organization):
        return TenantDirectory.resolve_principal(user, organization.pk)

    return _principal_for


@pytest.fixture
def client_for(db):
    """API client authenticated as a user, optionally pinned to an organization."""
    from rest_framework.test import APIClient
    from apps.rbac.services import AuthService

    def _client_for(user, organization=None):
        client = APIClient()
        headers = {'HTTP_AUTHORIZATION': f'Bearer {AuthService.generate_jwt(user)}'}
        if organization is not None:
            headers['HTTP_X_ORGANIZATION_ID'] = str(organization.pk)
        client.credentials(**headers)
        return client

    return _client_for
