"""
Tests for application startup.
"""
import os
import subprocess
import sys

import pytest
from django.conf import settings


class TestStartup:

    def test_fresh_interpreter_sets_up_django(self):
        env = dict(os.environ, DJANGO_SETTINGS_MODULE='config.settings')
        result = subprocess.run(
            [
                sys.executable, '-c',
                'import django; django.setup(); '
                'from apps.core.exceptions import AccessDenied; '
                'import apps.rbac.services, apps.tenants.models, config.urls',
            ],
            cwd=settings.BASE_DIR,
            env=env,
            capture_output=True,
            text=True,
            timeout=120,
        )

        assert result.returncode == 0, result.stderr

    def test_validation_skipped_outside_serving_processes(self, monkeypatch):
        from django.apps import apps

        monkeypatch.setattr(sys, 'argv', ['pytest'])
        monkeypatch.setattr(settings, 'JWT_SECRET_KEY', 'short')

        apps.get_app_config('core').ready()

    def test_validation_enforced_for_runserver(self, monkeypatch):
        from django.apps import apps
        from django.core.exceptions import ImproperlyConfigured

        monkeypatch.setattr(sys, 'argv', ['manage.py', 'runserver'])
        monkeypatch.setattr(settings, 'JWT_SECRET_KEY', 'short')

        with pytest.raises(ImproperlyConfigured):
            apps.get_app_config('core').ready()


@pytest.mark.django_db
def test_plain_http_request_not_redirected(api_client):
    response = api_client.get('/v1/me/permissions')

    assert response.status_code == 401
