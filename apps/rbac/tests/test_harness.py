"""
Tests for the isolation harness and the verify_isolation command.
"""
from io import StringIO
from unittest.mock import patch

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError

from apps.audit.models import AuditLogEntry
from apps.construction.models import Site
from apps.rbac.harness import IsolationHarness
from apps.rbac.models import User
from apps.tenants.models import Organization


class LeakyHarness(IsolationHarness):
    """Harness with one vector that always reports a leak."""

    def vectors(self):
        return super().vectors() + [self.leaky_vector]

    def leaky_vector(self, fixtures):
        return False, 'victim row returned'


class BrokenHarness(IsolationHarness):

    def vectors(self):
        return [self.broken_vector]

    def broken_vector(self, fixtures):
        raise RuntimeError('boom')


@pytest.mark.django_db
class TestIsolationHarness:

    def test_every_vector_blocked(self):
        results = IsolationHarness(run_id='test').run()

        assert len(results) == 9
        assert [result.label for result in results] == ['PASS'] * 9

    def test_fixtures_torn_down(self):
        IsolationHarness(run_id='teardown').run()

        assert not User.objects.filter(email__endswith='@isolation.invalid').exists()
        assert not Organization.objects.exists()
        assert not Site.objects_with_deleted.exists()

    def test_partial_setup_torn_down(self):
        with patch('apps.rbac.harness.DataAccessGateway.create', return_value=None):
            with pytest.raises(RuntimeError, match='confidential site'):
                IsolationHarness(run_id='partial').run()

        assert not User.objects.filter(email__endswith='@isolation.invalid').exists()
        assert not Organization.objects.exists()

    def test_audit_entries_kept(self):
        IsolationHarness(run_id='audit').run()

        assert AuditLogEntry.objects.by_action('security.access_denied').exists()

    def test_raising_vector_fails(self):
        results = BrokenHarness(run_id='broken').run()

        assert len(results) == 1
        assert not results[0].passed
        assert results[0].detail == 'RuntimeError: boom'


@pytest.mark.django_db
class TestVerifyIsolationCommand:

    def test_all_pass(self):
        out = StringIO()

        call_command('verify_isolation', stdout=out)

        output = out.getvalue()
        assert output.count('PASS') == 9
        assert 'FAIL' not in output
        assert 'All 9 attack vectors blocked' in output

    def test_failure_raises(self):
        out = StringIO()

        with patch('apps.rbac.management.commands.verify_isolation.IsolationHarness', LeakyHarness):
            with pytest.raises(CommandError, match='1 of 10 attack vectors were not blocked'):
                call_command('verify_isolation', stdout=out)

        assert 'FAIL  10. leaky vector (victim row returned)' in out.getvalue()
