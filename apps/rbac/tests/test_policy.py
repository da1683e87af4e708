"""
Tests for the static policy table.
"""
import pytest
from django.core.management import call_command

from apps.rbac.checks import check_policy_table
from apps.rbac.models import Role
from apps.rbac.policy import (
    ADMIN, ADMIN_MANAGER, EVERYONE, POLICY_TABLE, PolicyRule, PolicyTable
)


class TestPolicyRule:

    def test_allows_enum_and_plain_string(self):
        rule = PolicyRule('obra.create', ADMIN_MANAGER)

        assert rule.allows(Role.MANAGER)
        assert rule.allows('Manager')
        assert not rule.allows(Role.COLLABORATOR)

    def test_unknown_role_denied(self):
        assert not PolicyRule('obra.view', EVERYONE).allows('Owner')
        assert not PolicyRule('obra.view', EVERYONE).allows(None)


class TestPolicyTable:

    @pytest.mark.parametrize('action, role, allowed', [
        ('obra.view', Role.COLLABORATOR, True),
        ('obra.create', Role.COLLABORATOR, False),
        ('obra.create', Role.MANAGER, True),
        ('obra.delete', Role.MANAGER, False),
        ('obra.delete', Role.ADMINISTRATOR, True),
        ('rdo.approve', Role.COLLABORATOR, False),
        ('rdo.approve', Role.MANAGER, True),
        ('colaborador.view', Role.COLLABORATOR, False),
        ('colaborador.record_attendance', Role.COLLABORATOR, True),
        ('membership.grant_admin', Role.MANAGER, False),
        ('audit.view', Role.COLLABORATOR, False),
    ])
    def test_action_matrix(self, action, role, allowed):
        assert POLICY_TABLE.action_rule(action).allows(role) is allowed

    def test_unknown_action(self):
        assert POLICY_TABLE.action_rule('obra.teleport') is None

    def test_own_variant(self):
        assert POLICY_TABLE.own_variant('rdo.edit.any').subject == 'rdo.edit.own'
        assert POLICY_TABLE.own_variant('rdo.edit').subject == 'rdo.edit.own'
        assert POLICY_TABLE.own_variant('rdo.edit.own') is None
        assert POLICY_TABLE.own_variant('obra.edit.any') is None

    def test_route_matching(self):
        assert POLICY_TABLE.route_rule('/obras/42/editar').subject == '/obras/:id/editar'
        assert POLICY_TABLE.route_rule('/obras/').subject == '/obras'
        assert POLICY_TABLE.route_rule('/nowhere') is None

    def test_allowed_routes_by_role(self):
        collaborator_routes = POLICY_TABLE.allowed_routes(Role.COLLABORATOR)

        assert '/rdo' in collaborator_routes
        assert '/configuracoes' not in collaborator_routes
        assert '/configuracoes' in POLICY_TABLE.allowed_routes(Role.MANAGER)

    def test_administrator_holds_every_action(self):
        assert POLICY_TABLE.allowed_actions(Role.ADMINISTRATOR) == [
            rule.subject for rule in POLICY_TABLE.actions
        ]


class TestPolicyValidation:

    def test_shipped_table_is_consistent(self):
        assert POLICY_TABLE.validate() == []
        assert check_policy_table(None) == []

    def test_duplicate_subject(self):
        table = PolicyTable([], [PolicyRule('obra.view', ADMIN), PolicyRule('obra.view', EVERYONE)])

        assert [check_id for check_id, _ in table.validate()] == ['rbac.E001']

    def test_rule_without_roles(self):
        table = PolicyTable([PolicyRule('/obras', frozenset())], [])

        assert [check_id for check_id, _ in table.validate()] == ['rbac.E002']

    def test_orphan_own_variant(self):
        table = PolicyTable([], [PolicyRule('obra.edit.own', EVERYONE)])

        assert [check_id for check_id, _ in table.validate()] == ['rbac.E003']

    def test_system_check_passes(self):
        call_command('check', tags=['rbac'])
