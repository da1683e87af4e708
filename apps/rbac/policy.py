"""
Static policy table: which roles may reach which routes and perform which actions.

Two parallel matrices:
- ROUTE_PERMISSIONS: navigational surface (frontend routes) -> allowed roles
- ACTION_PERMISSIONS: fine-grained operation name -> allowed roles

The table is the single source of truth for capabilities. It is loaded at
import time, validated by a system check (see apps.rbac.checks) and only
changes with a deploy.

Action names are ``<entity>.<verb>``. An action may have an own-resource
variant ``<entity>.<verb>.own`` that applies when the principal owns the row;
``<entity>.<verb>.any`` is the unrestricted form.
"""
import re
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple

from apps.rbac.models import Role

ADMIN = frozenset({Role.ADMINISTRATOR})
ADMIN_MANAGER = frozenset({Role.ADMINISTRATOR, Role.MANAGER})
EVERYONE = frozenset({Role.ADMINISTRATOR, Role.MANAGER, Role.COLLABORATOR})

OWN_SUFFIX = '.own'
ANY_SUFFIX = '.any'


@dataclass(frozen=True)
class PolicyRule:
    """
    One entry of the policy table.

    ``forbid_owner`` denies the action when the principal owns the target
    (four-eyes approval: nobody approves their own report or expense).
    """
    subject: str
    allowed_roles: FrozenSet[Role]
    description: str = ''
    forbid_owner: bool = False

    def allows(self, role) -> bool:
        # Membership rows hold plain strings; enum members hash by name.
        try:
            return Role(role) in self.allowed_roles
        except ValueError:
            return False


ROUTE_PERMISSIONS: Tuple[PolicyRule, ...] = (
    # Dashboard
    PolicyRule('/dashboard', EVERYONE, 'Main dashboard'),

    # Construction sites
    PolicyRule('/obras', EVERYONE, 'List sites'),
    PolicyRule('/obras/:id', EVERYONE, 'View site'),
    PolicyRule('/obras/:id/editar', ADMIN_MANAGER, 'Edit site'),

    # Daily reports (RDO)
    PolicyRule('/rdo', EVERYONE, 'List daily reports'),
    PolicyRule('/rdo/:id/visualizar', EVERYONE, 'View daily report'),
    PolicyRule('/rdo/:id/editar', EVERYONE, 'Edit daily report'),

    # Resources
    PolicyRule('/atividades', EVERYONE, 'Manage activities'),
    PolicyRule('/equipes', ADMIN_MANAGER, 'Manage teams'),
    PolicyRule('/equipes/novo', ADMIN_MANAGER, 'Create team'),
    PolicyRule('/equipes/:id/editar', ADMIN_MANAGER, 'Edit team'),
    PolicyRule('/colaboradores', ADMIN_MANAGER, 'Manage team members'),
    PolicyRule('/colaboradores/novo', ADMIN_MANAGER, 'Add team member'),
    PolicyRule('/colaboradores/:id/editar', ADMIN_MANAGER, 'Edit team member'),
    PolicyRule('/equipamentos', EVERYONE, 'Manage equipment'),
    PolicyRule('/despesas', EVERYONE, 'Manage expenses'),
    PolicyRule('/fornecedores', ADMIN_MANAGER, 'Manage suppliers'),

    # Checklists and documents
    PolicyRule('/checklist', EVERYONE, 'Manage checklists'),
    PolicyRule('/checklist/:id', EVERYONE, 'View checklist'),
    PolicyRule('/documentos', EVERYONE, 'Manage documents'),

    # Reports
    PolicyRule('/relatorios', ADMIN_MANAGER, 'View reports'),

    # Integrations
    PolicyRule('/integracoes', ADMIN_MANAGER, 'Manage integrations'),

    # Settings and profile
    PolicyRule('/configuracoes', ADMIN_MANAGER, 'System settings'),
    PolicyRule('/perfil', EVERYONE, 'User profile'),

    # Feedback and support
    PolicyRule('/feedback', EVERYONE, 'Send feedback'),
    PolicyRule('/faq', EVERYONE, 'FAQ'),

    # Security area
    PolicyRule('/seguranca', ADMIN_MANAGER, 'Security dashboard'),
)


ACTION_PERMISSIONS: Tuple[PolicyRule, ...] = (
    # Construction sites
    PolicyRule('obra.view', EVERYONE, 'View sites'),
    PolicyRule('obra.create', ADMIN_MANAGER, 'Create site'),
    PolicyRule('obra.edit.any', ADMIN_MANAGER, 'Edit any site'),
    PolicyRule('obra.delete', ADMIN, 'Delete site'),

    # Daily reports (RDO)
    PolicyRule('rdo.view', EVERYONE, 'View own daily reports'),
    PolicyRule('rdo.view.any', ADMIN_MANAGER, 'View every daily report'),
    PolicyRule('rdo.create', EVERYONE, 'Create daily report'),
    PolicyRule('rdo.edit.own', EVERYONE, 'Edit own daily report'),
    PolicyRule('rdo.edit.any', ADMIN_MANAGER, 'Edit any daily report'),
    PolicyRule('rdo.approve', ADMIN_MANAGER, 'Approve daily report', forbid_owner=True),
    PolicyRule('rdo.export', ADMIN_MANAGER, 'Export daily report'),
    PolicyRule('rdo.delete', ADMIN, 'Delete daily report'),

    # Expenses
    PolicyRule('expense.view', EVERYONE, 'View expenses'),
    PolicyRule('expense.create', EVERYONE, 'Register expense'),
    PolicyRule('expense.edit.own', EVERYONE, 'Edit own expense'),
    PolicyRule('expense.edit.any', ADMIN_MANAGER, 'Edit any expense'),
    PolicyRule('expense.approve', ADMIN_MANAGER, 'Approve expense', forbid_owner=True),
    PolicyRule('expense.delete', ADMIN, 'Delete expense'),

    # Equipment
    PolicyRule('equipamento.view', EVERYONE, 'View equipment'),
    PolicyRule('equipamento.create', ADMIN_MANAGER, 'Register equipment'),
    PolicyRule('equipamento.edit.any', ADMIN_MANAGER, 'Edit equipment'),
    PolicyRule('equipamento.delete', ADMIN, 'Delete equipment'),

    # Team members
    PolicyRule('colaborador.view', ADMIN_MANAGER, 'View team members'),
    PolicyRule('colaborador.create', ADMIN_MANAGER, 'Add team member'),
    PolicyRule('colaborador.edit.any', ADMIN_MANAGER, 'Edit team member'),
    PolicyRule('colaborador.delete', ADMIN, 'Remove team member'),
    PolicyRule('colaborador.record_attendance', EVERYONE, 'Record attendance'),

    # Documents
    PolicyRule('documento.view', EVERYONE, 'View documents'),
    PolicyRule('documento.create', EVERYONE, 'Register document'),
    PolicyRule('documento.edit.own', EVERYONE, 'Edit own document'),
    PolicyRule('documento.edit.any', ADMIN_MANAGER, 'Edit any document'),
    PolicyRule('documento.delete', ADMIN, 'Delete document'),

    # Organization membership
    PolicyRule('membership.view', ADMIN_MANAGER, 'List organization members'),
    PolicyRule('membership.add', ADMIN_MANAGER, 'Add member'),
    PolicyRule('membership.change_role', ADMIN, 'Change member role'),
    PolicyRule('membership.remove', ADMIN, 'Remove member'),
    PolicyRule('membership.grant_admin', ADMIN, 'Grant the Administrator role'),

    # Reports and exports
    PolicyRule('relatorio.view', ADMIN_MANAGER, 'View reports'),
    PolicyRule('relatorio.export', ADMIN_MANAGER, 'Export reports'),

    # Integrations
    PolicyRule('integracao.configure', ADMIN, 'Configure integrations'),
    PolicyRule('integracao.view', ADMIN, 'View integrations'),

    # System
    PolicyRule('sistema.config', ADMIN, 'Configure system'),
    PolicyRule('sistema.backup', ADMIN, 'System backup'),
    PolicyRule('audit.view', ADMIN_MANAGER, 'View audit trail'),
)


def _compile_route(path: str):
    pattern = re.sub(r'/:[^/]+', '/[^/]+', path.rstrip('/') or '/')
    return re.compile(f'^{pattern}/?$')


class PolicyTable:
    """
    Read-only lookup over the route and action matrices.
    """

    def __init__(self, routes: Iterable[PolicyRule], actions: Iterable[PolicyRule]):
        self.routes: Tuple[PolicyRule, ...] = tuple(routes)
        self.actions: Tuple[PolicyRule, ...] = tuple(actions)
        self._actions: Dict[str, PolicyRule] = {rule.subject: rule for rule in self.actions}
        self._route_patterns = [(_compile_route(rule.subject), rule) for rule in self.routes]

    def action_rule(self, action: str) -> Optional[PolicyRule]:
        return self._actions.get(action)

    def own_variant(self, action: str) -> Optional[PolicyRule]:
        """
        Return the own-resource rule for an action, if the table defines one.

        ``rdo.edit.any`` and ``rdo.edit`` both map to ``rdo.edit.own``.
        """
        if action.endswith(OWN_SUFFIX):
            return None
        base = action[:-len(ANY_SUFFIX)] if action.endswith(ANY_SUFFIX) else action
        return self._actions.get(base + OWN_SUFFIX)

    def route_rule(self, path: str) -> Optional[PolicyRule]:
        """Find the first route rule matching a concrete path (``/obras/42/editar``)."""
        for pattern, rule in self._route_patterns:
            if pattern.match(path):
                return rule
        return None

    def allowed_routes(self, role) -> List[str]:
        return [rule.subject for rule in self.routes if rule.allows(role)]

    def allowed_actions(self, role) -> List[str]:
        return [rule.subject for rule in self.actions if rule.allows(role)]

    def validate(self) -> List[Tuple[str, str]]:
        """
        Return ``(check_id, message)`` for every problem with the table.

        rbac.E001: duplicate subject
        rbac.E002: rule allowing no role or an unknown role
        rbac.E003: own-resource variant without a base action
        """
        problems = []
        known_roles = set(Role)
        for kind, rules in (('route', self.routes), ('action', self.actions)):
            seen = set()
            for rule in rules:
                if rule.subject in seen:
                    problems.append(('rbac.E001', f"Duplicate {kind} subject '{rule.subject}'"))
                seen.add(rule.subject)
                if not rule.allowed_roles:
                    problems.append(('rbac.E002', f"{kind.capitalize()} '{rule.subject}' allows no role"))
                unknown = set(rule.allowed_roles) - known_roles
                if unknown:
                    problems.append((
                        'rbac.E002',
                        f"{kind.capitalize()} '{rule.subject}' names unknown roles {sorted(map(str, unknown))}"
                    ))
        for rule in self.actions:
            if rule.subject.endswith(OWN_SUFFIX):
                base = rule.subject[:-len(OWN_SUFFIX)]
                if base + ANY_SUFFIX not in self._actions and base not in self._actions:
                    problems.append(('rbac.E003', f"Own variant '{rule.subject}' has no base action"))
        return problems


POLICY_TABLE = PolicyTable(ROUTE_PERMISSIONS, ACTION_PERMISSIONS)
