"""
Adversarial isolation harness.

Plays a victim and an attacker, each owning an organization, and replays
known attack vectors against the data access gateway. Every assertion reads
through the unscoped model manager, never through the attacker's view.
"""
import logging
import uuid
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from django.db import transaction

from apps.audit.models import AuditLogEntry
from apps.audit.services import ACCESS_DENIED
from apps.construction.models import Site
from apps.rbac.gateway import DataAccessGateway
from apps.rbac.models import Role, User
from apps.rbac.services import AuthService, PolicyEvaluator
from apps.tenants.models import Membership, Organization
from apps.tenants.services import TenantDirectory

logger = logging.getLogger(__name__)

CONFIDENTIAL = 'Confidential'
HACKED = 'HACKED'


@dataclass
class VectorResult:
    """Outcome of one attack vector. ``passed`` means the attack was blocked."""
    number: int
    name: str
    passed: bool
    detail: str = ''

    @property
    def label(self):
        return 'PASS' if self.passed else 'FAIL'


@dataclass
class Fixtures:
    victim: Optional[User] = None
    victim_org: Optional[Organization] = None
    attacker: Optional[User] = None
    attacker_org: Optional[Organization] = None
    site: Optional[Site] = None


class IsolationHarness:
    """
    Runs every attack vector and returns one result per vector.

    Usage:
        results = IsolationHarness().run()
        assert all(result.passed for result in results)
    """

    password = 'Harness-Only-Password-1!'

    def __init__(self, run_id: Optional[str] = None):
        self.run_id = run_id or uuid.uuid4().hex[:12]

    def vectors(self) -> List[Callable[[Fixtures], Tuple[bool, str]]]:
        return [
            self.read_by_id,
            self.read_by_filter,
            self.update_foreign_row,
            self.delete_foreign_row,
            self.delete_as_excluded_role,
            self.organization_smuggling,
            self.removed_member,
            self.role_downgrade,
            self.no_audit_for_denied,
        ]

    def run(self) -> List[VectorResult]:
        fixtures = Fixtures()
        results = []
        try:
            self._setup(fixtures)
            for number, vector in enumerate(self.vectors(), start=1):
                results.append(self._run_vector(number, vector, fixtures))
        finally:
            self._teardown(fixtures)
        return results

    def _run_vector(self, number, vector, fixtures) -> VectorResult:
        name = vector.__name__.replace('_', ' ')
        try:
            passed, detail = vector(fixtures)
        except Exception as exc:
            logger.exception(f"Isolation vector {number} raised")
            return VectorResult(number, name, False, f"{exc.__class__.__name__}: {exc}")
        return VectorResult(number, name, passed, detail)

    # Fixtures

    def _register(self, role_name: str):
        result = AuthService.register_user(
            email=f'{role_name}-{self.run_id}@isolation.invalid',
            password=self.password,
            organization_name=f'{role_name.capitalize()} {self.run_id}',
        )
        return result['user'], result['organization']

    def _setup(self, fixtures: Fixtures):
        """Fill ``fixtures`` in place so a partial setup can still be torn down."""
        fixtures.victim, fixtures.victim_org = self._register('victim')
        fixtures.attacker, fixtures.attacker_org = self._register('attacker')

        victim_principal = TenantDirectory.resolve_principal(fixtures.victim, fixtures.victim_org.pk)
        fixtures.site = DataAccessGateway.create(victim_principal, Site, {'name': CONFIDENTIAL})
        if fixtures.site is None:
            raise RuntimeError("Victim could not create the confidential site")

    @transaction.atomic
    def _teardown(self, fixtures: Fixtures):
        organization_ids = [
            organization.pk for organization in (fixtures.victim_org, fixtures.attacker_org)
            if organization is not None
        ]
        user_ids = [user.pk for user in (fixtures.victim, fixtures.attacker) if user is not None]
        Site.objects_with_deleted.filter(organization_id__in=organization_ids).hard_delete()
        Membership.objects.filter(organization_id__in=organization_ids).delete()
        Organization.objects.filter(pk__in=organization_ids).delete()
        User.objects.filter(pk__in=user_ids).delete()

    def _attacker(self, fixtures: Fixtures, organization=None):
        organization_id = organization.pk if organization else None
        return TenantDirectory.resolve_principal(fixtures.attacker, organization_id)

    def _site_row(self, fixtures: Fixtures):
        return Site.objects.filter(pk=fixtures.site.pk).first()

    # Vectors

    def read_by_id(self, fixtures):
        found = DataAccessGateway.get(self._attacker(fixtures), Site, fixtures.site.pk)
        return found is None, 'get() returned None' if found is None else 'victim row returned'

    def read_by_filter(self, fixtures):
        count = DataAccessGateway.filter(
            self._attacker(fixtures), Site, organization_id=fixtures.victim_org.pk
        ).count()
        return count == 0, f'{count} rows visible'

    def update_foreign_row(self, fixtures):
        affected = DataAccessGateway.update(
            self._attacker(fixtures), Site, fixtures.site.pk, {'name': HACKED}
        )
        name = self._site_row(fixtures).name
        return affected == 0 and name == CONFIDENTIAL, f'{affected} rows affected, name={name!r}'

    def delete_foreign_row(self, fixtures):
        affected = DataAccessGateway.delete(self._attacker(fixtures), Site, fixtures.site.pk)
        remaining = Site.objects.filter(pk=fixtures.site.pk).count()
        return affected == 0 and remaining == 1, f'{affected} rows affected, {remaining} remaining'

    def delete_as_excluded_role(self, fixtures):
        TenantDirectory.add_membership(
            fixtures.victim_org.pk, fixtures.attacker.pk, Role.COLLABORATOR, actor=fixtures.victim
        )
        principal = self._attacker(fixtures, fixtures.victim_org)
        affected = DataAccessGateway.delete(principal, Site, fixtures.site.pk)
        remaining = Site.objects.filter(pk=fixtures.site.pk).count()
        return affected == 0 and remaining == 1, (
            f'as {principal.role}: {affected} rows affected, {remaining} remaining'
        )

    def organization_smuggling(self, fixtures):
        attacker = self._attacker(fixtures, fixtures.attacker_org)
        smuggled = DataAccessGateway.create(
            attacker, Site, {'name': 'Smuggled', 'organization_id': fixtures.victim_org.pk}
        )
        created_in_own = smuggled is not None and smuggled.organization_id == fixtures.attacker_org.pk

        DataAccessGateway.update(
            attacker, Site, fixtures.site.pk, {'organization_id': fixtures.attacker_org.pk}
        )
        moved = self._site_row(fixtures).organization_id != fixtures.victim_org.pk
        return created_in_own and not moved, (
            f'create landed in own organization: {created_in_own}, victim row moved: {moved}'
        )

    def removed_member(self, fixtures):
        victim_org = fixtures.victim_org
        TenantDirectory.change_role(
            victim_org.pk, fixtures.attacker.pk, Role.MANAGER, actor=fixtures.victim
        )
        principal = self._attacker(fixtures, victim_org)
        if DataAccessGateway.get(principal, Site, fixtures.site.pk) is None:
            return False, 'member could not read before removal; vector inconclusive'

        TenantDirectory.remove_membership(victim_org.pk, fixtures.attacker.pk, actor=fixtures.victim)
        visible = DataAccessGateway.get(principal, Site, fixtures.site.pk) is not None
        affected = DataAccessGateway.update(principal, Site, fixtures.site.pk, {'name': HACKED})
        name = self._site_row(fixtures).name
        return not visible and affected == 0 and name == CONFIDENTIAL, (
            f'visible after removal: {visible}, {affected} rows affected'
        )

    def role_downgrade(self, fixtures):
        victim_org = fixtures.victim_org
        TenantDirectory.add_membership(
            victim_org.pk, fixtures.attacker.pk, Role.MANAGER, actor=fixtures.victim
        )
        principal = self._attacker(fixtures, victim_org)
        if not PolicyEvaluator.evaluate(principal, 'obra.edit.any', victim_org.pk):
            return False, 'manager could not edit before downgrade; vector inconclusive'

        TenantDirectory.change_role(
            victim_org.pk, fixtures.attacker.pk, Role.COLLABORATOR, actor=fixtures.victim
        )
        affected = DataAccessGateway.update(principal, Site, fixtures.site.pk, {'name': HACKED})
        name = self._site_row(fixtures).name
        return affected == 0 and name == CONFIDENTIAL, (
            f'stale principal as {principal.role}: {affected} rows affected'
        )

    def no_audit_for_denied(self, fixtures):
        entries = AuditLogEntry.objects.for_organization(fixtures.victim_org.pk).by_entity(
            'obra', fixtures.site.pk
        )
        domain_writes = entries.filter(action__startswith='domain.obra_').exclude(
            action='domain.obra_created'
        ).count()
        denied = entries.filter(action=ACCESS_DENIED).count()
        return domain_writes == 0 and denied > 0, (
            f'{domain_writes} domain entries, {denied} denied attempts recorded'
        )
