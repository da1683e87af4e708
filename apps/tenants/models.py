"""
Tenant models for multi-tenant isolation.

Implements the tenant directory: organizations and the memberships that
grant users a role inside them.
"""
from django.db import models
from django.utils import timezone
from apps.core.exceptions import OrganizationReassignment
from apps.core.models import BaseModel
from apps.rbac.models import Role


class OrganizationManager(models.Manager):
    """Manager for organization queries."""

    def by_slug(self, slug):
        return self.filter(slug=slug).first()

    def owned_by(self, user_id):
        return self.filter(owner_id=user_id).first()


class Organization(BaseModel):
    """
    Organization (tenant) - the isolation boundary.

    Every tenant-scoped resource belongs to exactly one organization.
    Created on signup, one per root user, never deleted in normal flow.
    """

    name = models.CharField(
        max_length=255,
        help_text="Display name"
    )
    slug = models.SlugField(
        max_length=255,
        unique=True,
        help_text="URL-safe unique identifier"
    )
    owner = models.OneToOneField(
        'rbac.User',
        on_delete=models.PROTECT,
        related_name='owned_organization',
        help_text="Root user who created the organization"
    )

    audit_entity = 'org'

    objects = OrganizationManager()

    class Meta:
        db_table = 'organizations'
        ordering = ['name']

    def __str__(self):
        return self.name


class MembershipManager(models.Manager):
    """Manager for Membership queries."""

    def active(self):
        return self.filter(status=Membership.STATUS_ACTIVE)

    def get_active(self, organization_id, user_id):
        """Get the active membership for the pair, or None."""
        return self.active().filter(
            organization_id=organization_id,
            user_id=user_id,
        ).first()

    def for_user(self, user_id):
        """Active memberships of a user, oldest first."""
        return self.active().filter(user_id=user_id).order_by('created_at')

    def for_organization(self, organization_id):
        return self.active().filter(organization_id=organization_id)

    def pending_invites(self, user_id):
        return self.filter(user_id=user_id, status=Membership.STATUS_INVITED)


class Membership(BaseModel):
    """
    A user's role inside one organization.

    At most one row exists per (organization, user). Removal flips the
    status to ``removed`` and keeps the row so audit entries keep resolving.
    Only ``active`` rows grant anything.
    """

    STATUS_INVITED = 'invited'
    STATUS_ACTIVE = 'active'
    STATUS_REMOVED = 'removed'

    STATUS_CHOICES = [
        (STATUS_INVITED, 'Invited'),
        (STATUS_ACTIVE, 'Active'),
        (STATUS_REMOVED, 'Removed'),
    ]

    organization = models.ForeignKey(
        Organization,
        on_delete=models.CASCADE,
        related_name='memberships',
        help_text="Organization this membership belongs to"
    )
    user = models.ForeignKey(
        'rbac.User',
        on_delete=models.CASCADE,
        related_name='memberships',
        help_text="Member"
    )
    role = models.CharField(
        max_length=20,
        choices=Role.choices,
        default=Role.COLLABORATOR,
        help_text="Role held inside the organization"
    )
    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=STATUS_ACTIVE,
        db_index=True,
        help_text="Membership lifecycle status"
    )

    invited_by = models.ForeignKey(
        'rbac.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='invitations_sent',
        help_text="User who added or invited the member"
    )
    joined_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the membership became active"
    )
    removed_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the membership was removed"
    )

    audit_entity = 'membership'

    objects = MembershipManager()

    class Meta:
        db_table = 'memberships'
        ordering = ['created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['organization', 'user'],
                name='unique_membership_per_organization',
            ),
        ]
        indexes = [
            models.Index(fields=['user', 'status'], name='memberships_user_id_6b1e0a_idx'),
            models.Index(fields=['organization', 'status'], name='memberships_organiz_4c8d21_idx'),
        ]

    def __str__(self):
        return f"{self.user_id} @ {self.organization_id} ({self.role}, {self.status})"

    @property
    def is_active(self):
        return self.status == self.STATUS_ACTIVE


class TenantScopedManager(models.Manager):
    """Manager that excludes soft-deleted rows by default."""

    def get_queryset(self):
        return super().get_queryset().filter(deleted_at__isnull=True)


class TenantScopedQuerySet(models.QuerySet):
    """
    Unscoped queryset for tenant-owned rows.

    Request code reaches these rows through the data access gateway, which
    applies the organization filter first. Direct use is reserved for the
    gateway itself, the admin and the isolation harness.
    """

    def for_organization(self, organization_id):
        return self.filter(organization_id=organization_id)

    def update(self, **kwargs):
        if 'organization' in kwargs or 'organization_id' in kwargs:
            raise OrganizationReassignment("Tenant-scoped rows cannot change organization")
        return super().update(**kwargs)

    def delete(self):
        """Soft delete all rows in the queryset."""
        return self.update(deleted_at=timezone.now())

    def hard_delete(self):
        """Permanently delete all rows in the queryset."""
        return super().delete()

    def deleted(self):
        return self.filter(deleted_at__isnull=False)


class TenantScopedModel(BaseModel):
    """
    Abstract base for every resource that belongs to an organization.

    ``organization`` is set once at creation. ``owner`` is the creating user.
    Subclasses declare ``audit_entity`` (the policy/audit entity name) and
    ``owner_scoped_reads`` when members only see their own rows unless their
    role holds ``<entity>.view.any``.

    ``action_only_fields`` and ``action_only_values`` name what only a
    domain action (``DataAccessGateway.perform``) may write: whole fields,
    or specific values of a field (e.g. an approved status).

    Rows are soft-deleted: ``objects`` hides them, ``objects_with_deleted``
    does not.
    """

    audit_entity = None
    owner_scoped_reads = False
    action_only_fields = ()
    action_only_values = {}

    organization = models.ForeignKey(
        Organization,
        on_delete=models.PROTECT,
        related_name='+',
        db_index=True,
        help_text="Organization that owns this row"
    )
    owner = models.ForeignKey(
        'rbac.User',
        on_delete=models.PROTECT,
        related_name='+',
        help_text="User who created this row"
    )
    deleted_at = models.DateTimeField(
        null=True,
        blank=True,
        db_index=True,
        help_text="Timestamp when the row was soft deleted"
    )
    deleted_by = models.ForeignKey(
        'rbac.User',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='+',
        help_text="User who deleted this row"
    )

    # Default manager excludes soft-deleted rows
    objects = TenantScopedManager.from_queryset(TenantScopedQuerySet)()

    # Manager that includes soft-deleted rows
    objects_with_deleted = models.Manager.from_queryset(TenantScopedQuerySet)()

    class Meta:
        abstract = True
        ordering = ['-created_at']

    @classmethod
    def from_db(cls, db, field_names, values):
        instance = super().from_db(db, field_names, values)
        instance._loaded_organization_id = instance.__dict__.get('organization_id')
        return instance

    def save(self, *args, **kwargs):
        loaded = getattr(self, '_loaded_organization_id', None)
        if not self._state.adding and loaded is not None and loaded != self.organization_id:
            raise OrganizationReassignment(
                f"{self.__class__.__name__} {self.pk} cannot move to another organization"
            )
        super().save(*args, **kwargs)
        self._loaded_organization_id = self.organization_id

    def delete(self, using=None, keep_parents=False):
        """Soft delete the row. Set ``deleted_by`` first."""
        self.deleted_at = timezone.now()
        self.save(using=using)

    def hard_delete(self, using=None, keep_parents=False):
        """Permanently delete the row."""
        return super().delete(using=using, keep_parents=keep_parents)

    @property
    def is_deleted(self):
        return self.deleted_at is not None
