"""
Organization lifecycle service.

Handles organization creation on signup:
- One organization per root user
- Administrator membership for the owner
- Audited in the same transaction
"""
import logging
from typing import Optional

from django.db import transaction
from django.utils import timezone
from django.utils.text import slugify

from apps.audit.services import AuditPipeline, CREATED
from apps.core.exceptions import ValidationError
from apps.rbac.models import Role, User
from apps.tenants.models import Organization, Membership

logger = logging.getLogger(__name__)


class OrganizationService:
    """
    Service for organization creation and lookup.
    """

    @classmethod
    def _unique_slug(cls, name: str, slug: Optional[str] = None) -> str:
        slug = slugify(slug or name) or 'org'
        base_slug = slug
        counter = 1
        while Organization.objects.filter(slug=slug).exists():
            slug = f"{base_slug}-{counter}"
            counter += 1
        return slug

    @classmethod
    @transaction.atomic
    def create_for_user(cls, user: User, name: str, slug: Optional[str] = None) -> Organization:
        """
        Create the user's organization with the user as Administrator.

        Args:
            user: Root user who will own the organization
            name: Organization display name
            slug: URL-friendly identifier (derived from name if not provided)

        Returns:
            Organization instance

        Raises:
            ValidationError: If the user already owns an organization
        """
        if Organization.objects.owned_by(user.pk) is not None:
            raise ValidationError(
                "User already owns an organization",
                details={'owner': ['A user can own only one organization']}
            )

        organization = Organization.objects.create(
            name=name,
            slug=cls._unique_slug(name, slug),
            owner=user,
        )
        AuditPipeline.record_mutation(user, organization, CREATED, {
            'name': organization.name,
            'slug': organization.slug,
            'owner_id': user.pk,
        }, organization_id=organization.pk)

        membership = Membership.objects.create(
            organization=organization,
            user=user,
            role=Role.ADMINISTRATOR,
            status=Membership.STATUS_ACTIVE,
            joined_at=timezone.now(),
        )
        AuditPipeline.record_mutation(user, membership, CREATED, {
            'user_id': user.pk,
            'role': membership.role,
            'status': membership.status,
        })

        logger.info(
            "Organization created",
            extra={'organization_id': str(organization.pk), 'slug': organization.slug}
        )
        return organization

    @classmethod
    def get_user_organizations(cls, user: User):
        """Organizations where the user holds an active membership, oldest membership first."""
        return Organization.objects.filter(
            memberships__user=user,
            memberships__status=Membership.STATUS_ACTIVE,
        ).order_by('memberships__created_at')
