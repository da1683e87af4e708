"""
RBAC and Authentication services.

Implements:
- PolicyEvaluator: allow/deny decisions against the static policy table,
  re-reading membership on every call
- AuthService: JWT authentication and user registration
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone as dt_timezone
from typing import Any, Dict, List, Optional

import jwt
from django.conf import settings
from django.contrib.auth import authenticate
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction

from apps.core.exceptions import (
    AccessDenied, IsolationViolation, NotAuthorized, RoleNotPermitted, ValidationError
)
from apps.core.security_logger import SecurityLogger
from apps.rbac.models import Role, User
from apps.rbac.policy import POLICY_TABLE
from apps.rbac.principal import Principal
from apps.tenants.services import OrganizationService, TenantDirectory


def _same_id(left, right) -> bool:
    if left is None or right is None:
        return False
    return str(left) == str(right)


@dataclass(frozen=True)
class Decision:
    """Outcome of one policy evaluation."""
    allowed: bool
    reason: str = 'allowed'
    role: Optional[Role] = None

    def __bool__(self):
        return self.allowed


class PolicyEvaluator:
    """
    Decides whether a principal may perform an action on a resource.

    Order of checks:
    1. Organization mismatch denies before any role lookup
    2. No active membership in the resource's organization denies
    3. Role must be allowed by the action rule, or by its own-resource
       variant when the principal owns the row
    """

    table = POLICY_TABLE

    @classmethod
    def authorize(cls, principal: Optional[Principal], action: str, resource_org_id,
                  resource_owner_id=None) -> Role:
        """
        Raising form of the evaluation.

        Args:
            principal: Resolved principal
            action: Policy action (e.g., 'obra.delete')
            resource_org_id: Organization owning the resource
            resource_owner_id: User owning the resource, if any

        Returns:
            The role read from the live membership

        Raises:
            IsolationViolation: Principal acts in another organization
            NotAuthorized: No active membership in the resource's organization
            RoleNotPermitted: Role not allowed for the action
        """
        if principal is None:
            raise NotAuthorized("No principal")

        if not _same_id(principal.organization_id, resource_org_id):
            raise IsolationViolation("Resource belongs to another organization")

        membership = TenantDirectory.get_membership(principal.user_id, resource_org_id)
        if membership is None:
            raise NotAuthorized("No active membership in organization")

        role = Role(membership.role)
        rule = cls.table.action_rule(action)
        if rule is None:
            raise RoleNotPermitted(f"Unknown action '{action}'", details={'role': role.value})

        is_owner = _same_id(resource_owner_id, principal.user_id)

        if rule.allows(role):
            if rule.forbid_owner and is_owner:
                raise RoleNotPermitted(
                    f"'{action}' cannot be performed on own resource", details={'role': role.value}
                )
            return role

        own_rule = cls.table.own_variant(action)
        if own_rule is not None and is_owner and own_rule.allows(role):
            return role

        raise RoleNotPermitted(
            f"Role '{role}' may not perform '{action}'", details={'role': role.value}
        )

    @classmethod
    def evaluate(cls, principal: Optional[Principal], action: str, resource_org_id,
                 resource_owner_id=None, entity_type: Optional[str] = None,
                 entity_id=None) -> Decision:
        """
        Non-raising form. Denials are logged to the security logger.
        """
        try:
            role = cls.authorize(principal, action, resource_org_id, resource_owner_id)
        except AccessDenied as exc:
            cls._log_denial(exc, principal, action, resource_org_id, entity_type, entity_id)
            return Decision(allowed=False, reason=exc.reason)
        return Decision(allowed=True, role=role)

    @classmethod
    def is_allowed(cls, principal: Optional[Principal], action: str) -> bool:
        """Role check inside the principal's own organization."""
        if principal is None:
            return False
        return cls.evaluate(principal, action, principal.organization_id).allowed

    @classmethod
    def can_access_route(cls, principal: Optional[Principal], path: str) -> bool:
        """
        Navigational check. Advisory only; unknown routes deny.
        """
        if principal is None:
            return False
        membership = TenantDirectory.get_membership(principal.user_id, principal.organization_id)
        if membership is None:
            return False
        rule = cls.table.route_rule(path)
        allowed = rule is not None and rule.allows(membership.role)
        if not allowed:
            SecurityLogger.log_route_denied(
                principal.user_id, principal.organization_id, membership.role, path
            )
        return allowed

    @classmethod
    def allowed_routes(cls, role) -> List[str]:
        return cls.table.allowed_routes(role)

    @classmethod
    def allowed_actions(cls, role) -> List[str]:
        return cls.table.allowed_actions(role)

    @classmethod
    def _log_denial(cls, exc, principal, action, resource_org_id, entity_type, entity_id):
        user_id = principal.user_id if principal else None
        organization_id = principal.organization_id if principal else None

        if isinstance(exc, IsolationViolation):
            SecurityLogger.log_isolation_violation(
                user_id=user_id,
                principal_organization_id=organization_id,
                resource_organization_id=resource_org_id,
                action=action,
                entity_type=entity_type,
                entity_id=entity_id,
            )
        elif isinstance(exc, RoleNotPermitted):
            # Role from the live membership, not the one cached on the principal.
            SecurityLogger.log_role_not_permitted(
                user_id, resource_org_id, exc.details.get('role'), action, entity_id=entity_id
            )
        else:
            SecurityLogger.log_not_authorized(user_id, resource_org_id, action, entity_id=entity_id)


class AuthService:
    """
    Service for authentication operations: JWT and registration.

    Tokens carry the user id and expiry only. Roles are never put in a
    token; they are read from the membership on every request.
    """

    @classmethod
    def generate_jwt(cls, user: User) -> str:
        """
        Generate JWT token for a user.

        Args:
            user: User instance

        Returns:
            JWT token string
        """
        now = datetime.now(dt_timezone.utc)
        payload = {
            'user_id': str(user.id),
            'exp': now + timedelta(hours=getattr(settings, 'JWT_EXPIRATION_HOURS', 24)),
            'iat': now,
        }

        return jwt.encode(
            payload,
            settings.JWT_SECRET_KEY,
            algorithm=getattr(settings, 'JWT_ALGORITHM', 'HS256')
        )

    @classmethod
    def validate_jwt(cls, token: str) -> Optional[Dict[str, Any]]:
        """
        Validate JWT token and return payload.

        Returns:
            Decoded payload dict or None if invalid
        """
        try:
            return jwt.decode(
                token,
                settings.JWT_SECRET_KEY,
                algorithms=[getattr(settings, 'JWT_ALGORITHM', 'HS256')]
            )
        except jwt.ExpiredSignatureError:
            return None
        except jwt.InvalidTokenError:
            return None

    @classmethod
    def get_user_from_jwt(cls, token: str) -> Optional[User]:
        """
        Extract and return user from JWT token.

        Any claim other than ``user_id`` is ignored.
        """
        payload = cls.validate_jwt(token)
        if not payload:
            return None

        user_id = payload.get('user_id')
        if not user_id:
            return None

        try:
            return User.objects.get(id=user_id, is_active=True)
        except (User.DoesNotExist, ValueError, DjangoValidationError):
            return None

    @classmethod
    @transaction.atomic
    def register_user(cls, email: str, password: str, organization_name: str,
                      first_name: str = '', last_name: str = '') -> Dict[str, Any]:
        """
        Register a new root user with their organization.

        Creates:
        - User
        - Organization owned by the user
        - Administrator membership

        Returns:
            Dict with user, organization and token

        Raises:
            ValidationError: If the email is already registered
        """
        if User.objects.by_email(email) is not None:
            raise ValidationError(
                "A user with this email already exists",
                details={'email': ['A user with this email already exists.']}
            )

        user = User.objects.create_user(
            email=email,
            password=password,
            first_name=first_name,
            last_name=last_name,
        )
        organization = OrganizationService.create_for_user(user, organization_name)

        return {
            'user': user,
            'organization': organization,
            'token': cls.generate_jwt(user),
        }

    @classmethod
    def login(cls, email: str, password: str) -> Optional[Dict[str, Any]]:
        """
        Authenticate user and return JWT token.

        Returns:
            Dict with user and token, or None if authentication failed
        """
        user = authenticate(email=email, password=password)
        if user is None:
            return None

        user.update_last_login()
        return {
            'user': user,
            'token': cls.generate_jwt(user),
        }
