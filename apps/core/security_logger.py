"""
Security event logging for monitoring and alerting.

Logs all security-relevant events including:
- Cross-tenant access attempts (isolation violations)
- Role denials on tenant-scoped actions
- Requests from principals without an active membership
- Route-level denials
- Audit write failures

Audit write failures are data-integrity incidents and are sent to Sentry.
"""
import logging
from typing import Optional
import sentry_sdk
from django.utils import timezone

from apps.core.logging import PIIMasker

logger = logging.getLogger('security')


class SecurityLogger:
    """
    Centralized security event logging.

    Denials are logged here for operators only; they are never surfaced to
    the caller distinctly from "not found".
    """

    @classmethod
    def _log(cls, level: int, message: str, event_type: str, **context):
        extra = {
            'event_type': event_type,
            'timestamp': timezone.now().isoformat(),
        }
        extra.update({key: str(value) if value is not None else None for key, value in context.items()})
        logger.log(level, message, extra=PIIMasker.mask_dict(extra))

    @classmethod
    def log_isolation_violation(
        cls,
        user_id,
        principal_organization_id,
        resource_organization_id,
        action: str,
        entity_type: Optional[str] = None,
        entity_id=None,
    ):
        """
        Log a cross-tenant access attempt.

        Args:
            user_id: User attempting access
            principal_organization_id: Organization the principal acts in
            resource_organization_id: Organization owning the resource
            action: Policy action attempted (e.g., 'obra.delete')
            entity_type: Entity name of the target
            entity_id: Target row id
        """
        cls._log(
            logging.WARNING,
            "Isolation violation",
            'isolation_violation',
            user_id=user_id,
            principal_organization_id=principal_organization_id,
            resource_organization_id=resource_organization_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
        )

    @classmethod
    def log_role_not_permitted(cls, user_id, organization_id, role, action: str, entity_id=None):
        """Log an active member attempting an action their role does not allow."""
        cls._log(
            logging.WARNING,
            "Role not permitted",
            'role_not_permitted',
            user_id=user_id,
            organization_id=organization_id,
            role=role,
            action=action,
            entity_id=entity_id,
        )

    @classmethod
    def log_not_authorized(cls, user_id, organization_id, action: str, entity_id=None):
        """Log a principal without an active membership in the organization."""
        cls._log(
            logging.WARNING,
            "No active membership",
            'not_authorized',
            user_id=user_id,
            organization_id=organization_id,
            action=action,
            entity_id=entity_id,
        )

    @classmethod
    def log_failed_login(cls, email: str, ip_address: str, reason: str = 'invalid_credentials'):
        """
        Log failed login attempt.

        Args:
            email: Email address attempted (masked in the log)
            ip_address: IP address of request
            reason: Reason for failure
        """
        cls._log(
            logging.WARNING,
            "Failed login attempt",
            'failed_login',
            email=email,
            ip_address=ip_address,
            reason=reason,
        )

    @classmethod
    def log_route_denied(cls, user_id, organization_id, role, path: str):
        """Log a navigational (route-level) denial."""
        cls._log(
            logging.INFO,
            "Route access denied",
            'route_denied',
            user_id=user_id,
            organization_id=organization_id,
            role=role,
            path=path,
        )

    @classmethod
    def log_audit_failure(cls, exc: Exception, action: str, organization_id=None, entity_id=None):
        """
        Log a failed audit write.

        The enclosing mutation has been rolled back; the failure is a
        data-integrity incident and is always reported to Sentry.
        """
        cls._log(
            logging.CRITICAL,
            "Audit write failure",
            'audit_write_failure',
            action=action,
            organization_id=organization_id,
            entity_id=entity_id,
            error=exc.__class__.__name__,
        )
        sentry_sdk.capture_exception(exc)
