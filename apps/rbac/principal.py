"""
Resolved principal for one request.
"""
import uuid
from dataclasses import dataclass

from apps.rbac.models import Role


@dataclass(frozen=True)
class Principal:
    """
    The (user, organization, role) triple a request acts as.

    Built by ``TenantDirectory.resolve_principal`` from a live membership
    read. Never cached across requests and never built from token claims.
    """

    user_id: uuid.UUID
    organization_id: uuid.UUID
    role: Role

    def __str__(self):
        return f"{self.user_id} as {self.role} in {self.organization_id}"
