"""
Services for the tenant directory and organization lifecycle.
"""
from .directory_service import TenantDirectory
from .organization_service import OrganizationService

__all__ = [
    'TenantDirectory',
    'OrganizationService',
]
