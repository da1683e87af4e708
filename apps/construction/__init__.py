"""
Construction application.

Tenant-scoped resources tracked per organization: sites, daily reports,
expenses, equipment, team members and documents.
"""
