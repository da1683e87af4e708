"""
Tenants application.

Organizations, memberships and the tenant-scoped model base.
"""
