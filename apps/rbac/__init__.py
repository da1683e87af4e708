"""
RBAC (Role-Based Access Control) application.

Provides organization-scoped access control with:
- Global user identity and JWT authentication
- Static policy table (routes and actions -> roles)
- Policy evaluator re-reading membership on every request
- Data access gateway enforcing tenant isolation on every read and write
- Adversarial verification harness
"""
