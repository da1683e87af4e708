"""
Audit application.

Append-only audit trail written in the same transaction as every mutation.
"""
