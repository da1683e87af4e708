"""
Core application for Canteiro.

Shared building blocks: base model, exception hierarchy, structured logging,
request tracing middleware and security event logging.
"""
