"""Resource guard exceptions.

Client-facing failures (missing, expired, or under-scoped tokens) are
never raised: they are reported through ``IntrospectionOutcome.action``.
The exceptions below cover deployment mistakes and the transport layer
of the introspection client, which converts them to outcomes before they
reach the caller.
"""

from __future__ import annotations


class ResourceGuardError(Exception):
    """Base exception for resource guard errors."""


class ConfigurationError(ResourceGuardError):
    """Raised when the introspector is misconfigured."""


class IntrospectionUnavailableError(ResourceGuardError):
    """Raised when the authorization service cannot answer a lookup."""
