"""Access token checks for OAuth 2.0 resource servers.

Extracts ``Bearer`` and ``DPoP`` credentials from the ``Authorization``
header and maps introspection lookups to one of five actions, each with
a fixed HTTP status code and RFC 6750 challenge.
"""

from resource_guard.guard import ResourceGuard
from resource_guard.introspection import (
    Action,
    ChallengeResponse,
    IntrospectionOutcome,
    IntrospectionRequest,
    render_challenge,
)
from resource_guard.lifespan import lifespan
from resource_guard.tokens import Scheme, extract_access_token, extract_credential


__version__ = "0.1.0"

__all__ = [
    "Action",
    "ChallengeResponse",
    "IntrospectionOutcome",
    "IntrospectionRequest",
    "ResourceGuard",
    "Scheme",
    "__version__",
    "extract_access_token",
    "extract_credential",
    "lifespan",
    "render_challenge",
]
