"""Access token introspection.

This package turns the verdict of an introspection lookup into an
immutable IntrospectionOutcome whose Action fixes the HTTP status code
and WWW-Authenticate challenge a resource server must emit.

Available introspectors:
- AuthleteIntrospector: The authorization service decides the action
- TokenInfoIntrospector: RFC 7662 endpoint, action derived locally

Usage:
    from resource_guard.introspection import render_challenge

    outcome = await get_introspector().introspect(IntrospectionRequest(token=token))
    status_code, headers = render_challenge(outcome)
"""

from resource_guard.introspection.classifier import (
    Verdict,
    bad_request_outcome,
    classify,
    classify_token_info,
    server_error_outcome,
)
from resource_guard.introspection.factory import (
    create_introspector,
    get_introspector,
    initialize_introspector,
    set_introspector,
    shutdown_introspector,
)
from resource_guard.introspection.introspectors import (
    AuthleteIntrospector,
    TokenInfoIntrospector,
)
from resource_guard.introspection.models import (
    Action,
    AuthorizationDetails,
    AuthorizationDetailsElement,
    IntrospectionOutcome,
    IntrospectionRequest,
    Property,
    TokenInfo,
)
from resource_guard.introspection.protocol import Introspector
from resource_guard.introspection.response import ChallengeResponse, render_challenge


__all__ = [
    "Action",
    "AuthleteIntrospector",
    "AuthorizationDetails",
    "AuthorizationDetailsElement",
    "ChallengeResponse",
    "IntrospectionOutcome",
    "IntrospectionRequest",
    "Introspector",
    "Property",
    "TokenInfo",
    "TokenInfoIntrospector",
    "Verdict",
    "bad_request_outcome",
    "classify",
    "classify_token_info",
    "create_introspector",
    "get_introspector",
    "initialize_introspector",
    "render_challenge",
    "server_error_outcome",
    "set_introspector",
    "shutdown_introspector",
]
