"""HTTP response rendering for introspection outcomes."""

from __future__ import annotations

from types import MappingProxyType
from typing import TYPE_CHECKING, Final, NamedTuple, assert_never

from resource_guard.introspection.models import Action


if TYPE_CHECKING:
    from collections.abc import Mapping

    from resource_guard.introspection.models import IntrospectionOutcome


WWW_AUTHENTICATE: Final[str] = "WWW-Authenticate"

# RFC 6750 section 3: error responses must not be cached.
_NO_STORE: Final = MappingProxyType({"Cache-Control": "no-store", "Pragma": "no-cache"})


class ChallengeResponse(NamedTuple):
    """Status code and headers the resource server must write."""

    status_code: int
    headers: Mapping[str, str]


def render_challenge(outcome: IntrospectionOutcome) -> ChallengeResponse:
    """Render the HTTP status and headers for an outcome.

    ``OK`` yields no headers, since the resource server goes on to serve
    the protected resource. ``INTERNAL_SERVER_ERROR`` carries no
    ``WWW-Authenticate`` header.

    Args:
        outcome: The introspection outcome.

    Returns:
        The response to write.
    """
    action = outcome.action
    match action:
        case Action.OK:
            headers: dict[str, str] = {}
        case Action.INTERNAL_SERVER_ERROR:
            headers = dict(_NO_STORE)
        case Action.BAD_REQUEST | Action.UNAUTHORIZED | Action.FORBIDDEN:
            headers = {WWW_AUTHENTICATE: outcome.response_content, **_NO_STORE}
        case _:
            assert_never(action)
    return ChallengeResponse(action.status_code, MappingProxyType(headers))
