"""RFC 6750 ``WWW-Authenticate`` challenge strings.

Challenges have the shape::

    Bearer [realm="..."], error="<code>"[, error_description="..."][, scope="..."]

Descriptions are fixed, generic texts. Nothing from the authorization
service's diagnostics is ever placed in a challenge.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING, Final


if TYPE_CHECKING:
    from collections.abc import Iterable


class ChallengeError(StrEnum):
    """Error codes defined by RFC 6750 section 3.1."""

    INVALID_REQUEST = "invalid_request"
    INVALID_TOKEN = "invalid_token"  # noqa: S105 - not a password
    INSUFFICIENT_SCOPE = "insufficient_scope"


# RFC 6749 section 5.2 code; used only for the 500 content, never sent as a header.
SERVER_ERROR: Final[str] = "server_error"

MISSING_TOKEN_DESCRIPTION: Final[str] = "The request does not contain an access token."
UNKNOWN_TOKEN_DESCRIPTION: Final[str] = "The access token is invalid."
EXPIRED_TOKEN_DESCRIPTION: Final[str] = "The access token has expired."
INSUFFICIENT_SCOPE_DESCRIPTION: Final[str] = (
    "The access token does not cover the required scopes."
)
SUBJECT_MISMATCH_DESCRIPTION: Final[str] = (
    "The access token was not issued to the required subject."
)


def _quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def build_challenge(
    error: str,
    description: str | None = None,
    *,
    scopes: Iterable[str] | None = None,
    realm: str | None = None,
) -> str:
    """Build a ``Bearer`` challenge string.

    Args:
        error: Error code (see ChallengeError).
        description: Optional human-readable error_description.
        scopes: Scopes required to access the resource. Rendered sorted.
        realm: Optional protection realm.

    Returns:
        A value suitable for the ``WWW-Authenticate`` header.
    """
    params: list[str] = []
    if realm:
        params.append(f"realm={_quote(realm)}")
    params.append(f"error={_quote(error)}")
    if description:
        params.append(f"error_description={_quote(description)}")
    if scopes:
        params.append(f"scope={_quote(' '.join(sorted(scopes)))}")
    return "Bearer " + ", ".join(params)


def default_challenge(realm: str | None = None) -> str:
    """Return the minimal challenge carried by ``OK`` outcomes.

    Resource servers may reuse it when they reject a request that the
    authorization service considered valid.
    """
    return build_challenge(ChallengeError.INVALID_REQUEST, realm=realm)
