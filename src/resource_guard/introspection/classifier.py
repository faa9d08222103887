"""Action derivation for introspection lookups.

The verdict is computed once from the lookup facts and never changes.
Rules are applied in priority order, first match wins:

1. No credential in the request        -> BAD_REQUEST
2. Lookup failed on the service side   -> INTERNAL_SERVER_ERROR
3. Token unknown or expired            -> UNAUTHORIZED
4. Scopes not covered, subject differs -> FORBIDDEN
5. Otherwise                           -> OK
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, NamedTuple

from resource_guard.introspection.challenge import (
    EXPIRED_TOKEN_DESCRIPTION,
    INSUFFICIENT_SCOPE_DESCRIPTION,
    MISSING_TOKEN_DESCRIPTION,
    SERVER_ERROR,
    SUBJECT_MISMATCH_DESCRIPTION,
    UNKNOWN_TOKEN_DESCRIPTION,
    ChallengeError,
    build_challenge,
    default_challenge,
)
from resource_guard.introspection.models import Action, IntrospectionOutcome


if TYPE_CHECKING:
    from collections.abc import Iterable

    from resource_guard.introspection.models import TokenInfo


class Verdict(NamedTuple):
    """Action plus the challenge the resource server may emit with it."""

    action: Action
    response_content: str


def classify(
    *,
    credential_present: bool,
    lookup_failed: bool = False,
    existent: bool = False,
    usable: bool = False,
    sufficient: bool = False,
    subject_matches: bool = True,
    required_scopes: Iterable[str] | None = None,
    realm: str | None = None,
) -> Verdict:
    """Derive the action and challenge from the facts of a lookup.

    Args:
        credential_present: Whether a token was extracted from the request.
        lookup_failed: Whether the authorization service failed to answer.
        existent: Whether the token exists.
        usable: Whether the token exists and has not expired.
        sufficient: Whether the token covers the required scopes.
        subject_matches: Whether the token belongs to the expected subject.
        required_scopes: Scopes listed in an ``insufficient_scope`` challenge.
        realm: Optional protection realm for the challenge.

    Returns:
        The verdict.
    """
    if not credential_present:
        return Verdict(
            Action.BAD_REQUEST,
            build_challenge(
                ChallengeError.INVALID_REQUEST, MISSING_TOKEN_DESCRIPTION, realm=realm
            ),
        )

    if lookup_failed:
        return Verdict(
            Action.INTERNAL_SERVER_ERROR,
            build_challenge(SERVER_ERROR, realm=realm),
        )

    if not existent or not usable:
        description = (
            EXPIRED_TOKEN_DESCRIPTION if existent else UNKNOWN_TOKEN_DESCRIPTION
        )
        return Verdict(
            Action.UNAUTHORIZED,
            build_challenge(ChallengeError.INVALID_TOKEN, description, realm=realm),
        )

    if not sufficient or not subject_matches:
        description = (
            INSUFFICIENT_SCOPE_DESCRIPTION
            if not sufficient
            else SUBJECT_MISMATCH_DESCRIPTION
        )
        return Verdict(
            Action.FORBIDDEN,
            build_challenge(
                ChallengeError.INSUFFICIENT_SCOPE,
                description,
                scopes=required_scopes,
                realm=realm,
            ),
        )

    return Verdict(Action.OK, default_challenge(realm))


def bad_request_outcome(realm: str | None = None) -> IntrospectionOutcome:
    """Outcome for a request that carries no access token."""
    action, content = classify(credential_present=False, realm=realm)
    return IntrospectionOutcome(action=action, response_content=content)


def server_error_outcome(realm: str | None = None) -> IntrospectionOutcome:
    """Outcome for a lookup the authorization service could not answer."""
    action, content = classify(
        credential_present=True, lookup_failed=True, realm=realm
    )
    return IntrospectionOutcome(action=action, response_content=content)


def _split_client_id(client_id: str | None) -> tuple[int, str | None]:
    """Split an RFC 7662 client_id into a numeric id or an alias."""
    if client_id is None:
        return 0, None
    if client_id.isdecimal():
        return int(client_id), None
    return 0, client_id


def classify_token_info(
    info: TokenInfo,
    *,
    required_scopes: Iterable[str] | None = None,
    expected_subject: str | None = None,
    realm: str | None = None,
    now: float | None = None,
) -> IntrospectionOutcome:
    """Build an outcome from an RFC 7662 introspection response.

    RFC 7662 does not tell apart unknown and expired tokens. An inactive
    token is treated as unknown unless its ``exp`` lies in the past.

    Args:
        info: Parsed introspection response.
        required_scopes: Scopes the protected resource requires.
        expected_subject: Resource owner the token must belong to.
        realm: Optional protection realm for the challenge.
        now: Current time in epoch seconds (defaults to the wall clock).

    Returns:
        The outcome.
    """
    if now is None:
        now = time.time()

    required = frozenset(required_scopes or ())
    granted = frozenset(info.scopes)

    expired = info.exp is not None and info.exp <= now
    not_yet_valid = info.nbf is not None and info.nbf > now
    existent = info.active or expired
    usable = info.active and not expired and not not_yet_valid
    sufficient = required <= granted
    subject_matches = expected_subject is None or info.sub == expected_subject

    action, content = classify(
        credential_present=True,
        existent=existent,
        usable=usable,
        sufficient=sufficient,
        subject_matches=subject_matches,
        required_scopes=required,
        realm=realm,
    )

    if not existent:
        return IntrospectionOutcome(action=action, response_content=content)

    client_id, alias = _split_client_id(info.client_id)
    # RFC 7662 has a single audience; no narrowing to report.
    audience = frozenset(info.audience_list)
    return IntrospectionOutcome(
        action=action,
        response_content=content,
        client_id=client_id,
        client_id_alias=alias,
        client_id_alias_used=alias is not None,
        subject=info.sub,
        scopes=granted,
        existent=existent,
        usable=usable,
        sufficient=sufficient,
        expires_at=info.exp * 1000 if info.exp is not None else 0,
        certificate_thumbprint=info.certificate_thumbprint,
        resources=audience,
        access_token_resources=audience,
    )
