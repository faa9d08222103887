"""Access token extraction from the ``Authorization`` header.

Supports the two schemes a protected resource accepts:
- ``Bearer`` (RFC 6750, OAuth 2.0 Bearer Token Usage)
- ``DPoP`` (RFC 9449, Demonstrating Proof of Possession)

Only the header is parsed here. The DPoP proof itself (the ``DPoP``
request header) is verified by the authorization service.
"""

from __future__ import annotations

import re
from enum import StrEnum
from types import MappingProxyType
from typing import TYPE_CHECKING, Final


if TYPE_CHECKING:
    from collections.abc import Iterable


class Scheme(StrEnum):
    """Authorization scheme keyword, matched case-insensitively."""

    BEARER = "Bearer"
    DPOP = "DPoP"


def _compile(keyword: str) -> re.Pattern[str]:
    return re.compile(
        rf"^\s*{re.escape(keyword)}\s+(\S+)\s*$",
        re.IGNORECASE,
    )


# Compiled once at import; read-only afterwards.
_PATTERNS: Final = MappingProxyType({scheme: _compile(scheme.value) for scheme in Scheme})

DEFAULT_SCHEMES: Final[tuple[Scheme, ...]] = (Scheme.DPOP, Scheme.BEARER)


def extract_access_token(scheme: Scheme, header_value: str | None) -> str | None:
    """Extract the access token embedded in an ``Authorization`` header value.

    The token is returned exactly as presented. It is not Base64-encoded
    and must not be decoded.

    Args:
        scheme: The scheme keyword the header is expected to start with.
        header_value: Raw ``Authorization`` header value, or None.

    Returns:
        The token, or None if the header is missing, uses another scheme,
        or carries more than one whitespace-separated value.
    """
    if header_value is None:
        return None

    match = _PATTERNS[scheme].match(header_value)
    if match is None:
        return None

    return match.group(1)


def extract_bearer_token(header_value: str | None) -> str | None:
    """Extract a ``Bearer`` access token."""
    return extract_access_token(Scheme.BEARER, header_value)


def extract_dpop_token(header_value: str | None) -> str | None:
    """Extract a ``DPoP`` access token."""
    return extract_access_token(Scheme.DPOP, header_value)


def extract_credential(
    header_value: str | None,
    schemes: Iterable[Scheme] = DEFAULT_SCHEMES,
) -> tuple[Scheme, str] | None:
    """Try each scheme in order and return the first match.

    Args:
        header_value: Raw ``Authorization`` header value, or None.
        schemes: Schemes to try, in priority order.

    Returns:
        A ``(scheme, token)`` pair, or None if no scheme matched.
    """
    for scheme in schemes:
        token = extract_access_token(scheme, header_value)
        if token is not None:
            return scheme, token
    return None
