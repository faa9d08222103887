"""Credential extraction from HTTP ``Authorization`` headers."""

from resource_guard.tokens.extractor import (
    DEFAULT_SCHEMES,
    Scheme,
    extract_access_token,
    extract_bearer_token,
    extract_credential,
    extract_dpop_token,
)


__all__ = [
    "DEFAULT_SCHEMES",
    "Scheme",
    "extract_access_token",
    "extract_bearer_token",
    "extract_credential",
    "extract_dpop_token",
]
