"""Introspection data models.

This module defines the verdict of an access token lookup
(``IntrospectionOutcome``) and the payloads exchanged with the
authorization service.
"""

from __future__ import annotations

from enum import StrEnum
from http import HTTPStatus
from types import MappingProxyType
from typing import Any, Final

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from resource_guard.schemas import ServiceRequest, ServiceResponse


class Action(StrEnum):
    """What the resource server must do with the request.

    Each action maps to exactly one HTTP status code and no two actions
    share a status code.
    """

    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"
    BAD_REQUEST = "BAD_REQUEST"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    OK = "OK"

    @property
    def status_code(self) -> int:
        """HTTP status code the resource server must respond with."""
        return int(_STATUS_CODES[self])


_STATUS_CODES: Final = MappingProxyType(
    {
        Action.INTERNAL_SERVER_ERROR: HTTPStatus.INTERNAL_SERVER_ERROR,
        Action.BAD_REQUEST: HTTPStatus.BAD_REQUEST,
        Action.UNAUTHORIZED: HTTPStatus.UNAUTHORIZED,
        Action.FORBIDDEN: HTTPStatus.FORBIDDEN,
        Action.OK: HTTPStatus.OK,
    }
)


class Property(ServiceResponse):
    """Arbitrary key-value pair attached to a token at issuance.

    Hidden properties are visible to the resource server but are never
    shown to the client application.
    """

    key: str
    value: str | None = None
    hidden: bool = False


class AuthorizationDetailsElement(ServiceResponse):
    """One element of RFC 9396 ``authorization_details``.

    Members not modelled here are preserved as extra fields.
    """

    model_config = ConfigDict(extra="allow")

    type: str
    locations: tuple[str, ...] | None = None
    actions: tuple[str, ...] | None = None
    data_types: tuple[str, ...] | None = Field(default=None, alias="datatypes")
    identifier: str | None = None
    privileges: tuple[str, ...] | None = None


class AuthorizationDetails(ServiceResponse):
    """Rich authorization request payload (RFC 9396)."""

    elements: tuple[AuthorizationDetailsElement, ...] = ()

    @field_validator("elements", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return () if value is None else value


class IntrospectionOutcome(ServiceResponse):
    """Verdict of an access token introspection lookup.

    Produced once per lookup and immutable afterwards. ``scopes``,
    ``expires_at`` and ``refreshable`` only carry meaning when
    ``existent`` is true.

    Attributes:
        action: What the resource server must do next.
        client_id: Client the token was issued to (0 when unknown).
        subject: Resource owner; None for client credentials tokens.
        scopes: Scopes granted to the token.
        existent: Whether the token exists.
        usable: Whether the token exists and has not expired.
        sufficient: Whether the token covers the required scopes.
        refreshable: Whether a refresh token is still available.
        response_content: RFC 6750 challenge for ``WWW-Authenticate``.
        expires_at: Expiry in epoch milliseconds (0 when unknown).
        properties: Extra metadata attached at issuance.
        client_id_alias: Alias of the client id, if any.
        client_id_alias_used: Whether the alias was used at issuance.
        certificate_thumbprint: ``x5t#S256`` of a mutual-TLS bound token.
        resources: Resource indicators given at authorization.
        access_token_resources: Resource indicators of the access token.
        authorization_details: RFC 9396 details bound to the token.
        result_code: Service diagnostic code. Never shown to clients.
        result_message: Service diagnostic message. Never shown to clients.
    """

    action: Action
    client_id: int = 0
    subject: str | None = None
    scopes: frozenset[str] = frozenset()
    existent: bool = False
    usable: bool = False
    sufficient: bool = False
    refreshable: bool = False
    response_content: str = Field(..., min_length=1)
    expires_at: int = 0
    properties: tuple[Property, ...] = ()
    client_id_alias: str | None = None
    client_id_alias_used: bool = False
    certificate_thumbprint: str | None = None
    resources: frozenset[str] = frozenset()
    access_token_resources: frozenset[str] = frozenset()
    authorization_details: AuthorizationDetails | None = None
    result_code: str | None = None
    result_message: str | None = None

    # The service sends JSON null for empty arrays and unset numbers.
    @field_validator(
        "scopes", "properties", "resources", "access_token_resources", mode="before"
    )
    @classmethod
    def _null_as_empty(cls, value: Any) -> Any:
        return () if value is None else value

    @field_validator("client_id", "expires_at", mode="before")
    @classmethod
    def _null_as_zero(cls, value: Any) -> Any:
        return 0 if value is None else value

    @model_validator(mode="after")
    def _check_resource_narrowing(self) -> IntrospectionOutcome:
        if (
            self.resources
            and self.access_token_resources
            and not self.access_token_resources <= self.resources
        ):
            msg = "accessTokenResources must be a subset of resources"
            raise ValueError(msg)
        return self

    @property
    def status_code(self) -> int:
        """HTTP status code fixed by the action."""
        return self.action.status_code

    def summarize(self) -> str:
        """Render a one-line summary for logs.

        Values of hidden properties are masked.
        """
        properties = ",".join(
            f"{p.key}={'***' if p.hidden else p.value}" for p in self.properties
        )
        return (
            f"action={self.action}, clientId={self.client_id}, "
            f"subject={self.subject}, existent={self.existent}, "
            f"usable={self.usable}, sufficient={self.sufficient}, "
            f"refreshable={self.refreshable}, expiresAt={self.expires_at}, "
            f"scopes={' '.join(sorted(self.scopes))}, properties={properties}, "
            f"clientIdAlias={self.client_id_alias}, "
            f"clientIdAliasUsed={self.client_id_alias_used}, "
            f"confirmation={self.certificate_thumbprint}"
        )


class IntrospectionRequest(ServiceRequest):
    """Lookup request sent to the authorization service.

    Attributes:
        token: The access token as presented by the client.
        scopes: Scopes the protected resource requires.
        subject: Resource owner the token must have been issued to.
        dpop: DPoP proof JWT from the ``DPoP`` request header.
        htm: HTTP method of the protected resource request (for DPoP).
        htu: URL of the protected resource request (for DPoP).
        client_certificate: PEM client certificate (for mutual TLS).
    """

    token: str = Field(..., min_length=1)
    scopes: tuple[str, ...] | None = None
    subject: str | None = None
    dpop: str | None = None
    htm: str | None = None
    htu: str | None = None
    client_certificate: str | None = None


class TokenInfo(BaseModel):
    """Response from a standard token introspection endpoint.

    Based on RFC 7662 - OAuth 2.0 Token Introspection.
    See: https://datatracker.ietf.org/doc/html/rfc7662

    Attributes:
        active: Whether the token is currently active.
        sub: Subject identifier.
        scope: Space-separated list of scopes.
        client_id: Client that requested the token.
        username: Human-readable resource owner identifier.
        token_type: Type of token (e.g., "Bearer", "DPoP").
        exp: Expiration timestamp, seconds.
        iat: Issuance timestamp, seconds.
        nbf: Not-before timestamp, seconds.
        aud: Audience(s) for the token.
        iss: Issuer of the token.
        jti: Token identifier.
        cnf: Confirmation claim (RFC 8705 ``x5t#S256``, RFC 9449 ``jkt``).
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    active: bool
    sub: str | None = None
    scope: str | None = None
    client_id: str | None = None
    username: str | None = None
    token_type: str | None = None
    exp: int | None = None
    iat: int | None = None
    nbf: int | None = None
    aud: str | list[str] | None = None
    iss: str | None = None
    jti: str | None = None
    cnf: dict[str, Any] | None = None

    @property
    def scopes(self) -> list[str]:
        """Parse scope string into list."""
        if not self.scope:
            return []
        return self.scope.split()

    @property
    def audience_list(self) -> list[str]:
        """Get audience as list."""
        if not self.aud:
            return []
        if isinstance(self.aud, str):
            return [self.aud]
        return self.aud

    @property
    def certificate_thumbprint(self) -> str | None:
        """Get the mutual-TLS certificate thumbprint, if bound."""
        if not self.cnf:
            return None
        return self.cnf.get("x5t#S256")
