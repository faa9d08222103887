"""Access token check for protected resources.

The guard extracts the credential from the ``Authorization`` header and
hands it to the configured introspector. A request without a usable
credential is answered with ``BAD_REQUEST`` without any lookup.

Usage:
    guard = ResourceGuard.from_settings(get_introspector())
    outcome = await guard.check(request.headers.get("Authorization"), scopes=["read"])
    status_code, headers = render_challenge(outcome)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from resource_guard.core.config import get_settings
from resource_guard.exceptions import ConfigurationError
from resource_guard.introspection.classifier import bad_request_outcome
from resource_guard.introspection.models import Action, IntrospectionRequest
from resource_guard.introspection.response import render_challenge
from resource_guard.observability.logging import get_logger
from resource_guard.tokens.extractor import DEFAULT_SCHEMES, extract_credential


if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from resource_guard.core.config import Settings
    from resource_guard.introspection.models import IntrospectionOutcome
    from resource_guard.introspection.protocol import Introspector
    from resource_guard.introspection.response import ChallengeResponse
    from resource_guard.tokens.extractor import Scheme

logger = get_logger(__name__)


class ResourceGuard:
    """Decides whether a request may access a protected resource.

    Attributes:
        introspector: Lookup implementation for extracted tokens.
        accepted_schemes: Authorization schemes tried, in order.
        realm: Optional protection realm for locally built challenges.
    """

    def __init__(
        self,
        introspector: Introspector,
        accepted_schemes: Sequence[Scheme] = DEFAULT_SCHEMES,
        realm: str | None = None,
    ) -> None:
        if not accepted_schemes:
            msg = "ResourceGuard requires at least one accepted scheme"
            raise ConfigurationError(msg)

        self.introspector = introspector
        self.accepted_schemes = tuple(accepted_schemes)
        self.realm = realm

    @classmethod
    def from_settings(
        cls,
        introspector: Introspector,
        settings: Settings | None = None,
    ) -> ResourceGuard:
        """Create a guard using the ``challenge`` settings."""
        if settings is None:
            settings = get_settings()
        return cls(
            introspector,
            accepted_schemes=settings.challenge.accepted_schemes,
            realm=settings.challenge.realm,
        )

    async def check(
        self,
        authorization: str | None,
        *,
        scopes: Iterable[str] | None = None,
        subject: str | None = None,
        dpop: str | None = None,
        htm: str | None = None,
        htu: str | None = None,
        client_certificate: str | None = None,
    ) -> IntrospectionOutcome:
        """Check the credential presented with a request.

        Args:
            authorization: Raw ``Authorization`` header value, or None.
            scopes: Scopes the protected resource requires.
            subject: Resource owner the token must belong to.
            dpop: ``DPoP`` proof header value, for DPoP-bound tokens.
            htm: HTTP method of the request, for DPoP.
            htu: URL of the request, for DPoP.
            client_certificate: PEM client certificate, for mutual TLS.

        Returns:
            The outcome. The caller switches on ``outcome.action``.
        """
        credential = extract_credential(authorization, self.accepted_schemes)
        if credential is None:
            logger.info(
                "Request carries no access token",
                header_present=authorization is not None,
            )
            return bad_request_outcome(self.realm)

        scheme, token = credential
        request = IntrospectionRequest(
            token=token,
            scopes=tuple(scopes) if scopes is not None else None,
            subject=subject,
            dpop=dpop,
            htm=htm,
            htu=htu,
            client_certificate=client_certificate,
        )
        outcome = await self.introspector.introspect(request)

        logger.debug(
            "Introspection outcome",
            scheme=scheme.value,
            summary=outcome.summarize(),
        )
        if outcome.action is not Action.OK:
            logger.info(
                "Access token rejected",
                scheme=scheme.value,
                action=outcome.action.value,
                status_code=outcome.status_code,
            )

        return outcome

    async def respond(
        self,
        authorization: str | None,
        *,
        scopes: Iterable[str] | None = None,
        subject: str | None = None,
        dpop: str | None = None,
        htm: str | None = None,
        htu: str | None = None,
        client_certificate: str | None = None,
    ) -> ChallengeResponse:
        """Check the credential and render the status and headers to write."""
        outcome = await self.check(
            authorization,
            scopes=scopes,
            subject=subject,
            dpop=dpop,
            htm=htm,
            htu=htu,
            client_certificate=client_certificate,
        )
        return render_challenge(outcome)
