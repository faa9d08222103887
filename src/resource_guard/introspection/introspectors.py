"""HTTP introspectors.

Two wire formats are supported:
- AuthleteIntrospector: the service computes the action itself and
  answers with a full IntrospectionOutcome in camelCase JSON.
- TokenInfoIntrospector: a standard RFC 7662 endpoint answers with
  token metadata and the action is derived locally.

Both turn every failure into an ``INTERNAL_SERVER_ERROR`` outcome.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from resource_guard.exceptions import (
    ConfigurationError,
    IntrospectionUnavailableError,
)
from resource_guard.introspection.classifier import (
    classify_token_info,
    server_error_outcome,
)
from resource_guard.introspection.client import IntrospectionClient
from resource_guard.introspection.models import (
    Action,
    IntrospectionOutcome,
    TokenInfo,
)
from resource_guard.observability.logging import get_logger


if TYPE_CHECKING:
    from redis.asyncio import Redis

    from resource_guard.introspection.models import IntrospectionRequest

logger = get_logger(__name__)


def _cacheable(request: IntrospectionRequest) -> bool:
    """Whether an outcome for ``request`` may be served from the cache.

    DPoP proofs are single-use and the service checks them for replay,
    so every request carrying one must reach the service.
    """
    return request.dpop is None


class _HttpIntrospector:
    """Shared lookup flow: cache, call, parse, fall back to a 500 outcome."""

    def __init__(
        self,
        endpoint: str,
        client_id: str,
        client_secret: str,
        timeout: float = 5.0,
        max_connections: int = 20,
        cache_client: Redis[Any] | None = None,
        cache_ttl: int = 60,
        realm: str | None = None,
    ) -> None:
        if not all([endpoint, client_id, client_secret]):
            msg = (
                f"{type(self).__name__} requires endpoint, client_id, "
                "and client_secret"
            )
            raise ConfigurationError(msg)

        self.client = IntrospectionClient(
            endpoint=endpoint,
            client_id=client_id,
            client_secret=client_secret,
            timeout=timeout,
            max_connections=max_connections,
            cache_client=cache_client,
            cache_ttl=cache_ttl,
        )
        self.realm = realm

    @property
    def name(self) -> str:
        raise NotImplementedError

    async def _lookup(self, request: IntrospectionRequest) -> IntrospectionOutcome:
        raise NotImplementedError

    async def introspect(self, request: IntrospectionRequest) -> IntrospectionOutcome:
        """Look up an access token.

        Args:
            request: Token plus the requirements of the protected resource.

        Returns:
            The verdict. Never raises for transport or payload errors.
        """
        cacheable = _cacheable(request)
        if cacheable:
            cached = await self.client.get_cached_outcome(request)
            if cached is not None:
                return cached

        try:
            outcome = await self._lookup(request)
        except IntrospectionUnavailableError:
            return server_error_outcome(self.realm)
        except ValidationError as e:
            logger.error(
                "Malformed introspection response",
                introspector=self.name,
                errors=e.error_count(),
            )
            return server_error_outcome(self.realm)

        if cacheable:
            await self.client.cache_outcome(request, outcome)
        return outcome

    async def initialize(self) -> None:
        """Initialize the HTTP client."""
        await self.client.initialize()
        logger.info(f"{type(self).__name__} initialized", endpoint=self.client.endpoint)

    async def shutdown(self) -> None:
        """Close the HTTP client."""
        await self.client.shutdown()
        logger.debug(f"{type(self).__name__} shutdown")


class AuthleteIntrospector(_HttpIntrospector):
    """Looks tokens up through an Authlete-style ``/auth/introspection`` API.

    The request carries the required scopes, the expected subject, and the
    DPoP / mutual-TLS binding material, so the service itself decides the
    action and prepares the challenge.
    """

    @property
    def name(self) -> str:
        """Return introspector name for logging."""
        return "authlete"

    async def _lookup(self, request: IntrospectionRequest) -> IntrospectionOutcome:
        body = await self.client.post(
            json=request.model_dump(mode="json", by_alias=True, exclude_none=True),
        )
        outcome = IntrospectionOutcome.model_validate(body)

        if outcome.action is Action.INTERNAL_SERVER_ERROR:
            logger.warning(
                "Authorization service reported an internal error",
                result_code=outcome.result_code,
                result_message=outcome.result_message,
            )

        return outcome


class TokenInfoIntrospector(_HttpIntrospector):
    """Looks tokens up through a standard RFC 7662 introspection endpoint.

    Scope coverage and subject matching are checked locally, and DPoP /
    mutual-TLS binding material is not forwarded.
    """

    @property
    def name(self) -> str:
        """Return introspector name for logging."""
        return "rfc7662"

    async def _lookup(self, request: IntrospectionRequest) -> IntrospectionOutcome:
        body = await self.client.post(
            data={"token": request.token, "token_type_hint": "access_token"},
        )
        info = TokenInfo.model_validate(body)
        return classify_token_info(
            info,
            required_scopes=request.scopes,
            expected_subject=request.subject,
            realm=self.realm,
        )
