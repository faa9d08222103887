"""Transport for the authorization service's introspection endpoint.

One pooled ``httpx.AsyncClient`` per process, HTTP Basic credentials on
every call, and an optional Redis cache for ``OK`` outcomes. Transport
failures surface as ``IntrospectionUnavailableError`` so that callers
can answer with a 500 outcome.
"""

from __future__ import annotations

import hashlib
import time
from typing import TYPE_CHECKING, Any, NoReturn

import httpx

from resource_guard.exceptions import IntrospectionUnavailableError
from resource_guard.introspection.models import Action, IntrospectionOutcome
from resource_guard.observability.logging import get_logger


if TYPE_CHECKING:
    from redis.asyncio import Redis

    from resource_guard.introspection.models import IntrospectionRequest

logger = get_logger(__name__)

CACHE_KEY_PREFIX = "introspect:outcome:"


class IntrospectionClient:
    """Pooled HTTP client with an optional outcome cache.

    Attributes:
        endpoint: Full URL of the introspection endpoint.
        client_id: Basic auth user.
        client_secret: Basic auth password.
        timeout: Per-request timeout in seconds.
        cache_client: Redis client, or ``None`` to disable caching.
        cache_ttl: Upper bound on the lifetime of a cache entry, in seconds.
    """

    def __init__(
        self,
        endpoint: str,
        client_id: str,
        client_secret: str,
        timeout: float = 5.0,
        max_connections: int = 20,
        cache_client: Redis[Any] | None = None,
        cache_ttl: int = 60,
    ) -> None:
        self.endpoint = endpoint
        self.client_id = client_id
        self.client_secret = client_secret
        self.timeout = timeout
        self.max_connections = max_connections
        self.cache_client = cache_client
        self.cache_ttl = cache_ttl
        self._auth = httpx.BasicAuth(client_id, client_secret)
        self._http_client: httpx.AsyncClient | None = None

    async def initialize(self) -> None:
        """Open the connection pool. Calling it twice is harmless."""
        if self._http_client is not None:
            return

        limits = httpx.Limits(
            max_connections=self.max_connections,
            max_keepalive_connections=max(1, self.max_connections // 2),
        )
        self._http_client = httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout),
            limits=limits,
        )
        logger.info(
            "Introspection client ready",
            endpoint=self.endpoint,
            timeout=self.timeout,
            max_connections=self.max_connections,
        )

    async def shutdown(self) -> None:
        """Close the connection pool if it is open."""
        http_client, self._http_client = self._http_client, None
        if http_client is not None:
            await http_client.aclose()
            logger.debug("Introspection client closed")

    # -------------------------------------------------------------------------
    # Outcome cache
    # -------------------------------------------------------------------------

    def _get_cache_key(self, request: IntrospectionRequest) -> str:
        # The whole request is hashed: no raw token in Redis, and requests
        # that differ in scopes, subject or resources get separate entries.
        payload = request.model_dump_json().encode()
        return CACHE_KEY_PREFIX + hashlib.sha256(payload).hexdigest()[:32]

    def _entry_ttl(self, outcome: IntrospectionOutcome) -> int:
        """Seconds an outcome may stay cached; zero or less means never."""
        if not outcome.expires_at:
            return self.cache_ttl
        seconds_left = outcome.expires_at // 1000 - int(time.time())
        return min(self.cache_ttl, seconds_left)

    async def get_cached_outcome(
        self,
        request: IntrospectionRequest,
    ) -> IntrospectionOutcome | None:
        """Return the cached outcome for ``request``, or ``None``.

        A Redis failure or an unreadable entry counts as a miss.
        """
        if self.cache_client is None:
            return None

        try:
            raw = await self.cache_client.get(self._get_cache_key(request))
            outcome = IntrospectionOutcome.model_validate_json(raw) if raw else None
        except Exception as e:
            logger.warning("Outcome cache read failed", error=str(e))
            return None

        if outcome is not None:
            logger.debug("Outcome cache hit")
        return outcome

    async def cache_outcome(
        self,
        request: IntrospectionRequest,
        outcome: IntrospectionOutcome,
    ) -> None:
        """Store an ``OK`` outcome; rejections and expired tokens are skipped."""
        if self.cache_client is None or outcome.action is not Action.OK:
            return

        ttl = self._entry_ttl(outcome)
        if ttl <= 0:
            return

        try:
            await self.cache_client.set(
                self._get_cache_key(request), outcome.model_dump_json(), ex=ttl
            )
        except Exception as e:
            logger.warning("Outcome cache write failed", error=str(e))
        else:
            logger.debug("Outcome cached", ttl=ttl)

    # -------------------------------------------------------------------------
    # HTTP
    # -------------------------------------------------------------------------

    async def post(
        self,
        *,
        json: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
    ) -> Any:
        """POST ``json`` or form ``data`` and return the decoded JSON body.

        Raises:
            IntrospectionUnavailableError: On timeout, connection failure,
                an error status, or a body that is not JSON.
        """
        if self._http_client is None:
            await self.initialize()
        assert self._http_client is not None

        try:
            response = await self._http_client.post(
                self.endpoint, json=json, data=data, auth=self._auth
            )
            response.raise_for_status()
            return response.json()
        except httpx.HTTPError as e:
            self._raise_transport_error(e)
        except ValueError as e:
            logger.exception("Introspection body is not JSON", url=self.endpoint)
            msg = "Introspection endpoint returned a non-JSON body"
            raise IntrospectionUnavailableError(msg) from e

    def _raise_transport_error(self, error: httpx.HTTPError) -> NoReturn:
        if isinstance(error, httpx.TimeoutException):
            logger.exception(
                "Introspection timed out", url=self.endpoint, timeout=self.timeout
            )
            msg = f"Introspection timeout after {self.timeout}s"
        elif isinstance(error, httpx.HTTPStatusError):
            status = error.response.status_code
            logger.exception(
                "Introspection endpoint error", url=self.endpoint, status_code=status
            )
            msg = f"Introspection endpoint returned {status}"
        else:
            logger.exception(
                "Introspection endpoint unreachable", url=self.endpoint, error=str(error)
            )
            msg = f"Cannot connect to introspection endpoint: {error}"
        raise IntrospectionUnavailableError(msg) from error
