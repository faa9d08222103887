"""Introspector factory.

This module creates the introspector selected by configuration and keeps
the process-wide instance used by the resource guard.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import redis.asyncio as redis

from resource_guard.core.config import IntrospectionMode, get_settings
from resource_guard.exceptions import ConfigurationError
from resource_guard.introspection.introspectors import (
    AuthleteIntrospector,
    TokenInfoIntrospector,
)
from resource_guard.observability.logging import get_logger


if TYPE_CHECKING:
    from redis.asyncio import Redis

    from resource_guard.core.config import Settings
    from resource_guard.introspection.protocol import Introspector

logger = get_logger(__name__)

# State container (avoids global statement for mutation)
_state: dict[str, Any] = {"introspector": None, "cache_client": None}


def create_introspector(
    settings: Settings | None = None,
    cache_client: Redis[Any] | None = None,
) -> Introspector:
    """Create an introspector based on configuration.

    Args:
        settings: Settings. If None, loaded from environment.
        cache_client: Optional Redis client for caching OK outcomes.

    Returns:
        Configured Introspector instance.

    Raises:
        ConfigurationError: If the endpoint or its credentials are missing.
    """
    if settings is None:
        settings = get_settings()

    mode = settings.introspection_mode_enum
    logger.info("Creating introspector", mode=mode.value)

    if not settings.introspection.url:
        msg = "introspection.url is required"
        raise ConfigurationError(msg)
    if not settings.introspection.client_id:
        msg = "introspection.client_id is required"
        raise ConfigurationError(msg)
    if not settings.INTROSPECTION_CLIENT_SECRET:
        msg = "INTROSPECTION_CLIENT_SECRET is required"
        raise ConfigurationError(msg)

    introspector_cls = (
        AuthleteIntrospector
        if mode == IntrospectionMode.AUTHLETE
        else TokenInfoIntrospector
    )
    return introspector_cls(
        endpoint=settings.introspection.url,
        client_id=settings.introspection.client_id,
        client_secret=settings.INTROSPECTION_CLIENT_SECRET,
        timeout=settings.introspection.timeout,
        max_connections=settings.introspection.max_connections,
        cache_client=cache_client,
        cache_ttl=settings.introspection.cache_ttl,
        realm=settings.challenge.realm,
    )


def get_introspector() -> Introspector:
    """Get the current introspector instance.

    Returns:
        The current Introspector instance.

    Raises:
        RuntimeError: If the introspector has not been initialized.
    """
    introspector = _state["introspector"]
    if introspector is None:
        msg = "Introspector not initialized. Call initialize_introspector() during startup."
        raise RuntimeError(msg)
    return introspector


def set_introspector(introspector: Introspector) -> None:
    """Set the process-wide introspector instance."""
    _state["introspector"] = introspector
    logger.info("Introspector set", introspector=introspector.name)


async def initialize_introspector(settings: Settings | None = None) -> Introspector:
    """Create, initialize, and set the introspector.

    Opens a Redis cache connection first when ``redis.enabled`` is set.

    Args:
        settings: Settings. If None, loaded from environment.

    Returns:
        The initialized introspector.
    """
    if settings is None:
        settings = get_settings()

    cache_client: Redis[Any] | None = None
    if settings.redis.enabled:
        cache_client = redis.Redis.from_url(
            settings.redis_cache_url,
            decode_responses=True,
        )
        _state["cache_client"] = cache_client
        logger.info(
            "Introspection cache enabled",
            host=settings.redis.host,
            port=settings.redis.port,
        )

    introspector = create_introspector(settings, cache_client=cache_client)
    await introspector.initialize()
    set_introspector(introspector)
    return introspector


async def shutdown_introspector() -> None:
    """Shutdown the introspector and close the cache connection."""
    introspector = _state["introspector"]
    if introspector is not None:
        await introspector.shutdown()
        _state["introspector"] = None
        logger.info("Introspector shutdown complete")

    cache_client = _state["cache_client"]
    if cache_client is not None:
        await cache_client.aclose()
        _state["cache_client"] = None
