"""Startup and shutdown of the resource guard.

This module defines the lifespan context manager that handles:
- Startup: Configure logging, open the introspection client and cache
- Shutdown: Close HTTP and Redis connections

Usage:
    async with lifespan() as guard:
        outcome = await guard.check(authorization, scopes=["read"])
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from resource_guard.core.config import get_settings
from resource_guard.guard import ResourceGuard
from resource_guard.introspection.factory import (
    initialize_introspector,
    shutdown_introspector,
)
from resource_guard.observability.logging import get_logger, setup_logging


if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from resource_guard.core.config import Settings

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(settings: Settings | None = None) -> AsyncIterator[ResourceGuard]:
    """Initialize the introspector and yield a configured guard.

    Args:
        settings: Settings. If None, loaded from environment.

    Yields:
        A ResourceGuard bound to the process-wide introspector.
    """
    if settings is None:
        settings = get_settings()

    setup_logging(
        log_level=settings.logging.level,
        log_format=settings.logging.format,
        is_development=settings.is_development,
        log_file=settings.logging.file,
    )
    logger.info(
        "Starting resource guard",
        app_name=settings.app.name,
        environment=settings.APP_ENV,
    )

    try:
        introspector = await initialize_introspector(settings)
    except Exception:
        logger.exception("Failed to initialize introspector")
        await shutdown_introspector()
        raise

    try:
        yield ResourceGuard.from_settings(introspector, settings)
    finally:
        await shutdown_introspector()
        logger.info("Resource guard shutdown complete")
