"""Introspector protocol definition.

This module defines the Introspector protocol that every lookup
implementation must follow. Using a Protocol enables static type
checking while keeping the guard independent of the wire format.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable


if TYPE_CHECKING:
    from resource_guard.introspection.models import (
        IntrospectionOutcome,
        IntrospectionRequest,
    )


@runtime_checkable
class Introspector(Protocol):
    """Protocol for access token lookups.

    Implementations never raise for client or service failures: every
    lookup ends in an IntrospectionOutcome, with
    ``Action.INTERNAL_SERVER_ERROR`` standing for a failed lookup.
    """

    @property
    def name(self) -> str:
        """Return the introspector name for logging.

        Returns:
            A short, descriptive name like 'authlete' or 'rfc7662'.
        """
        ...

    async def introspect(self, request: IntrospectionRequest) -> IntrospectionOutcome:
        """Look up an access token.

        Args:
            request: Token plus the requirements of the protected resource.

        Returns:
            The verdict of the lookup.
        """
        ...

    async def initialize(self) -> None:
        """Initialize the introspector.

        Called during application startup to open connection pools.
        """
        ...

    async def shutdown(self) -> None:
        """Release connections held by the introspector."""
        ...
