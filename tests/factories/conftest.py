"""Factory configuration and exports.

This module exports all factories for convenient importing in tests.
"""

from tests.factories.introspection import (
    IntrospectionOutcomeFactory,
    IntrospectionRequestFactory,
    TokenInfoFactory,
)


__all__ = [
    "IntrospectionOutcomeFactory",
    "IntrospectionRequestFactory",
    "TokenInfoFactory",
]
