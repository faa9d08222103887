"""Shared test fixtures and configuration for the resource guard tests.

Settings are loaded from the ``test`` environment and the cached
instance is reset around every test.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest

from resource_guard.core.config import get_settings


if TYPE_CHECKING:
    from collections.abc import Iterator


os.environ["APP_ENV"] = "test"


@pytest.fixture(autouse=True)
def _reset_settings_cache() -> Iterator[None]:
    """Drop cached settings so environment changes take effect."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def endpoint() -> str:
    """Introspection endpoint used across tests."""
    return "https://auth.example.com/api/auth/introspection"
