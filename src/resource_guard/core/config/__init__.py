"""Configuration module with YAML and environment variable support."""

from .settings import IntrospectionMode, Settings, get_settings


__all__ = [
    "IntrospectionMode",
    "Settings",
    "get_settings",
]
