"""Layered YAML settings source.

Settings files live in one config directory::

    config/
        base/*.yaml                   loaded first, in file name order
        environments/<APP_ENV>/*.yaml merged on top

The directory defaults to ``config/`` at the project root and can be
moved with ``RESOURCE_GUARD_CONFIG_DIR``.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING, Any, Final

import yaml
from pydantic_settings import PydanticBaseSettingsSource


if TYPE_CHECKING:
    from pydantic.fields import FieldInfo


CONFIG_DIR_ENV: Final[str] = "RESOURCE_GUARD_CONFIG_DIR"

# src/resource_guard/core/config/yaml_source.py -> <root>/config
_DEFAULT_CONFIG_DIR: Final[Path] = Path(__file__).resolve().parents[4] / "config"


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return ``base`` with ``override`` merged in, recursing into mappings.

    Neither argument is modified.
    """
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            value = deep_merge(current, value)
        merged[key] = value
    return merged


def resolve_config_dir() -> Path:
    """Return the config directory, honouring ``RESOURCE_GUARD_CONFIG_DIR``."""
    override = os.getenv(CONFIG_DIR_ENV)
    return Path(override) if override else _DEFAULT_CONFIG_DIR


def _read_layer(directory: Path) -> dict[str, Any]:
    layer: dict[str, Any] = {}
    if not directory.is_dir():
        return layer
    for path in sorted(directory.glob("*.yaml")):
        document = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        if not isinstance(document, dict):
            msg = f"{path} must contain a mapping at the top level"
            raise ValueError(msg)
        layer = deep_merge(layer, document)
    return layer


def load_layered_config(config_dir: Path, app_env: str) -> dict[str, Any]:
    """Merge the base layer with the layer of ``app_env``."""
    return deep_merge(
        _read_layer(config_dir / "base"),
        _read_layer(config_dir / "environments" / app_env),
    )


class LayeredYamlSettingsSource(PydanticBaseSettingsSource):
    """pydantic-settings source backed by the layered YAML files.

    Files are read once, when the source is created, for the ``APP_ENV``
    set at that moment.
    """

    def __init__(self, settings_cls: type[Any]) -> None:
        super().__init__(settings_cls)
        self.config_dir = resolve_config_dir()
        self.app_env = os.getenv("APP_ENV", "development")
        self._data = load_layered_config(self.config_dir, self.app_env)

    def get_field_value(
        self,
        _field: FieldInfo,
        field_name: str,
    ) -> tuple[Any, str, bool]:
        value = self._data.get(field_name)
        return value, field_name, isinstance(value, dict | list)

    def __call__(self) -> dict[str, Any]:
        return self._data
