"""
bespoke Configuration - TOML-based configuration and module settings.

This package provides:
- The loader configuration (``[loader]`` table)
- Schema declaration for module settings
- Explicit get/set settings stores persisted to TOML

Example usage:
    import bespoke.config

    bespoke.config.declare('alice/stats', {
        'limit': bespoke.config.field(int, 10, "Rows shown", min=1, max=100),
    })

    settings = bespoke.config.get('alice/stats')
    settings.get('limit')
    settings.set('limit', 25)  # validated, flushed to file
"""

from pathlib import Path
from typing import Any

from bespoke.config.loader import ConfigError, LoaderConfig, load_loader_config
from bespoke.config.runtime import SettingsStore
from bespoke.config.schema import ConfigField

_schemas: dict[str, dict[str, ConfigField]] = {}

_settings_file = Path("config/settings.toml")


def field(
    type_: type,
    default: Any,
    description: str = "",
    min: Any = None,
    max: Any = None,
    choices: list[Any] | None = None,
) -> ConfigField:
    """Shorthand for ConfigField(...)."""
    return ConfigField(type_, default, description, min, max, choices)


def configure(settings_file: Path) -> None:
    """Point every settings store created afterwards at ``settings_file``."""
    global _settings_file
    _settings_file = Path(settings_file)


def declare(namespace: str, schema: dict[str, ConfigField]) -> None:
    """
    Declare the settings schema of a module.

    Raises:
        ConfigError: If the namespace already has a schema
    """
    if namespace in _schemas:
        raise ConfigError(f"Settings for '{namespace}' already declared")
    _schemas[namespace] = schema


def undeclare(namespace: str) -> None:
    """Forget a schema, e.g. when its module is disposed."""
    _schemas.pop(namespace, None)


def get(namespace: str) -> SettingsStore:
    """
    Return the settings store of a declared namespace.

    Raises:
        ConfigError: If no schema was declared
    """
    if namespace not in _schemas:
        raise ConfigError(
            f"Settings for '{namespace}' not declared. Call declare() first."
        )
    return SettingsStore(namespace, _schemas[namespace], _settings_file)


__all__ = [
    "ConfigError",
    "LoaderConfig",
    "configure",
    "declare",
    "field",
    "get",
    "load_loader_config",
    "undeclare",
]
