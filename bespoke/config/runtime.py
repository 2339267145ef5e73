"""
Module Settings Store.

Explicit get/set access to one module's persisted settings. Every write is
validated against the declared schema and flushed to the TOML file.
"""

from pathlib import Path
from typing import Any

from bespoke.config.schema import ConfigField, ValidationError, defaults, validate_section
from bespoke.config.toml_handler import TOMLError, read_toml, update_section


class SettingsError(Exception):
    """Raised when settings cannot be loaded or stored."""

    pass


class SettingsStore:
    """
    Settings of one namespace (usually a module identifier).

    Example:
        store = SettingsStore("alice/stats", {"limit": field(int, 10)}, path)
        store.get("limit")
        store.set("limit", 25)
    """

    def __init__(self, namespace: str, schema: dict[str, ConfigField], config_file: Path):
        self.namespace = namespace
        self._schema = schema
        self._config_file = config_file
        self._values = self._load()

    def _load(self) -> dict[str, Any]:
        values = defaults(self._schema)
        if not self._config_file.exists():
            return values

        try:
            section = read_toml(self._config_file).get(self.namespace, {})
            validate_section(section, self._schema, partial=True)
        except (TOMLError, ValidationError) as e:
            raise SettingsError(f"Failed to load settings for {self.namespace}: {e}") from e

        values.update(section)
        return values

    def _field(self, key: str) -> ConfigField:
        if key not in self._schema:
            raise KeyError(f"Setting '{key}' not declared for {self.namespace}")
        return self._schema[key]

    def get(self, key: str) -> Any:
        self._field(key)
        return self._values[key]

    def set(self, key: str, value: Any) -> None:
        """
        Validate and persist one setting.

        Writing the value already stored is a no-op.

        Raises:
            KeyError: If the key is not declared
            ValidationError: If the value is rejected
            SettingsError: If the file cannot be written
        """
        self._field(key).validate(value)
        if self._values.get(key) == value:
            return

        try:
            update_section(self._config_file, self.namespace, {key: value})
        except TOMLError as e:
            raise SettingsError(f"Failed to store {self.namespace}.{key}: {e}") from e
        self._values[key] = value

    def as_dict(self) -> dict[str, Any]:
        return dict(self._values)

    def __repr__(self) -> str:
        return f"SettingsStore({self.namespace}, {self._values})"
