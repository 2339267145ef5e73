"""
Loader Configuration.

The ``[loader]`` table of the configuration file:

    [loader]
    modules_dir = "modules"
    vault_file = "vault.json"
    notifier_url = ""
    load_timeout = 0.0
    fetch_timeout = 30.0
    log_level = "INFO"
"""

from dataclasses import dataclass
from pathlib import Path

from bespoke.config.schema import ConfigField, ValidationError, defaults, validate_section
from bespoke.config.toml_handler import TOMLError, read_toml, render_section

SECTION = "loader"

LOADER_SCHEMA: dict[str, ConfigField] = {
    "modules_dir": ConfigField(str, "modules", "Directory holding installed modules"),
    "vault_file": ConfigField(
        str, "vault.json", "Vault file name, relative to modules_dir", min=1
    ),
    "notifier_url": ConfigField(
        str, "", "Side-channel base URL for add/remove/enable/disable (empty: off)"
    ),
    "load_timeout": ConfigField(
        float, 0.0, "Seconds allowed per unit load (0: no limit)", min=0.0
    ),
    "fetch_timeout": ConfigField(
        float, 30.0, "Seconds allowed per descriptor fetch", min=0.0
    ),
    "log_level": ConfigField(
        str,
        "INFO",
        "Minimum log level",
        choices=["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"],
    ),
}


class ConfigError(Exception):
    """Raised when the loader configuration is invalid."""

    pass


@dataclass(frozen=True)
class LoaderConfig:
    modules_dir: str = "modules"
    vault_file: str = "vault.json"
    notifier_url: str = ""
    load_timeout: float = 0.0
    fetch_timeout: float = 30.0
    log_level: str = "INFO"

    @property
    def vault_path(self) -> Path:
        return Path(self.modules_dir) / self.vault_file


def load_loader_config(path: Path) -> LoaderConfig:
    """
    Read the ``[loader]`` table; a missing file or table yields the defaults.

    Raises:
        ConfigError: If the file is malformed or a value is invalid
    """
    values = defaults(LOADER_SCHEMA)
    if path.exists():
        try:
            section = read_toml(path).get(SECTION, {})
            validate_section(section, LOADER_SCHEMA, partial=True)
        except (TOMLError, ValidationError) as e:
            raise ConfigError(f"Invalid loader configuration in {path}: {e}") from e
        values.update(section)

    values["load_timeout"] = float(values["load_timeout"])
    values["fetch_timeout"] = float(values["fetch_timeout"])
    return LoaderConfig(**values)


def write_default_config(path: Path) -> None:
    """Write a commented configuration file holding the defaults."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_section(SECTION, LOADER_SCHEMA), encoding="utf-8")
