"""
TOML File I/O.

Reads with tomllib, writes with tomlkit so hand-written comments and
formatting in existing files survive a rewrite.
"""

import tomllib
from pathlib import Path
from typing import Any

import tomlkit
from tomlkit.exceptions import TOMLKitError

from bespoke.config.schema import ConfigField


class TOMLError(Exception):
    """Raised when a TOML file cannot be read or written."""

    pass


def read_toml(file_path: Path) -> dict[str, Any]:
    """
    Parse a TOML file.

    Raises:
        TOMLError: If the file is missing or malformed
    """
    try:
        with open(file_path, "rb") as f:
            return tomllib.load(f)
    except FileNotFoundError as e:
        raise TOMLError(f"TOML file not found: {file_path}") from e
    except tomllib.TOMLDecodeError as e:
        raise TOMLError(f"Failed to parse TOML file {file_path}: {e}") from e


def update_section(file_path: Path, section: str, values: dict[str, Any]) -> None:
    """
    Set keys of one table in a TOML file, keeping the rest of the document.

    Raises:
        TOMLError: If the file cannot be read or written
    """
    try:
        if file_path.exists():
            doc = tomlkit.parse(file_path.read_text(encoding="utf-8"))
        else:
            doc = tomlkit.document()

        table = doc.get(section)
        if table is None:
            table = tomlkit.table()
            doc.add(section, table)
        for key, value in values.items():
            table[key] = value

        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(tomlkit.dumps(doc), encoding="utf-8")
    except (OSError, TOMLKitError) as e:
        raise TOMLError(f"Failed to write TOML file {file_path}: {e}") from e


def render_section(section: str, schema: dict[str, ConfigField]) -> str:
    """Render a schema's defaults as a commented TOML table."""
    doc = tomlkit.document()
    table = tomlkit.table()

    for name, spec in schema.items():
        if spec.description:
            table.add(tomlkit.comment(spec.description))
        if spec.choices is not None:
            table.add(tomlkit.comment(f"choices: {', '.join(map(str, spec.choices))}"))
        table.add(name, spec.default)
        table.add(tomlkit.nl())

    doc.add(section, table)
    return tomlkit.dumps(doc)
