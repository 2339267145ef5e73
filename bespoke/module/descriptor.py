"""
Module Descriptor.

This module provides parsing and validation of module metadata files.

Key features:
- Structural validation of metadata.json payloads
- Canonical identifier derivation (first author + name)
- Entry points for pre-init (mixin), main code (js) and style (css) units
"""

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from bespoke.module.errors import ModuleError


class DescriptorError(ModuleError):
    """Base exception for descriptor-related errors."""

    pass


class ValidationError(DescriptorError):
    """Raised when descriptor validation fails."""

    pass


_SEGMENT_RE = re.compile(r"^[^/\s]+$")
_IDENTIFIER_RE = re.compile(r"^[^/\s]+/[^/\s]+$")

ENTRY_KINDS = ("js", "css", "mixin")


@dataclass(frozen=True)
class Entries:
    """
    Locations of the units a module ships, relative to its metadata file.

    Attributes:
        js: Main code unit, activated after host initialisation
        css: Style unit
        mixin: Pre-init unit, run before host initialisation
    """

    js: str | None = None
    css: str | None = None
    mixin: str | None = None


@dataclass(frozen=True)
class Descriptor:
    """
    Immutable metadata for one module.

    Attributes:
        name: Module name
        authors: Authors, the first one is canonical
        version: Version string (display only)
        dependencies: Identifiers of modules this one depends on
        entries: Unit locations
        tags: Free-form tags (display only)
        description: Short description (display only)
        preview: Preview image location (display only)
        readme: Readme location (display only)
        host_versions: Supported host versions specifier (display only)
        raw_data: Raw metadata payload
    """

    name: str
    authors: tuple[str, ...]
    version: str
    dependencies: tuple[str, ...] = ()
    entries: Entries = Entries()
    tags: tuple[str, ...] = ()
    description: str = ""
    preview: str = ""
    readme: str = ""
    host_versions: str | None = None
    raw_data: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def author(self) -> str:
        return self.authors[0]

    @property
    def identifier(self) -> str:
        return f"{self.author}/{self.name}"


def parse_descriptor(data: dict[str, Any]) -> Descriptor:
    """
    Build a Descriptor from a decoded metadata payload.

    Args:
        data: Decoded metadata.json content

    Returns:
        Descriptor object

    Raises:
        ValidationError: If the payload is invalid
    """
    validate_descriptor_structure(data)

    entries = data.get("entries", {})
    return Descriptor(
        name=data["name"],
        authors=tuple(data["authors"]),
        version=data["version"],
        dependencies=tuple(data.get("dependencies", [])),
        entries=Entries(
            js=entries.get("js") or None,
            css=entries.get("css") or None,
            mixin=entries.get("mixin") or None,
        ),
        tags=tuple(data.get("tags", [])),
        description=data.get("description", ""),
        preview=data.get("preview", ""),
        readme=data.get("readme", ""),
        host_versions=data.get("hostVersions"),
        raw_data=data,
    )


def load_descriptor(path: Path) -> Descriptor:
    """
    Read and parse a metadata.json file.

    Raises:
        DescriptorError: If the file cannot be read or decoded
        ValidationError: If the payload is invalid
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise DescriptorError(f"Metadata file not found: {path}") from e
    except json.JSONDecodeError as e:
        raise DescriptorError(f"Failed to parse metadata JSON: {e}") from e

    return parse_descriptor(data)


def validate_descriptor_structure(data: Any) -> None:
    """
    Validate metadata structure and field types.

    Args:
        data: Decoded metadata payload

    Raises:
        ValidationError: If the payload is invalid
    """
    if not isinstance(data, dict):
        raise ValidationError("Metadata payload must be an object")

    for required in ("name", "authors", "version"):
        if required not in data:
            raise ValidationError(f"Missing required field: {required}")

    name = data["name"]
    if not isinstance(name, str) or not _SEGMENT_RE.match(name):
        raise ValidationError(
            f"Invalid module name: {name!r}. Must be non-empty, without '/' or spaces."
        )

    authors = data["authors"]
    if not isinstance(authors, list) or not authors:
        raise ValidationError("'authors' field must be a non-empty list")
    for author in authors:
        if not isinstance(author, str) or not _SEGMENT_RE.match(author):
            raise ValidationError(f"Invalid author: {author!r}")

    if not isinstance(data["version"], str):
        raise ValidationError("'version' field must be a string")

    dependencies = data.get("dependencies", [])
    if not isinstance(dependencies, list):
        raise ValidationError("'dependencies' field must be a list")
    for dep in dependencies:
        if not isinstance(dep, str) or not _IDENTIFIER_RE.match(dep):
            raise ValidationError(
                f"Invalid dependency: {dep!r}. Expected '<author>/<name>'."
            )

    entries = data.get("entries", {})
    if not isinstance(entries, dict):
        raise ValidationError("'entries' field must be an object")
    for kind, location in entries.items():
        if kind not in ENTRY_KINDS:
            raise ValidationError(f"Unknown entry kind: {kind}")
        if location is not None and not isinstance(location, str):
            raise ValidationError(f"Entry '{kind}' must be a string")

    tags = data.get("tags", [])
    if not isinstance(tags, list) or not all(isinstance(t, str) for t in tags):
        raise ValidationError("'tags' field must be a list of strings")

    for optional in ("description", "preview", "readme", "hostVersions"):
        if optional in data and not isinstance(data[optional], str):
            raise ValidationError(f"'{optional}' field must be a string")
