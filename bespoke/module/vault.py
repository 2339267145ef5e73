"""
Module Vault.

The vault is the persisted manifest of installed modules (vault.json):

    {"modules": {"<author>/<name>": {"enabled": true,
                                     "metadata": "<location>",
                                     "remoteMetadata": "<location>"}}}

Key features:
- Loading and saving the manifest
- Add / remove / toggle entries
- Bootstrapping a registry from the manifest
"""

import asyncio
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from bespoke.logging_utils import get_logger
from bespoke.module.errors import ModuleError
from bespoke.module.fetch import DescriptorFetcher
from bespoke.module.record import ModuleRecord
from bespoke.module.registry import Registry

log = get_logger("vault")


class VaultError(ModuleError):
    """Raised when the vault cannot be read, written or updated."""

    pass


@dataclass
class VaultEntry:
    """
    One installed module.

    Attributes:
        metadata: Location of the module's local metadata file
        enabled: Whether the module starts enabled
        remote_metadata: Upstream metadata location, if any
    """

    metadata: str
    enabled: bool = True
    remote_metadata: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "VaultEntry":
        if not isinstance(data, dict) or not isinstance(data.get("metadata"), str):
            raise VaultError(f"Invalid vault entry: {data!r}")
        return cls(
            metadata=data["metadata"],
            enabled=bool(data.get("enabled", True)),
            remote_metadata=data.get("remoteMetadata"),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"enabled": self.enabled, "metadata": self.metadata}
        if self.remote_metadata is not None:
            data["remoteMetadata"] = self.remote_metadata
        return data


@dataclass
class Vault:
    modules: dict[str, VaultEntry] = field(default_factory=dict)

    def add(
        self,
        identifier: str,
        metadata: str,
        remote_metadata: str | None = None,
        enabled: bool = True,
    ) -> VaultEntry:
        if identifier in self.modules:
            raise VaultError(f"Module already in vault: {identifier}")
        entry = VaultEntry(metadata, enabled, remote_metadata)
        self.modules[identifier] = entry
        return entry

    def remove(self, identifier: str) -> VaultEntry:
        if identifier not in self.modules:
            raise VaultError(f"Can't find a module for the identifier {identifier}")
        return self.modules.pop(identifier)

    def toggle(self, identifier: str, enabled: bool) -> None:
        if identifier not in self.modules:
            raise VaultError(f"Can't find a module for the identifier {identifier}")
        self.modules[identifier].enabled = enabled

    def metadata_location(self, identifier: str) -> str:
        if identifier not in self.modules:
            raise VaultError(f"Can't find a module for the identifier {identifier}")
        return self.modules[identifier].metadata


def load_vault(path: Path, missing_ok: bool = False) -> Vault:
    """
    Read vault.json.

    Args:
        path: Vault file location
        missing_ok: Return an empty vault instead of failing when absent

    Raises:
        VaultError: If the file is missing (and not missing_ok) or invalid
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as e:
        if missing_ok:
            return Vault()
        raise VaultError(f"Vault file not found: {path}") from e
    except json.JSONDecodeError as e:
        raise VaultError(f"Failed to parse vault JSON: {e}") from e

    modules = data.get("modules") if isinstance(data, dict) else None
    if not isinstance(modules, dict):
        raise VaultError("'modules' field must be an object")

    return Vault({ident: VaultEntry.from_dict(entry) for ident, entry in modules.items()})


def save_vault(path: Path, vault: Vault) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(
                {"modules": {k: v.to_dict() for k, v in vault.modules.items()}},
                f,
                indent="\t",
            )
    except OSError as e:
        raise VaultError(f"Failed to write vault {path}: {e}") from e


async def bootstrap(
    registry: Registry, vault: Vault, fetcher: DescriptorFetcher
) -> list[ModuleRecord]:
    """
    Fetch every vault module's descriptor and register it.

    Descriptors are fetched concurrently. A module whose descriptor cannot be
    fetched, is malformed or collides with a registered identifier is logged
    and skipped; the rest of the batch is unaffected.

    Returns:
        Records that were inserted, in vault order
    """
    items = list(vault.modules.items())
    results = await asyncio.gather(
        *(fetcher.fetch(entry.metadata) for _, entry in items),
        return_exceptions=True,
    )

    records: list[ModuleRecord] = []
    for (identifier, entry), result in zip(items, results, strict=True):
        if isinstance(result, BaseException):
            if not isinstance(result, Exception):
                raise result
            log.error("Skipping {}: {}", identifier, result)
            continue

        record = ModuleRecord(
            descriptor=result,
            source_location=entry.metadata,
            remote_source_location=entry.remote_metadata,
            enabled=entry.enabled,
        )
        if record.identifier != identifier:
            log.warning(
                "Vault key {} does not match descriptor identifier {}",
                identifier,
                record.identifier,
            )
        try:
            registry.insert(record)
        except ModuleError as e:
            log.error("Skipping {}: {}", identifier, e)
            continue
        records.append(record)

    return records
