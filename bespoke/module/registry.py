"""
Module Registry.

This module provides the collection of module records keyed by identifier.

Key features:
- Read-only snapshots, a fresh one installed on every insert/delete
- Identity conflict detection at insertion
- Priority ordering for staged loading
"""

from collections.abc import Iterator, Mapping
from types import MappingProxyType

from bespoke.module.errors import IdentityConflictError
from bespoke.module.record import ModuleRecord


class Registry:
    """
    Copy-on-write mapping of identifier -> ModuleRecord.

    Readers only ever see a complete snapshot: an iteration started before
    an insert or delete keeps walking the collection it started with.
    """

    def __init__(self, records: list[ModuleRecord] | None = None):
        self._snapshot: Mapping[str, ModuleRecord] = MappingProxyType({})
        for record in records or []:
            self.insert(record)

    def snapshot(self) -> Mapping[str, ModuleRecord]:
        """Return the current read-only view of the registry."""
        return self._snapshot

    def get(self, identifier: str) -> ModuleRecord | None:
        return self._snapshot.get(identifier)

    def insert(self, record: ModuleRecord) -> None:
        """
        Add a record.

        Raises:
            IdentityConflictError: If the identifier is already registered
        """
        identifier = record.identifier
        if identifier in self._snapshot:
            raise IdentityConflictError(identifier)

        records = dict(self._snapshot)
        records[identifier] = record
        self._snapshot = MappingProxyType(records)

    def delete(self, identifier: str) -> ModuleRecord | None:
        """Remove a record, returning it (None if it was not registered)."""
        if identifier not in self._snapshot:
            return None

        records = dict(self._snapshot)
        record = records.pop(identifier)
        self._snapshot = MappingProxyType(records)
        return record

    def ordered(self) -> list[ModuleRecord]:
        """
        List records by descending priority.

        The sort is stable; among equal priorities the anchor record goes last.
        """
        return sorted(
            self._snapshot.values(), key=lambda r: (-r.priority, r.is_anchor)
        )

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._snapshot

    def __iter__(self) -> Iterator[ModuleRecord]:
        return iter(list(self._snapshot.values()))

    def __len__(self) -> int:
        return len(self._snapshot)
