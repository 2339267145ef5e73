"""
Module Records.

A record owns one module's descriptor together with its runtime state:
enabled flag, priority, pending pre-init injections and the release
callbacks of its currently active style and code units.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from urllib.parse import urljoin

from bespoke.module.descriptor import Descriptor
from bespoke.module.errors import ModuleError

ANCHOR_IDENTIFIER = "internal/internal"


class LoadState(Enum):
    """Furthest lifecycle phase a module has completed."""

    UNLOADED = "unloaded"
    MIXIN_LOADED = "mixin-loaded"
    STYLE_LOADED = "style-loaded"
    CODE_LOADED = "code-loaded"
    FAILED = "failed"


@dataclass(eq=False)
class ModuleRecord:
    """
    Runtime state of a registered module.

    Attributes:
        descriptor: Module metadata
        source_location: Location the descriptor was fetched from
        remote_source_location: Upstream location of the descriptor, if any
        enabled: Whether the module may perform lifecycle transitions
        priority: Load order weight, higher loads first
        state: Furthest completed lifecycle phase
        error: Exception describing the last failure or demotion
        pending_injections: Background tasks registered during pre-init
        release_code: Undoes the active code unit (async, idempotent)
        release_style: Undoes the active style unit (idempotent)
        mixin_runs: How many times the pre-init unit has run (never undone)
        is_anchor: Whether this is the process-wide anchor record
        generation: Bumped on every enable/disable; a code load started under
            an older generation is stale and must not stay active
    """

    descriptor: Descriptor
    source_location: str
    remote_source_location: str | None = None
    enabled: bool = True
    priority: int = 0
    state: LoadState = LoadState.UNLOADED
    error: ModuleError | None = None
    pending_injections: list[asyncio.Future] = field(default_factory=list)
    release_code: Callable[[], Awaitable[None]] | None = None
    release_style: Callable[[], None] | None = None
    mixin_runs: int = 0
    is_anchor: bool = False
    generation: int = 0

    @classmethod
    def anchor(cls) -> "ModuleRecord":
        """Create the always-enabled placeholder for cross-cutting injections."""
        descriptor = Descriptor(
            name="internal",
            authors=("internal",),
            version="dev",
            tags=("internal",),
            description="internal",
        )
        return cls(descriptor, "", enabled=True, is_anchor=True)

    @property
    def identifier(self) -> str:
        return self.descriptor.identifier

    def resolve_entry(self, entry: str) -> str:
        """Resolve an entry location relative to the metadata file."""
        if "://" in self.source_location:
            return urljoin(self.source_location, entry)
        return str(Path(self.source_location).parent / entry)

    def register_injection(self, awaitable: Awaitable) -> asyncio.Future:
        """Schedule a pre-init background task owned by this module."""
        task = asyncio.ensure_future(awaitable)
        self.pending_injections.append(task)
        return task

    async def join_injections(self) -> None:
        """Wait until every registered injection has settled.

        The first failure is re-raised once all of them are done.
        """
        if not self.pending_injections:
            return
        results = await asyncio.gather(
            *self.pending_injections, return_exceptions=True
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result

    def __repr__(self) -> str:
        return (
            f"ModuleRecord({self.identifier}, enabled={self.enabled}, "
            f"priority={self.priority}, state={self.state.value})"
        )
