"""
Lifecycle Orchestrator.

This module drives registered modules through their staged lifecycle.

Startup runs over all modules by descending priority:

1. pre-init: each enabled module's mixin unit is loaded and handed an
   injection registrar. Strictly sequential; the first failure aborts the
   rest of the pass (PreInitError propagates to the caller).
2. barrier: the host initialises itself, then the anchor's injections settle.
3. post-init: style activation for every module (failures are logged),
   then code activation module by module. A module's code waits for its own
   pending injections only, and a failing module never stops the others.

After startup, modules are enabled, disabled, added or disposed one at a
time. Disabling releases the active style and code units; there is no
release for pre-init effects, so re-enabling a module runs its mixin again
on top of the previous run.
"""

import asyncio
import inspect
import time
from collections.abc import Awaitable, Callable
from contextlib import contextmanager
from typing import Any

from bespoke.logging_utils import get_logger
from bespoke.module.descriptor import Descriptor
from bespoke.module.errors import ActivationError, ModuleError, PreInitError
from bespoke.module.fetch import DescriptorFetcher
from bespoke.module.loader import CodeLoader, IdentityTransform, ImportlibLoader, TransformPipeline
from bespoke.module.notifier import HttpNotifier, NotificationKind, Notifier, NullNotifier
from bespoke.module.record import ANCHOR_IDENTIFIER, LoadState, ModuleRecord
from bespoke.module.registry import Registry
from bespoke.module.resolver import PriorityResolver, ResolutionReport
from bespoke.module.styles import StyleHost, StyleSheetRegistry
from bespoke.module.vault import Vault, bootstrap

log = get_logger("lifecycle")


async def _settle(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class InjectionRegistrar:
    """
    Capability passed to a module's pre-init unit.

    Calling it with an awaitable schedules that awaitable as a background
    task; the module's code activation waits for all of them to settle.
    """

    def __init__(self, record: ModuleRecord):
        self._record = record

    @property
    def identifier(self) -> str:
        return self._record.identifier

    def __call__(self, awaitable: Awaitable) -> asyncio.Future:
        return self._record.register_injection(awaitable)


class ModuleHandle:
    """Public surface of one module, handed to its main code unit."""

    def __init__(self, orchestrator: "LifecycleOrchestrator", record: ModuleRecord):
        self._orchestrator = orchestrator
        self._record = record

    @property
    def descriptor(self) -> Descriptor:
        return self._record.descriptor

    @property
    def state(self) -> LoadState:
        return self._record.state

    def get_identifier(self) -> str:
        return self._record.identifier

    def get_author(self) -> str:
        return self._record.descriptor.author

    def get_name(self) -> str:
        return self._record.descriptor.name

    def is_enabled(self) -> bool:
        return self._record.enabled

    async def enable(self, notify: bool = True) -> None:
        await self._orchestrator.enable(self._record, notify=notify)

    async def disable(self, notify: bool = True) -> None:
        await self._orchestrator.disable(self._record, notify=notify)

    async def dispose(self, notify: bool = True) -> None:
        await self._orchestrator.dispose(self._record, notify=notify)

    def __repr__(self) -> str:
        return f"ModuleHandle({self.get_identifier()})"


class LifecycleOrchestrator:
    """
    Staged loader for the modules of one registry.

    Example:
        orchestrator = LifecycleOrchestrator()
        await orchestrator.load_vault(load_vault(vault_path))
        await orchestrator.startup(host.initialise)
    """

    def __init__(
        self,
        registry: Registry | None = None,
        *,
        loader: CodeLoader | None = None,
        transform: TransformPipeline | None = None,
        styles: StyleHost | None = None,
        notifier: Notifier | None = None,
        fetcher: DescriptorFetcher | None = None,
        load_timeout: float | None = None,
    ):
        """
        Initialize LifecycleOrchestrator.

        Args:
            registry: Registry to drive (a new one by default)
            loader: Dynamic unit loader
            transform: Transform applied to every unit location before loading
            styles: Host receiving style units
            notifier: Side channel for add/remove/enable/disable
            fetcher: Descriptor fetch service used by add()
            load_timeout: Seconds allowed per transform+load step (None: no limit)
        """
        self.registry = registry if registry is not None else Registry()
        self._loader = loader or ImportlibLoader()
        self._transform = transform or IdentityTransform()
        self._styles = styles or StyleSheetRegistry()
        self._notifier = notifier or NullNotifier()
        self._fetcher = fetcher or DescriptorFetcher()
        self._load_timeout = load_timeout

        anchor = self.registry.get(ANCHOR_IDENTIFIER)
        if anchor is None:
            anchor = ModuleRecord.anchor()
            self.registry.insert(anchor)
        self.anchor = anchor

    @classmethod
    def from_config(cls, config, registry: Registry | None = None, **kwargs):
        """Build an orchestrator from a LoaderConfig."""
        kwargs.setdefault(
            "notifier",
            HttpNotifier(config.notifier_url) if config.notifier_url else NullNotifier(),
        )
        kwargs.setdefault("fetcher", DescriptorFetcher(timeout=config.fetch_timeout))
        kwargs.setdefault("load_timeout", config.load_timeout or None)
        return cls(registry, **kwargs)

    # Registry access

    def _lookup(self, target: str | ModuleRecord) -> ModuleRecord:
        identifier = target.identifier if isinstance(target, ModuleRecord) else target
        record = self.registry.get(identifier)
        if record is None or (isinstance(target, ModuleRecord) and record is not target):
            raise ModuleError(f"Module not registered: {identifier}")
        return record

    def handle(self, target: str | ModuleRecord) -> ModuleHandle:
        return ModuleHandle(self, self._lookup(target))

    def modules(self) -> list[ModuleHandle]:
        """Handles of all real modules, in load order."""
        return [
            ModuleHandle(self, record)
            for record in self.registry.ordered()
            if not record.is_anchor
        ]

    def register(self, awaitable: Awaitable) -> asyncio.Future:
        """Schedule a cross-cutting injection owned by no real module."""
        return self.anchor.register_injection(awaitable)

    def resolve(self, records: list[ModuleRecord] | None = None) -> ResolutionReport:
        """Run the priority resolver over the registry (or the given records)."""
        return PriorityResolver(self.registry).resolve(records)

    async def load_vault(self, vault: Vault) -> ResolutionReport:
        """Register every module of the vault, then resolve priorities."""
        await bootstrap(self.registry, vault, self._fetcher)
        return self.resolve()

    # Startup sequence

    async def startup(self, host_init: Callable[[], Any] | None = None) -> None:
        """
        Run pre-init, wait for the host, then run post-init.

        Raises:
            PreInitError: If a pre-init unit failed; post-init does not run
        """
        await self.pre_init()

        if host_init is not None:
            await _settle(host_init())

        try:
            await self.anchor.join_injections()
        except Exception as e:
            log.opt(exception=e).error("Cross-cutting injection failed")

        await self.post_init()

    async def pre_init(self) -> None:
        with self._timed("onHostPreInit"):
            for record in self.registry.ordered():
                try:
                    await self._load_mixin(record)
                except Exception as e:
                    raise PreInitError(record.identifier, e) from e

    async def post_init(self) -> None:
        with self._timed("onHostPostInit"):
            records = self.registry.ordered()
            for record in records:
                self._try_load_style(record)
            for record in records:
                await self._load_code(record)

    # Per-module operations

    async def enable(self, target: str | ModuleRecord, notify: bool = True) -> None:
        record = self._lookup(target)
        if record.enabled:
            return

        record.enabled = True
        record.generation += 1
        record.error = None
        if notify:
            self._notifier.notify(NotificationKind.ENABLE, record.identifier)
        await self._activate(record)

    async def disable(self, target: str | ModuleRecord, notify: bool = True) -> None:
        record = self._lookup(target)
        if record.is_anchor:
            raise ModuleError("The anchor module cannot be disabled")
        if not record.enabled:
            return

        record.enabled = False
        record.generation += 1
        await self._release(record)
        if notify:
            self._notifier.notify(NotificationKind.DISABLE, record.identifier)

    async def dispose(self, target: str | ModuleRecord, notify: bool = True) -> None:
        record = self._lookup(target)
        if record.is_anchor:
            raise ModuleError("The anchor module cannot be disposed")

        await self.disable(record, notify=False)
        self.registry.delete(record.identifier)
        if notify:
            self._notifier.notify(NotificationKind.REMOVE, record.identifier)

    async def add(
        self,
        location: str,
        remote_location: str | None = None,
        enabled: bool = True,
        notify: bool = True,
    ) -> ModuleHandle:
        """
        Fetch, register and (if enabled) activate a module after startup.

        Raises:
            FetchError: If the descriptor location is unreachable
            DescriptorError: If the descriptor is malformed
            IdentityConflictError: If the identifier is already registered
        """
        descriptor = await self._fetcher.fetch(location)
        record = ModuleRecord(descriptor, location, remote_location, enabled=enabled)
        self.registry.insert(record)
        self.resolve([record])
        if notify:
            self._notifier.notify(NotificationKind.ADD, location)
        if record.enabled:
            await self._activate(record)
        return ModuleHandle(self, record)

    async def aclose(self) -> None:
        await self._fetcher.aclose()
        closer = getattr(self._notifier, "aclose", None)
        if closer is not None:
            await closer()

    # Phases

    async def _activate(self, record: ModuleRecord) -> None:
        try:
            await self._load_mixin(record)
        except Exception as e:
            log.opt(exception=e).error("Pre-init of {} failed", record.identifier)
            return
        self._try_load_style(record)
        await self._load_code(record)

    async def _acquire(self, location: str) -> object:
        async def step():
            loadable = await self._transform.transform(location)
            return await self._loader.load(loadable)

        if self._load_timeout:
            return await asyncio.wait_for(step(), self._load_timeout)
        return await step()

    async def _load_mixin(self, record: ModuleRecord) -> None:
        if not record.enabled:
            return

        entry = record.descriptor.entries.mixin
        if entry:
            # injections settled by a previous run are not joined again
            record.pending_injections = self._prune_injections(record)
            try:
                with self._timed(f"{record.identifier}#loadMixin"):
                    unit = await self._acquire(record.resolve_entry(entry))
                    main = getattr(unit, "default", None)
                    if callable(main):
                        await _settle(main(InjectionRegistrar(record)))
            except Exception as e:
                record.state = LoadState.FAILED
                record.error = PreInitError(record.identifier, e)
                raise
            record.mixin_runs += 1
            log.debug(
                "{} has {} pending injection(s)",
                record.identifier,
                len(record.pending_injections),
            )

        record.state = LoadState.MIXIN_LOADED

    def _prune_injections(self, record: ModuleRecord) -> list[asyncio.Future]:
        pending = []
        for task in record.pending_injections:
            if not task.done():
                pending.append(task)
            elif not task.cancelled() and task.exception() is not None:
                log.warning(
                    "Dropping failed injection of {}: {}",
                    record.identifier,
                    task.exception(),
                )
        return pending

    def _try_load_style(self, record: ModuleRecord) -> None:
        try:
            self._load_style(record)
        except Exception as e:
            record.error = ActivationError(f"style activation failed: {e}")
            log.opt(exception=e).error("Error loading styles of {}", record.identifier)

    def _load_style(self, record: ModuleRecord) -> None:
        if not record.enabled:
            return
        if record.release_style is not None:
            record.release_style()

        entry = record.descriptor.entries.css
        if entry:
            style_id = f"{record.identifier}-styles"
            self._styles.inject(style_id, record.resolve_entry(entry))

            def release() -> None:
                if record.release_style is not release:
                    return
                record.release_style = None
                self._styles.remove(style_id)

            record.release_style = release

        record.state = LoadState.STYLE_LOADED

    async def _load_code(self, record: ModuleRecord) -> None:
        if not record.enabled:
            return

        generation = record.generation
        try:
            if record.release_code is not None:
                await record.release_code()
            if not record.is_anchor:
                await record.join_injections()

            entry = record.descriptor.entries.js
            if entry:
                with self._timed(f"{record.identifier}#loadJS"):
                    unit = await self._acquire(record.resolve_entry(entry))
                    if record.generation != generation:
                        log.debug("Dropping stale load of {}", record.identifier)
                        return
                    main = getattr(unit, "default", None)
                    dispose = None
                    if callable(main):
                        dispose = await _settle(main(ModuleHandle(self, record)))

                if record.generation != generation:
                    # disabled or re-enabled while the entry was running
                    if callable(dispose):
                        await _settle(dispose())
                    return
                record.release_code = self._code_release(record, dispose)
            elif record.generation != generation:
                return
        except Exception as e:
            record.state = LoadState.FAILED
            record.error = ActivationError(f"code activation failed: {e}")
            log.opt(exception=e).error("Error loading {}", record.identifier)
            return

        record.state = LoadState.CODE_LOADED

    def _code_release(
        self, record: ModuleRecord, dispose: Any
    ) -> Callable[[], Awaitable[None]]:
        async def release() -> None:
            if record.release_code is not release:
                return
            record.release_code = None
            if callable(dispose):
                await _settle(dispose())

        return release

    async def _release(self, record: ModuleRecord) -> None:
        if record.release_style is not None:
            try:
                record.release_style()
            except Exception as e:
                log.opt(exception=e).error("Error unloading styles of {}", record.identifier)

        if record.release_code is not None:
            try:
                await record.release_code()
            except Exception as e:
                log.opt(exception=e).error("Error unloading {}", record.identifier)

        record.state = LoadState.MIXIN_LOADED if record.mixin_runs else LoadState.UNLOADED

    @contextmanager
    def _timed(self, label: str):
        start = time.perf_counter()
        try:
            yield
        finally:
            log.debug("{} took {:.1f} ms", label, (time.perf_counter() - start) * 1000)
