"""
Priority Resolver.

Assigns every registered module a priority derived from its declared
dependencies: each visit of a module bumps it and, recursively, every
module it depends on, so widely depended-upon modules accumulate the
largest counts and load first.

Unknown dependencies demote the dependent module to disabled. Dependency
cycles are detected through the current traversal path and disable every
member of the cycle.
"""

from dataclasses import dataclass, field

from bespoke.logging_utils import get_logger
from bespoke.module.errors import DependencyCycleError, DependencyError
from bespoke.module.record import ModuleRecord
from bespoke.module.registry import Registry

log = get_logger("resolver")


@dataclass
class ResolutionReport:
    """
    Outcome of a resolver run.

    Attributes:
        missing: identifier -> dependency identifiers that are not registered
        cycles: Detected cycles, each starting and ending with the same identifier
    """

    missing: dict[str, list[str]] = field(default_factory=dict)
    cycles: list[tuple[str, ...]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.missing and not self.cycles

    def raise_for_cycles(self) -> None:
        """Raise DependencyCycleError for the first detected cycle, if any."""
        if self.cycles:
            raise DependencyCycleError(self.cycles[0])


class PriorityResolver:
    """Computes module priorities over a registry snapshot."""

    def __init__(self, registry: Registry):
        self._registry = registry

    def resolve(self, records: list[ModuleRecord] | None = None) -> ResolutionReport:
        """
        Bump every given record (all registered records by default).

        Args:
            records: Subset to start traversals from, e.g. a freshly added module

        Returns:
            ResolutionReport listing missing dependencies and cycles
        """
        report = ResolutionReport()
        snapshot = self._registry.snapshot()
        roots = list(snapshot.values()) if records is None else records
        for record in roots:
            self._bump(record, snapshot, (), report)
        return report

    def _bump(self, record, snapshot, path, report) -> None:
        record.priority += 1
        path = path + (record,)
        visiting = [r.identifier for r in path]

        for dep in record.descriptor.dependencies:
            if dep in visiting:
                self._fail_cycle(path[visiting.index(dep):], report)
                continue

            dependency = snapshot.get(dep)
            if dependency is None:
                log.info(
                    "Disabling {} for lack of dependency: {}", record.identifier, dep
                )
                record.enabled = False
                record.error = DependencyError(f"missing dependency: {dep}")
                missing = report.missing.setdefault(record.identifier, [])
                if dep not in missing:
                    missing.append(dep)
                continue

            self._bump(dependency, snapshot, path, report)

    def _fail_cycle(self, members, report) -> None:
        ids = [member.identifier for member in members]
        start = ids.index(min(ids))
        rotated = ids[start:] + ids[:start]
        cycle = tuple(rotated) + (rotated[0],)
        if cycle in report.cycles:
            return

        report.cycles.append(cycle)
        error = DependencyCycleError(cycle)
        log.error("Disabling {}: {}", ", ".join(sorted(ids)), error)
        for member in members:
            member.enabled = False
            member.error = error
