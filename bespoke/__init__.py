"""
bespoke - dependency-aware module loader for a host application.

This is the main package that exports the public API.
"""

__version__ = "0.1.0"

from bespoke.module.descriptor import Descriptor, Entries, parse_descriptor
from bespoke.module.errors import (
    ActivationError,
    DependencyCycleError,
    DependencyError,
    IdentityConflictError,
    ModuleError,
    PreInitError,
)
from bespoke.module.orchestrator import LifecycleOrchestrator, ModuleHandle
from bespoke.module.record import LoadState, ModuleRecord
from bespoke.module.registry import Registry
from bespoke.module.resolver import PriorityResolver, ResolutionReport
from bespoke.module.vault import Vault, load_vault, save_vault

__all__ = [
    "__version__",
    "ActivationError",
    "DependencyCycleError",
    "DependencyError",
    "Descriptor",
    "Entries",
    "IdentityConflictError",
    "LifecycleOrchestrator",
    "LoadState",
    "ModuleError",
    "ModuleHandle",
    "ModuleRecord",
    "PreInitError",
    "PriorityResolver",
    "Registry",
    "ResolutionReport",
    "Vault",
    "load_vault",
    "parse_descriptor",
    "save_vault",
]
