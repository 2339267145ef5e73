"""
Dynamic Unit Loader.

This module provides the capabilities the orchestrator uses to turn a unit
location into executable code.

Key features:
- TransformPipeline protocol, with an identity default
- CodeLoader protocol, with an importlib-based default
- Per-loader module cache keyed by location
"""

import hashlib
import importlib.util
import re
import sys
from pathlib import Path
from types import ModuleType
from typing import Protocol, runtime_checkable

from bespoke.module.errors import ModuleError


class LoaderError(ModuleError):
    """Base exception for loader-related errors."""

    pass


@runtime_checkable
class TransformPipeline(Protocol):
    """Rewrites a unit location into a loadable one."""

    async def transform(self, location: str) -> str: ...


@runtime_checkable
class CodeLoader(Protocol):
    """Loads the unit found at a location.

    The returned object may expose a ``default`` callable, the unit's entry.
    """

    async def load(self, location: str) -> object: ...


class IdentityTransform:
    """Transform pipeline that leaves every location untouched."""

    async def transform(self, location: str) -> str:
        return location


_UNSAFE_CHARS = re.compile(r"[^0-9a-zA-Z_]")


class ImportlibLoader:
    """
    Loads Python source files as modules.

    Loaded modules are cached per location, so re-enabling a module reuses
    the unit it loaded before instead of executing the file again.
    """

    def __init__(self, namespace: str = "bespoke_unit"):
        self._namespace = namespace
        self._cache: dict[str, ModuleType] = {}

    def _module_name(self, location: str) -> str:
        digest = hashlib.sha1(location.encode("utf-8")).hexdigest()[:10]
        return f"{self._namespace}_{_UNSAFE_CHARS.sub('_', location)}_{digest}"

    async def load(self, location: str) -> ModuleType:
        """
        Load the Python file at ``location``.

        Raises:
            LoaderError: If the file is missing or fails to execute
        """
        if location in self._cache:
            return self._cache[location]

        path = Path(location)
        if not path.exists():
            raise LoaderError(f"Unit not found: {path}")

        module_name = self._module_name(location)
        spec = importlib.util.spec_from_file_location(module_name, path)
        if spec is None or spec.loader is None:
            raise LoaderError(f"Failed to create module spec for {path}")

        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except Exception as e:
            sys.modules.pop(module_name, None)
            raise LoaderError(f"Failed to load unit {path}: {e}") from e

        self._cache[location] = module
        return module

    def unload(self, location: str) -> None:
        """Forget a cached unit so the next load executes it again."""
        self._cache.pop(location, None)
        sys.modules.pop(self._module_name(location), None)

    def is_cached(self, location: str) -> bool:
        return location in self._cache

    def clear(self) -> None:
        for location in list(self._cache):
            self.unload(location)
