"""
bespoke Module System - registry, resolution and staged loading of modules.

This package handles:
- Descriptor parsing and validation
- The copy-on-write module registry
- Dependency-based priority resolution
- The pre-init / style / code lifecycle
- Vault persistence and the remote notifier
"""

__all__ = []
