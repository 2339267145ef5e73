"""
pm install command (-S).

Fetch each module's descriptor and add it to the vault under its identifier.
"""

import asyncio
import sys
from typing import Any

from bespoke.module.errors import ModuleError
from bespoke.module.fetch import DescriptorFetcher
from bespoke.module.vault import Vault, load_vault, save_vault
from pm.cli import vault_path


def install_command(args: Any) -> int:
    """
    Execute install command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    if not args.targets:
        print("Error: No targets specified", file=sys.stderr)
        print("Usage: pm -S <metadata>...", file=sys.stderr)
        return 1

    path = vault_path(args)
    vault = load_vault(path, missing_ok=True)
    failures = asyncio.run(install_async(args, vault))
    save_vault(path, vault)
    return 0 if failures == 0 else 1


async def install_async(args: Any, vault: Vault) -> int:
    """Add every target to ``vault``; returns the number of failures."""
    fetcher = DescriptorFetcher()
    success_count = 0
    fail_count = 0

    try:
        for target in args.targets:
            try:
                identifier = await install_module(target, vault, fetcher)
            except ModuleError as e:
                print(f"Failed to add {target}: {e}", file=sys.stderr)
                fail_count += 1
                continue
            success_count += 1
            if args.verbose:
                print(f"Added {identifier}")
    finally:
        await fetcher.aclose()

    if args.verbose:
        print(f"\nAdded: {success_count}, Failed: {fail_count}")

    return fail_count


async def install_module(target: str, vault: Vault, fetcher: DescriptorFetcher) -> str:
    """Add one metadata location to the vault, returning its identifier."""
    descriptor = await fetcher.fetch(target)
    vault.add(descriptor.identifier, target)
    return descriptor.identifier
