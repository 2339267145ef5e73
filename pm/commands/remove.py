"""pm remove command (-R)."""

import sys
from typing import Any

from bespoke.module.vault import VaultError, load_vault, save_vault
from pm.cli import vault_path


def remove_command(args: Any) -> int:
    if not args.targets:
        print("Error: No targets specified", file=sys.stderr)
        print("Usage: pm -R <identifier>...", file=sys.stderr)
        return 1

    path = vault_path(args)
    vault = load_vault(path)
    fail_count = 0
    for identifier in args.targets:
        try:
            vault.remove(identifier)
        except VaultError as e:
            print(f"Failed to remove {identifier}: {e}", file=sys.stderr)
            fail_count += 1
        else:
            if args.verbose:
                print(f"Removed {identifier}")

    save_vault(path, vault)
    return 0 if fail_count == 0 else 1
