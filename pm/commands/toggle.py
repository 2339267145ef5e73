"""pm enable/disable commands (--enable, --disable)."""

import sys
from typing import Any

from bespoke.module.vault import VaultError, load_vault, save_vault
from pm.cli import vault_path


def toggle_command(args: Any, enabled: bool) -> int:
    if not args.targets:
        flag = "--enable" if enabled else "--disable"
        print("Error: No targets specified", file=sys.stderr)
        print(f"Usage: pm {flag} <identifier>...", file=sys.stderr)
        return 1

    path = vault_path(args)
    vault = load_vault(path)
    fail_count = 0
    for identifier in args.targets:
        try:
            vault.toggle(identifier, enabled)
        except VaultError as e:
            print(f"Error: {e}", file=sys.stderr)
            fail_count += 1

    save_vault(path, vault)
    return 0 if fail_count == 0 else 1
