"""pm query command (-Q)."""

from typing import Any

from bespoke.module.vault import load_vault
from pm.cli import vault_path


def query_command(args: Any) -> int:
    vault = load_vault(vault_path(args), missing_ok=True)
    identifiers = args.targets or sorted(vault.modules)

    for identifier in identifiers:
        entry = vault.modules.get(identifier)
        if entry is None:
            print(f"{identifier} (not installed)")
            continue
        status = "enabled" if entry.enabled else "disabled"
        line = f"{identifier} [{status}]"
        if args.verbose:
            line += f" {entry.metadata}"
            if entry.remote_metadata:
                line += f" <- {entry.remote_metadata}"
        print(line)

    return 0
