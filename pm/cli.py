"""
pm CLI - bespoke module manager.

Pacman-style interface for editing the module vault.

Usage:
    pm -S <metadata>...          Add module(s) to the vault
    pm -R <identifier>...        Remove module(s) from the vault
    pm -Q                        List vault modules
    pm --enable <identifier>...  Enable module(s)
    pm --disable <identifier>... Disable module(s)
    pm --init-config             Write a default configuration file
"""

import argparse
import sys
from pathlib import Path

from bespoke.config import ConfigError, load_loader_config
from bespoke.logging_utils import configure_logging
from bespoke.module.errors import ModuleError

DEFAULT_CONFIG = Path("config/bespoke.toml")


class PMError(Exception):
    """Base exception for pm errors."""

    pass


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser with pacman-style flags."""
    parser = argparse.ArgumentParser(
        prog="pm",
        description="bespoke module manager - Pacman-style vault editor",
        add_help=False,
    )

    ops = parser.add_mutually_exclusive_group()
    ops.add_argument("-S", "--sync", action="store_true", help="Add module")
    ops.add_argument("-R", "--remove", action="store_true", help="Remove module")
    ops.add_argument("-Q", "--query", action="store_true", help="List modules")
    ops.add_argument("--enable", action="store_true", help="Enable module")
    ops.add_argument("--disable", action="store_true", help="Disable module")
    ops.add_argument("--init-config", action="store_true", help="Write default config")
    ops.add_argument("-h", "--help", action="store_true", help="Show help")

    parser.add_argument("--config", type=Path, default=DEFAULT_CONFIG, help="Config file")
    parser.add_argument("--vault", type=Path, default=None, help="Vault file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    parser.add_argument("targets", nargs="*", help="Metadata locations or identifiers")

    return parser


def print_help():
    help_text = """
pm - bespoke module manager

Usage:
    pm -S <metadata>...          Add module(s) to the vault
    pm -R <identifier>...        Remove module(s) from the vault
    pm -Q                        List vault modules
    pm --enable <identifier>...  Enable module(s)
    pm --disable <identifier>... Disable module(s)
    pm --init-config             Write a default configuration file

Options:
    --config PATH                Configuration file (default: config/bespoke.toml)
    --vault PATH                 Vault file (default: from configuration)
    -v, --verbose                Verbose output
    -h, --help                   Show this help
"""
    print(help_text.strip())


def vault_path(args: argparse.Namespace) -> Path:
    """Vault location: --vault, else the configured one."""
    if args.vault is not None:
        return args.vault
    try:
        return load_loader_config(args.config).vault_path
    except ConfigError as e:
        raise PMError(str(e)) from e


def main(argv: list[str] | None = None) -> int:
    """Main entry point for pm CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)
    configure_logging("DEBUG" if args.verbose else "WARNING")

    try:
        if args.sync:
            from pm.commands.install import install_command

            return install_command(args)

        if args.remove:
            from pm.commands.remove import remove_command

            return remove_command(args)

        if args.query:
            from pm.commands.query import query_command

            return query_command(args)

        if args.enable or args.disable:
            from pm.commands.toggle import toggle_command

            return toggle_command(args, enabled=args.enable)

        if args.init_config:
            from bespoke.config.loader import write_default_config

            write_default_config(args.config)
            print(f"Wrote {args.config}")
            return 0

        print_help()
        return 0

    except (PMError, ModuleError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 130
    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback

            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
