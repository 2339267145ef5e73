"""
Tests for the pm command line.

This test suite covers:
1. Adding modules to the vault (-S)
2. Listing (-Q), enabling and disabling
3. Removing modules (-R)
4. Configuration handling
5. Error exit codes
"""

import json

import pytest

from bespoke.config import load_loader_config
from bespoke.module.vault import load_vault
from pm.cli import create_parser, main


@pytest.fixture
def module_metadata(tmp_path):
    folder = tmp_path / "modules" / "alice" / "stats"
    folder.mkdir(parents=True)
    path = folder / "metadata.json"
    path.write_text(
        json.dumps({"name": "stats", "authors": ["alice"], "version": "0.3.1"})
    )
    return path


@pytest.fixture
def vault(tmp_path):
    return tmp_path / "vault.json"


class TestParser:
    def test_operations_are_exclusive(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args(["-S", "-R", "x"])

    def test_targets(self):
        args = create_parser().parse_args(["-R", "a/a", "b/b"])

        assert args.remove
        assert args.targets == ["a/a", "b/b"]


class TestSync:
    """Test pm -S."""

    def test_add_module(self, module_metadata, vault):
        assert main(["-S", str(module_metadata), "--vault", str(vault)]) == 0

        entry = load_vault(vault).modules["alice/stats"]
        assert entry.metadata == str(module_metadata)
        assert entry.enabled

    def test_add_twice_fails(self, module_metadata, vault):
        main(["-S", str(module_metadata), "--vault", str(vault)])

        assert main(["-S", str(module_metadata), "--vault", str(vault)]) == 1
        assert list(load_vault(vault).modules) == ["alice/stats"]

    def test_unreachable_metadata(self, tmp_path, vault, capsys):
        code = main(["-S", str(tmp_path / "missing.json"), "--vault", str(vault)])

        assert code == 1
        assert "Failed to add" in capsys.readouterr().err
        assert load_vault(vault).modules == {}

    def test_no_targets(self, vault, capsys):
        assert main(["-S", "--vault", str(vault)]) == 1
        assert "No targets specified" in capsys.readouterr().err


class TestQueryAndToggle:
    """Test pm -Q, --enable and --disable."""

    def test_query(self, module_metadata, vault, capsys):
        main(["-S", str(module_metadata), "--vault", str(vault)])
        capsys.readouterr()

        assert main(["-Q", "--vault", str(vault)]) == 0
        assert capsys.readouterr().out.strip() == "alice/stats [enabled]"

    def test_query_unknown(self, vault, capsys):
        main(["-Q", "nobody/nothing", "--vault", str(vault)])

        assert "nobody/nothing (not installed)" in capsys.readouterr().out

    def test_disable_then_enable(self, module_metadata, vault, capsys):
        main(["-S", str(module_metadata), "--vault", str(vault)])

        assert main(["--disable", "alice/stats", "--vault", str(vault)]) == 0
        assert not load_vault(vault).modules["alice/stats"].enabled

        assert main(["--enable", "alice/stats", "--vault", str(vault)]) == 0
        assert load_vault(vault).modules["alice/stats"].enabled

    def test_toggle_unknown(self, module_metadata, vault, capsys):
        main(["-S", str(module_metadata), "--vault", str(vault)])

        assert main(["--disable", "x/y", "--vault", str(vault)]) == 1
        assert "Can't find a module" in capsys.readouterr().err


class TestRemove:
    """Test pm -R."""

    def test_remove(self, module_metadata, vault):
        main(["-S", str(module_metadata), "--vault", str(vault)])

        assert main(["-R", "alice/stats", "--vault", str(vault)]) == 0
        assert load_vault(vault).modules == {}

    def test_remove_unknown(self, module_metadata, vault):
        main(["-S", str(module_metadata), "--vault", str(vault)])

        assert main(["-R", "x/y", "--vault", str(vault)]) == 1

    def test_remove_without_vault(self, vault, capsys):
        assert main(["-R", "a/a", "--vault", str(vault)]) == 1
        assert "Vault file not found" in capsys.readouterr().err


class TestConfiguration:
    """Test configuration handling."""

    def test_init_config(self, tmp_path):
        path = tmp_path / "config" / "bespoke.toml"

        assert main(["--init-config", "--config", str(path)]) == 0
        assert load_loader_config(path).modules_dir == "modules"

    def test_vault_location_from_config(self, tmp_path, module_metadata, capsys):
        config = tmp_path / "bespoke.toml"
        config.write_text(f'[loader]\nmodules_dir = "{tmp_path.as_posix()}"\n')

        main(["-S", str(module_metadata), "--config", str(config)])

        assert "alice/stats" in load_vault(tmp_path / "vault.json").modules

    def test_invalid_config(self, tmp_path, capsys):
        config = tmp_path / "bespoke.toml"
        config.write_text("[loader]\nload_timeout = -1\n")

        assert main(["-Q", "--config", str(config)]) == 1
        assert "Invalid loader configuration" in capsys.readouterr().err

    def test_help(self, capsys):
        assert main([]) == 0
        assert "pm - bespoke module manager" in capsys.readouterr().out
