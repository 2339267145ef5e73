"""
Tests for unit loading and style hosting.

This test suite covers:
1. Loading Python units from files
2. Per-location caching and unloading
3. Load failures
4. The in-memory style host
"""

import sys

import pytest

from bespoke.module.loader import (
    CodeLoader,
    IdentityTransform,
    ImportlibLoader,
    LoaderError,
    TransformPipeline,
)
from bespoke.module.styles import StyleHost, StyleSheetRegistry

UNIT = """
def default(handle):
    return handle * 2
"""


class TestImportlibLoader:
    """Test the importlib-based code loader."""

    @pytest.mark.asyncio
    async def test_load_unit(self, tmp_path):
        path = tmp_path / "index.py"
        path.write_text(UNIT)
        loader = ImportlibLoader()

        unit = await loader.load(str(path))

        assert unit.default(21) == 42
        assert loader.is_cached(str(path))

    @pytest.mark.asyncio
    async def test_cached_unit_is_reused(self, tmp_path):
        path = tmp_path / "index.py"
        path.write_text(UNIT)
        loader = ImportlibLoader()

        first = await loader.load(str(path))
        second = await loader.load(str(path))

        assert first is second

    @pytest.mark.asyncio
    async def test_unload_executes_again(self, tmp_path):
        path = tmp_path / "index.py"
        path.write_text(UNIT)
        loader = ImportlibLoader()
        first = await loader.load(str(path))

        loader.unload(str(path))
        second = await loader.load(str(path))

        assert first is not second

    @pytest.mark.asyncio
    async def test_missing_unit(self, tmp_path):
        with pytest.raises(LoaderError, match="Unit not found"):
            await ImportlibLoader().load(str(tmp_path / "missing.py"))

    @pytest.mark.asyncio
    async def test_broken_unit_is_not_left_in_sys_modules(self, tmp_path):
        path = tmp_path / "index.py"
        path.write_text("raise RuntimeError('unit exploded')\n")
        loader = ImportlibLoader(namespace="test_broken")

        with pytest.raises(LoaderError, match="unit exploded"):
            await loader.load(str(path))

        assert not loader.is_cached(str(path))
        assert not any(name.startswith("test_broken_") for name in sys.modules)

    @pytest.mark.asyncio
    async def test_similar_locations_get_distinct_modules(self, tmp_path):
        (tmp_path / "a").mkdir()
        nested = tmp_path / "a" / "b.py"
        flat = tmp_path / "a_b.py"
        nested.write_text(UNIT)
        flat.write_text(UNIT)
        loader = ImportlibLoader()
        await loader.load(str(nested))
        kept = await loader.load(str(flat))

        loader.unload(str(nested))

        assert sys.modules[kept.__name__] is kept
        assert loader.is_cached(str(flat))

    @pytest.mark.asyncio
    async def test_clear(self, tmp_path):
        loader = ImportlibLoader()
        for name in ("a.py", "b.py"):
            (tmp_path / name).write_text(UNIT)
            await loader.load(str(tmp_path / name))

        loader.clear()

        assert not loader.is_cached(str(tmp_path / "a.py"))
        assert not loader.is_cached(str(tmp_path / "b.py"))

    def test_protocols(self):
        assert isinstance(ImportlibLoader(), CodeLoader)
        assert isinstance(IdentityTransform(), TransformPipeline)


class TestIdentityTransform:
    @pytest.mark.asyncio
    async def test_location_unchanged(self):
        assert await IdentityTransform().transform("/x/index.py") == "/x/index.py"


class TestStyleSheetRegistry:
    """Test the in-memory style host."""

    def test_inject_and_remove(self):
        styles = StyleSheetRegistry()

        styles.inject("a/a-styles", "/modules/a/a/style.css")
        assert styles.active() == {"a/a-styles": "/modules/a/a/style.css"}

        styles.remove("a/a-styles")
        styles.remove("a/a-styles")
        assert styles.active() == {}

    def test_reinject_replaces(self):
        styles = StyleSheetRegistry()

        styles.inject("a/a-styles", "/old.css")
        styles.inject("a/a-styles", "/new.css")

        assert styles.active() == {"a/a-styles": "/new.css"}
        assert isinstance(styles, StyleHost)
