"""
Tests for the descriptor fetch service.

This test suite covers:
1. Local metadata files
2. Remote metadata over HTTP (mocked transport)
3. Fetch and parse failures
"""

import json

import httpx
import pytest

from bespoke.module.descriptor import DescriptorError
from bespoke.module.fetch import DescriptorFetcher, FetchError

METADATA = {
    "name": "stats",
    "authors": ["alice"],
    "version": "0.3.1",
    "entries": {"js": "index.py"},
}


def mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestLocalFetch:
    """Test reading metadata from disk."""

    @pytest.mark.asyncio
    async def test_fetch_local(self, tmp_path):
        path = tmp_path / "metadata.json"
        path.write_text(json.dumps(METADATA))

        descriptor = await DescriptorFetcher().fetch(str(path))

        assert descriptor.identifier == "alice/stats"
        assert descriptor.entries.js == "index.py"

    @pytest.mark.asyncio
    async def test_missing_file(self, tmp_path):
        with pytest.raises(FetchError, match="Failed to read"):
            await DescriptorFetcher().fetch(str(tmp_path / "metadata.json"))

    @pytest.mark.asyncio
    async def test_invalid_json(self, tmp_path):
        path = tmp_path / "metadata.json"
        path.write_text("{ nope")

        with pytest.raises(DescriptorError, match="Failed to parse metadata"):
            await DescriptorFetcher().fetch(str(path))

    @pytest.mark.asyncio
    async def test_invalid_descriptor(self, tmp_path):
        path = tmp_path / "metadata.json"
        path.write_text(json.dumps({"name": "stats"}))

        with pytest.raises(DescriptorError, match="Missing required field"):
            await DescriptorFetcher().fetch(str(path))


class TestRemoteFetch:
    """Test fetching metadata over HTTP."""

    @pytest.mark.asyncio
    async def test_fetch_remote(self):
        seen = []

        def handler(request):
            seen.append(str(request.url))
            return httpx.Response(200, json=METADATA)

        fetcher = DescriptorFetcher(client=mock_client(handler))

        descriptor = await fetcher.fetch("https://example.com/stats/metadata.json")

        assert descriptor.identifier == "alice/stats"
        assert seen == ["https://example.com/stats/metadata.json"]

    @pytest.mark.asyncio
    async def test_http_error_status(self):
        fetcher = DescriptorFetcher(client=mock_client(lambda request: httpx.Response(404)))

        with pytest.raises(FetchError, match="Failed to fetch"):
            await fetcher.fetch("https://example.com/missing/metadata.json")

    @pytest.mark.asyncio
    async def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        fetcher = DescriptorFetcher(client=mock_client(handler))

        with pytest.raises(FetchError, match="connection refused"):
            await fetcher.fetch("https://example.com/stats/metadata.json")

    @pytest.mark.asyncio
    async def test_aclose_keeps_injected_client_open(self):
        client = mock_client(lambda request: httpx.Response(200, json=METADATA))
        fetcher = DescriptorFetcher(client=client)

        await fetcher.aclose()

        assert not client.is_closed
        await client.aclose()

    @pytest.mark.asyncio
    async def test_aclose_closes_own_client(self):
        fetcher = DescriptorFetcher()
        client = fetcher.client

        await fetcher.aclose()

        assert client.is_closed
