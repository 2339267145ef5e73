"""
Descriptor Fetch Service.

Fetches module metadata from a local path or an http(s) location.
"""

import asyncio
import json
from pathlib import Path

import httpx

from bespoke.module.descriptor import Descriptor, DescriptorError, parse_descriptor
from bespoke.module.errors import ModuleError


class FetchError(ModuleError):
    """Raised when a descriptor location cannot be reached."""

    pass


class DescriptorFetcher:
    """Fetches and validates module descriptors."""

    def __init__(self, client: httpx.AsyncClient | None = None, timeout: float = 30.0):
        """
        Initialize DescriptorFetcher.

        Args:
            client: HTTP client to use for remote locations (created lazily)
            timeout: Request timeout in seconds for the lazily created client
        """
        self._client = client
        self._owns_client = client is None
        self._timeout = timeout

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def fetch(self, location: str) -> Descriptor:
        """
        Fetch the descriptor stored at ``location``.

        Raises:
            FetchError: If the location is unreachable
            DescriptorError: If the payload is not a valid descriptor
        """
        if location.startswith(("http://", "https://")):
            text = await self._fetch_remote(location)
        else:
            text = await self._fetch_local(location)

        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise DescriptorError(f"Failed to parse metadata from {location}: {e}") from e

        return parse_descriptor(data)

    async def _fetch_remote(self, location: str) -> str:
        try:
            response = await self.client.get(location)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise FetchError(f"Failed to fetch {location}: {e}") from e
        return response.text

    async def _fetch_local(self, location: str) -> str:
        try:
            return await asyncio.to_thread(Path(location).read_text, encoding="utf-8")
        except OSError as e:
            raise FetchError(f"Failed to read {location}: {e}") from e

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None
