"""
Remote Notifier.

One-way side channel announcing local module mutations (add, remove,
enable, disable) to an external system of record. Sends are best-effort:
they never block or fail the local operation.
"""

import asyncio
from enum import Enum
from typing import Protocol, runtime_checkable

import httpx

from bespoke.logging_utils import get_logger

log = get_logger("notifier")

DEFAULT_PROTOCOL_URL = "https://bespoke-proxy.delusoire.workers.dev/protocol/"
DEFAULT_SCHEME = "bespoke:"


class NotificationKind(str, Enum):
    ADD = "add"
    REMOVE = "remove"
    ENABLE = "enable"
    DISABLE = "disable"


@runtime_checkable
class Notifier(Protocol):
    def notify(self, kind: NotificationKind, subject: str) -> None: ...


class NullNotifier:
    """Drops every notification."""

    def notify(self, kind: NotificationKind, subject: str) -> None:
        pass


class RecordingNotifier:
    """Keeps notifications in memory, in the order they were sent."""

    def __init__(self):
        self.sent: list[tuple[NotificationKind, str]] = []

    def notify(self, kind: NotificationKind, subject: str) -> None:
        self.sent.append((kind, subject))


class HttpNotifier:
    """
    Announces mutations by requesting ``<base_url><scheme><kind>:<subject>``.

    Each request runs as a background task on the current event loop; its
    outcome is only logged.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_PROTOCOL_URL,
        scheme: str = DEFAULT_SCHEME,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ):
        self.base_url = base_url
        self.scheme = scheme
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = client is None
        self._tasks: set[asyncio.Task] = set()

    def url_for(self, kind: NotificationKind, subject: str) -> str:
        return f"{self.base_url}{self.scheme}{kind.value}:{subject}"

    def notify(self, kind: NotificationKind, subject: str) -> None:
        url = self.url_for(kind, subject)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            log.warning("No running event loop, dropping notification {}", url)
            return

        task = loop.create_task(self._send(url))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _send(self, url: str) -> None:
        try:
            response = await self._client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            log.warning("Notification {} failed: {}", url, e)
        else:
            log.debug("Notified {}", url)

    async def drain(self) -> None:
        """Wait for in-flight notifications to finish."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    async def aclose(self) -> None:
        await self.drain()
        if self._owns_client:
            await self._client.aclose()
