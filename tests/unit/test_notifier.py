"""
Tests for the remote notifier.

This test suite covers:
1. Notification URL format
2. Fire-and-forget delivery
3. Failures never reaching the caller
"""

import httpx
import pytest

from bespoke.module.notifier import (
    DEFAULT_PROTOCOL_URL,
    HttpNotifier,
    NotificationKind,
    Notifier,
    NullNotifier,
    RecordingNotifier,
)


def recording_client(requests, status=200) -> httpx.AsyncClient:
    def handler(request):
        requests.append(request)
        return httpx.Response(status)

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestUrlFormat:
    def test_default_url(self):
        notifier = HttpNotifier(client=recording_client([]))

        url = notifier.url_for(NotificationKind.ENABLE, "alice/stats")

        assert url == f"{DEFAULT_PROTOCOL_URL}bespoke:enable:alice/stats"

    def test_custom_base(self):
        notifier = HttpNotifier("http://localhost:9000/p/", "x:", client=recording_client([]))

        assert notifier.url_for(NotificationKind.REMOVE, "a/b") == "http://localhost:9000/p/x:remove:a/b"


class TestHttpNotifier:
    """Test best-effort delivery."""

    @pytest.mark.asyncio
    async def test_notify_does_not_block(self):
        requests = []
        notifier = HttpNotifier("http://proxy.test/protocol/", client=recording_client(requests))

        notifier.notify(NotificationKind.DISABLE, "alice/stats")

        assert requests == []
        await notifier.drain()
        assert len(requests) == 1
        assert requests[0].url.path == "/protocol/bespoke:disable:alice/stats"

    @pytest.mark.asyncio
    async def test_error_status_is_swallowed(self):
        requests = []
        notifier = HttpNotifier("http://proxy.test/", client=recording_client(requests, 500))

        notifier.notify(NotificationKind.ADD, "alice/stats")
        await notifier.drain()

        assert len(requests) == 1

    @pytest.mark.asyncio
    async def test_connection_error_is_swallowed(self):
        def handler(request):
            raise httpx.ConnectError("unreachable", request=request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        notifier = HttpNotifier("http://proxy.test/", client=client)

        notifier.notify(NotificationKind.REMOVE, "alice/stats")
        await notifier.drain()

    def test_without_event_loop_notification_is_dropped(self):
        requests = []
        notifier = HttpNotifier("http://proxy.test/", client=recording_client(requests))

        notifier.notify(NotificationKind.ENABLE, "alice/stats")

        assert requests == []

    @pytest.mark.asyncio
    async def test_aclose_leaves_injected_client_open(self):
        client = recording_client([])
        notifier = HttpNotifier("http://proxy.test/", client=client)

        await notifier.aclose()

        assert not client.is_closed
        await client.aclose()


class TestLocalNotifiers:
    def test_recording_notifier(self):
        notifier = RecordingNotifier()

        notifier.notify(NotificationKind.ADD, "/modules/a/metadata.json")
        notifier.notify(NotificationKind.ENABLE, "a/a")

        assert notifier.sent == [
            (NotificationKind.ADD, "/modules/a/metadata.json"),
            (NotificationKind.ENABLE, "a/a"),
        ]

    def test_protocol(self):
        assert isinstance(NullNotifier(), Notifier)
        assert isinstance(RecordingNotifier(), Notifier)
        NullNotifier().notify(NotificationKind.REMOVE, "a/a")
