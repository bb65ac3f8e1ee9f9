"""Tests for the SSE stream generator."""

import asyncio
import json

import pytest

from cryptodash.market.cache import SnapshotCache
from cryptodash.market.hub import BroadcastHub
from cryptodash.market.stream import _generate_events, format_event


class FakeRequest:
    """Minimal stand-in for starlette's Request."""

    client = None

    def __init__(self) -> None:
        self.disconnected = False

    async def is_disconnected(self) -> bool:
        return self.disconnected


def _parse(event: str) -> tuple[str, dict]:
    lines = event.strip().split("\n")
    assert lines[0].startswith("event: ")
    assert lines[1].startswith("data: ")
    return lines[0][len("event: "):], json.loads(lines[1][len("data: "):])


class TestFormatEvent:
    def test_format(self):
        event = format_event({"bitcoin": {"usd": 1.0, "usd_24h_change": 0.0}})
        assert event.endswith("\n\n")
        name, data = _parse(event)
        assert name == "crypto-update"
        assert data == {"bitcoin": {"usd": 1.0, "usd_24h_change": 0.0}}


@pytest.mark.asyncio
class TestGenerateEvents:
    """Tests for the per-client SSE event generator."""

    async def test_retry_then_cached_snapshot(self, example_snapshot):
        """Test that a client connecting to a warm cache gets the snapshot immediately."""
        cache = SnapshotCache()
        cache.set(example_snapshot)
        hub = BroadcastHub(cache)
        events = _generate_events(hub, FakeRequest(), keepalive=1.0)

        assert await events.__anext__() == "retry: 1000\n\n"
        name, data = _parse(await events.__anext__())
        assert name == "crypto-update"
        assert data == example_snapshot.to_dict()
        await events.aclose()

    async def test_channel_registered_once_streaming_starts(self):
        hub = BroadcastHub(SnapshotCache())
        events = _generate_events(hub, FakeRequest(), keepalive=1.0)
        assert len(hub) == 0

        await events.__anext__()  # retry
        assert len(hub) == 1
        await events.aclose()

    async def test_unstarted_stream_leaves_no_channel(self):
        """Test that a response cancelled before its first chunk registers nothing."""
        hub = BroadcastHub(SnapshotCache())
        events = _generate_events(hub, FakeRequest(), keepalive=1.0)
        await events.aclose()
        assert len(hub) == 0

    async def test_close_after_retry_deregisters(self):
        """Test that closing right after the retry line still removes the channel."""
        hub = BroadcastHub(SnapshotCache())
        events = _generate_events(hub, FakeRequest(), keepalive=1.0)
        await events.__anext__()  # retry
        await events.aclose()
        assert len(hub) == 0

    async def test_published_snapshots_stream_in_order(self, make_snapshot):
        hub = BroadcastHub(SnapshotCache())
        events = _generate_events(hub, FakeRequest(), keepalive=1.0)
        await events.__anext__()  # retry

        hub.publish(make_snapshot(price=1.0))
        hub.publish(make_snapshot(price=2.0))

        _, first = _parse(await events.__anext__())
        _, second = _parse(await events.__anext__())
        assert first["bitcoin"]["usd"] == 1.0
        assert second["bitcoin"]["usd"] == 2.0
        await events.aclose()

    async def test_keepalive_when_idle(self):
        """Test that an idle stream sends comment lines instead of going silent."""
        hub = BroadcastHub(SnapshotCache())
        events = _generate_events(hub, FakeRequest(), keepalive=0.01)
        await events.__anext__()  # retry

        assert await events.__anext__() == ": keepalive\n\n"
        await events.aclose()

    async def test_client_disconnect_deregisters(self):
        hub = BroadcastHub(SnapshotCache())
        request = FakeRequest()
        events = _generate_events(hub, request, keepalive=0.01)
        await events.__anext__()  # retry
        assert len(hub) == 1

        request.disconnected = True
        with pytest.raises(StopAsyncIteration):
            await events.__anext__()
        assert len(hub) == 0

    async def test_hub_close_ends_stream(self):
        """Test that shutting the hub down finishes open streams."""
        hub = BroadcastHub(SnapshotCache())
        events = _generate_events(hub, FakeRequest(), keepalive=5.0)
        await events.__anext__()  # retry

        async def next_event():
            return await events.__anext__()

        pending = asyncio.create_task(next_event())
        await asyncio.sleep(0)
        hub.close()
        with pytest.raises(StopAsyncIteration):
            await asyncio.wait_for(pending, timeout=1.0)
