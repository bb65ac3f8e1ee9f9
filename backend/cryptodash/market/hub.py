"""Fan-out of snapshots to connected client channels."""

from __future__ import annotations

import asyncio
import itertools
import logging

from .cache import SnapshotCache
from .errors import ChannelDeliveryError
from .models import Snapshot

logger = logging.getLogger(__name__)

DEFAULT_CHANNEL_BUFFER = 16

_ids = itertools.count(1)


class Channel:
    """One client's live push connection, as seen by the hub.

    Snapshots are queued in FIFO order, so a channel never observes an older
    snapshot after a newer one. send() never awaits; a reader that falls
    behind by more than `buffer` snapshots gets a ChannelDeliveryError on the
    next send and is dropped by the hub.
    """

    def __init__(self, client_id: str = "unknown", buffer: int = DEFAULT_CHANNEL_BUFFER) -> None:
        self.id = next(_ids)
        self.client_id = client_id
        self._queue: asyncio.Queue[Snapshot | None] = asyncio.Queue(maxsize=buffer)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, snapshot: Snapshot) -> None:
        if self._closed:
            raise ChannelDeliveryError(self.client_id, "channel is closed")
        try:
            self._queue.put_nowait(snapshot)
        except asyncio.QueueFull as e:
            raise ChannelDeliveryError(self.client_id, "outbox full, reader is stalled") from e

    async def receive(self) -> Snapshot | None:
        """Next snapshot, or None once the channel is closed and drained."""
        if self._closed and self._queue.empty():
            return None
        return await self._queue.get()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        # Wake a reader blocked in receive()
        try:
            self._queue.put_nowait(None)
        except asyncio.QueueFull:
            pass

    def pending(self) -> int:
        return self._queue.qsize()

    def __repr__(self) -> str:
        return f"Channel(id={self.id}, client_id={self.client_id!r}, closed={self._closed})"


class BroadcastHub:
    """Tracks connected channels and pushes snapshots to all of them.

    Delivery is best-effort and independent per channel: one failing channel
    is logged and dropped, the others still receive the snapshot.
    """

    def __init__(self, cache: SnapshotCache, channel_buffer: int = DEFAULT_CHANNEL_BUFFER) -> None:
        self._cache = cache
        self._buffer = channel_buffer
        self._channels: set[Channel] = set()

    def connect(self, client_id: str = "unknown") -> Channel:
        """Register a new channel and catch it up with the cached snapshot."""
        channel = Channel(client_id=client_id, buffer=self._buffer)
        self._channels.add(channel)
        logger.info("Client connected: %s (%d connected)", client_id, len(self._channels))

        snapshot = self._cache.get()
        if snapshot is not None:
            self._deliver(channel, snapshot)
        return channel

    def disconnect(self, channel: Channel) -> None:
        """Deregister a channel. No-op if it was already removed."""
        channel.close()
        if channel in self._channels:
            self._channels.discard(channel)
            logger.info("Client disconnected: %s (%d connected)", channel.client_id, len(self._channels))

    def publish(self, snapshot: Snapshot) -> int:
        """Deliver to every channel registered at call time.

        Returns the number of channels that accepted the snapshot.
        """
        delivered = 0
        for channel in tuple(self._channels):
            if self._deliver(channel, snapshot):
                delivered += 1
        logger.debug("Published snapshot to %d/%d channels", delivered, len(self._channels))
        return delivered

    def close(self) -> None:
        """Close every channel. Open streams end after draining."""
        for channel in tuple(self._channels):
            channel.close()
        self._channels.clear()
        logger.info("Broadcast hub closed")

    def __len__(self) -> int:
        return len(self._channels)

    def __contains__(self, channel: Channel) -> bool:
        return channel in self._channels

    # --- Internal ---

    def _deliver(self, channel: Channel, snapshot: Snapshot) -> bool:
        try:
            channel.send(snapshot)
            return True
        except ChannelDeliveryError as e:
            logger.warning("Dropping channel %d: %s", channel.id, e)
            self.disconnect(channel)
            return False
