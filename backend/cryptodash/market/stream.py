"""SSE streaming endpoint for live price updates."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncGenerator

from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse

from .hub import BroadcastHub

logger = logging.getLogger(__name__)

EVENT_NAME = "crypto-update"
DEFAULT_KEEPALIVE = 15.0


def create_stream_router(hub: BroadcastHub, keepalive: float = DEFAULT_KEEPALIVE) -> APIRouter:
    """Create the SSE streaming router bound to a BroadcastHub.

    This factory pattern lets us inject the hub without globals.
    """
    router = APIRouter(prefix="/api/stream", tags=["streaming"])

    @router.get("/prices")
    async def stream_prices(request: Request) -> StreamingResponse:
        """SSE endpoint for live price updates.

        The client connects with EventSource and listens for `crypto-update`:

            event: crypto-update
            data: {"bitcoin": {"usd": 50000.0, "usd_24h_change": 2.1}, ...}

        A cached snapshot is sent right away; after that one event per
        successful poll cycle.
        """
        return StreamingResponse(
            _generate_events(hub, request, keepalive),
            media_type="text/event-stream",
            headers={
                "Cache-Control": "no-cache",
                "Connection": "keep-alive",
                "X-Accel-Buffering": "no",  # Disable nginx buffering if proxied
            },
        )

    return router


def format_event(data: dict) -> str:
    return f"event: {EVENT_NAME}\ndata: {json.dumps(data)}\n\n"


async def _generate_events(
    hub: BroadcastHub,
    request: Request,
    keepalive: float = DEFAULT_KEEPALIVE,
) -> AsyncGenerator[str, None]:
    """Async generator that yields SSE events for one channel.

    The hub channel is opened on first iteration, so a response that is
    never streamed leaves nothing registered. Stops when the client
    disconnects or the hub closes the channel.
    """
    client_id = request.client.host if request.client else "unknown"
    channel = hub.connect(client_id)

    try:
        # Tell the client to retry after 1 second if the connection drops
        yield "retry: 1000\n\n"

        while True:
            if await request.is_disconnected():
                break
            try:
                snapshot = await asyncio.wait_for(channel.receive(), timeout=keepalive)
            except asyncio.TimeoutError:
                yield ": keepalive\n\n"
                continue
            if snapshot is None:
                break
            yield format_event(snapshot.to_dict())
    except asyncio.CancelledError:
        logger.info("SSE stream cancelled for: %s", channel.client_id)
        raise
    finally:
        hub.disconnect(channel)
