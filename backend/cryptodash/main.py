"""FastAPI application and process entry point."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings
from .market import (
    BroadcastHub,
    PollLoop,
    PriceSource,
    SnapshotCache,
    StartupError,
    create_price_source,
    create_stream_router,
)

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)


def create_app(settings: Settings, source: PriceSource | None = None) -> FastAPI:
    """Wire source, cache, hub and poll loop into a FastAPI app.

    Every call builds an isolated set of objects, so tests can run several
    apps side by side. Pass `source` to bypass provider selection.
    """
    if source is None:
        source = create_price_source(
            settings.provider,
            settings.assets,
            url=settings.api_url,
            api_key=settings.api_key,
            timeout=settings.request_timeout,
        )
    cache = SnapshotCache()
    hub = BroadcastHub(cache)
    poller = PollLoop(source, cache, hub, interval=settings.poll_interval)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await poller.start()
        try:
            yield
        finally:
            await poller.stop()
            hub.close()
            await source.aclose()

    app = FastAPI(title="CryptoDash", lifespan=lifespan)
    app.state.settings = settings
    app.state.cache = cache
    app.state.hub = hub
    app.state.poller = poller

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET"],
        allow_headers=["*"],
    )
    app.include_router(create_stream_router(hub))

    @app.get("/api/prices")
    async def latest_prices() -> dict:
        """Cached snapshot in the same shape as the crypto-update event."""
        snapshot = cache.get()
        if snapshot is None:
            raise HTTPException(status_code=503, detail="No prices fetched yet")
        return snapshot.to_dict()

    @app.get("/api/health")
    async def health() -> dict:
        return {
            "provider": source.name,
            "assets": source.assets,
            "clients": len(hub),
            "cache_version": cache.version,
            "poll_interval": poller.interval,
            "cycles": poller.cycles,
            "failures": poller.failures,
            "last_success": poller.last_success,
        }

    return app


def serve(settings: Settings) -> None:
    """Run the server until shutdown. Raises StartupError if it cannot start."""
    try:
        app = create_app(settings)
    except ValueError as e:
        raise StartupError(str(e)) from e

    config = uvicorn.Config(app, host=settings.host, port=settings.port, log_config=None, lifespan="on")
    server = uvicorn.Server(config)
    try:
        server.run()
    except SystemExit as e:
        # uvicorn exits directly when the port cannot be bound
        raise StartupError(f"could not listen on {settings.host}:{settings.port}") from e
    if not server.started:
        raise StartupError("application startup failed")


def main() -> int:
    try:
        settings = Settings.from_env()
    except ValueError as e:
        configure_logging()
        logger.error("Invalid configuration: %s", e)
        return 1

    configure_logging(settings.log_level)
    logger.info("Starting CryptoDash on %s:%d", settings.host, settings.port)
    try:
        serve(settings)
    except StartupError as e:
        logger.error("Startup failed: %s", e)
        return 1
    return 0
