"""Error types for the market data subsystem."""

from __future__ import annotations


class FetchError(Exception):
    """A price source could not produce a complete snapshot.

    Covers network failures, timeouts, non-2xx responses and malformed or
    partial payloads. Always non-fatal: the poll cycle is skipped.
    """

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider


class RateLimitedError(FetchError):
    """Upstream answered HTTP 429."""


class ChannelDeliveryError(Exception):
    """A snapshot could not be handed to one client channel."""

    def __init__(self, client_id: str, message: str) -> None:
        super().__init__(f"{client_id}: {message}")
        self.client_id = client_id


class StartupError(Exception):
    """The server could not start. The process exits non-zero."""
