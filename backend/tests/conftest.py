"""Pytest configuration and fixtures."""

from __future__ import annotations

import asyncio

import pytest

from cryptodash.market.errors import FetchError
from cryptodash.market.interface import PriceSource
from cryptodash.market.models import Snapshot

ASSETS = ["bitcoin", "ethereum", "solana"]

EXAMPLE_PAYLOAD = {
    "bitcoin": {"usd": 50000.0, "usd_24h_change": 2.1},
    "ethereum": {"usd": 3000.0, "usd_24h_change": -1.5},
    "solana": {"usd": 100.0, "usd_24h_change": 0.0},
}


class ScriptedSource(PriceSource):
    """PriceSource that replays a script of snapshots and errors.

    Each fetch() pops the next outcome; an Exception instance is raised, a
    Snapshot is returned. When `gate` is set, fetch() blocks until it is.
    """

    name = "scripted"

    def __init__(self, outcomes: list[Snapshot | Exception], assets: list[str] | None = None) -> None:
        self._outcomes = list(outcomes)
        self._assets = assets or ["bitcoin", "ethereum", "solana"]
        self.gate: asyncio.Event | None = None
        self.calls = 0
        self.in_flight = 0
        self.max_in_flight = 0
        self.closed = False

    @property
    def assets(self) -> list[str]:
        return list(self._assets)

    async def fetch(self) -> Snapshot:
        self.calls += 1
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.gate is not None:
                await self.gate.wait()
            if not self._outcomes:
                raise FetchError(self.name, "script exhausted")
            outcome = self._outcomes.pop(0)
            if isinstance(outcome, Exception):
                raise outcome
            return outcome
        finally:
            self.in_flight -= 1

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def scripted_source():
    """Factory for ScriptedSource instances."""
    return ScriptedSource


@pytest.fixture
def assets() -> list[str]:
    return list(ASSETS)


@pytest.fixture
def example_snapshot() -> Snapshot:
    """The bitcoin/ethereum/solana reading used across tests."""
    return Snapshot.from_dict(EXAMPLE_PAYLOAD, fetched_at=1700000000.0)


@pytest.fixture
def make_snapshot():
    """Build a complete snapshot where every asset has the given price."""

    def _make(price: float = 100.0, change: float = 0.0, assets: list[str] | None = None) -> Snapshot:
        return Snapshot.from_dict(
            {asset: {"usd": price, "usd_24h_change": change} for asset in (assets or ASSETS)}
        )

    return _make
