"""Data models for market data."""

from __future__ import annotations

import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType


@dataclass(frozen=True, slots=True)
class AssetQuote:
    """Price and 24h change of one asset."""

    price: float  # USD
    change_24h: float  # Percent, signed

    def to_dict(self) -> dict:
        return {"usd": self.price, "usd_24h_change": self.change_24h}


@dataclass(frozen=True, slots=True)
class Snapshot:
    """Immutable reading of every tracked asset at one point in time.

    Adapters only build a Snapshot once all tracked assets are present, so
    consumers can index any tracked asset without checking.
    """

    quotes: Mapping[str, AssetQuote]
    fetched_at: float = field(default_factory=time.time)  # Unix seconds

    def __post_init__(self) -> None:
        # Freeze the mapping as well as the dataclass
        object.__setattr__(self, "quotes", MappingProxyType(dict(self.quotes)))

    @property
    def assets(self) -> list[str]:
        return list(self.quotes)

    def price(self, asset: str) -> float:
        return self.quotes[asset].price

    def __contains__(self, asset: str) -> bool:
        return asset in self.quotes

    def to_dict(self) -> dict:
        """Serialize to the wire shape pushed to clients.

        {"bitcoin": {"usd": 50000.0, "usd_24h_change": 2.1}, ...}
        """
        return {asset: quote.to_dict() for asset, quote in self.quotes.items()}

    @classmethod
    def from_dict(cls, data: Mapping[str, Mapping[str, float]], fetched_at: float | None = None) -> Snapshot:
        """Build from the wire shape. Inverse of to_dict()."""
        quotes = {
            asset: AssetQuote(price=float(values["usd"]), change_24h=float(values["usd_24h_change"]))
            for asset, values in data.items()
        }
        if fetched_at is None:
            return cls(quotes=quotes)
        return cls(quotes=quotes, fetched_at=fetched_at)
