"""CoinGecko simple/price source."""

from __future__ import annotations

from typing import Any

from .errors import FetchError
from .interface import HttpPriceSource
from .models import AssetQuote, Snapshot


class CoinGeckoSource(HttpPriceSource):
    """PriceSource backed by CoinGecko's /simple/price endpoint.

    One GET returns every tracked asset:

        {"bitcoin": {"usd": 50000, "usd_24h_change": 2.1}, ...}

    Rate limits:
      - Public API: roughly 5-15 req/min depending on load, answers 429 beyond
      - Demo key (x-cg-demo-api-key): 30 req/min, so 10s polling is safe
    """

    name = "coingecko"
    default_url = "https://api.coingecko.com/api/v3/simple/price"

    def request_params(self) -> dict[str, str]:
        return {
            "ids": ",".join(self._assets),
            "vs_currencies": "usd",
            "include_24hr_change": "true",
        }

    def request_headers(self) -> dict[str, str]:
        if self._api_key:
            return {"x-cg-demo-api-key": self._api_key}
        return {}

    def parse(self, payload: Any) -> Snapshot:
        if not isinstance(payload, dict):
            raise FetchError(self.name, f"expected an object, got {type(payload).__name__}")

        missing = self._missing({asset for asset, values in payload.items() if isinstance(values, dict)})
        if missing:
            raise FetchError(self.name, f"partial payload, missing {', '.join(missing)}")

        quotes = {}
        for asset in self._assets:
            values = payload[asset]
            quotes[asset] = AssetQuote(
                price=self._price(values.get("usd"), asset),
                change_24h=self._number(values.get("usd_24h_change"), "usd_24h_change", asset),
            )
        return Snapshot(quotes=quotes)
