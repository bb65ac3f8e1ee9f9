"""CoinCap v2 assets source."""

from __future__ import annotations

from typing import Any

from .errors import FetchError
from .interface import HttpPriceSource
from .models import AssetQuote, Snapshot


class CoinCapSource(HttpPriceSource):
    """PriceSource backed by CoinCap's /v2/assets endpoint.

    Numeric fields arrive as strings:

        {"data": [{"id": "bitcoin", "priceUsd": "50000.12", "changePercent24Hr": "2.1"}, ...]}
    """

    name = "coincap"
    default_url = "https://api.coincap.io/v2/assets"

    def request_params(self) -> dict[str, str]:
        return {"ids": ",".join(self._assets)}

    def request_headers(self) -> dict[str, str]:
        if self._api_key:
            return {"Authorization": f"Bearer {self._api_key}"}
        return {}

    def parse(self, payload: Any) -> Snapshot:
        rows = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(rows, list):
            raise FetchError(self.name, "payload has no 'data' list")

        by_id = {row["id"]: row for row in rows if isinstance(row, dict) and "id" in row}
        missing = self._missing(set(by_id))
        if missing:
            raise FetchError(self.name, f"partial payload, missing {', '.join(missing)}")

        quotes = {
            asset: AssetQuote(
                price=self._price(by_id[asset].get("priceUsd"), asset),
                change_24h=self._number(by_id[asset].get("changePercent24Hr"), "changePercent24Hr", asset),
            )
            for asset in self._assets
        }
        return Snapshot(quotes=quotes)
