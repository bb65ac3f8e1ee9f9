"""Factory for creating price sources."""

from __future__ import annotations

import logging

import httpx

from .coincap import CoinCapSource
from .coingecko import CoinGeckoSource
from .interface import DEFAULT_TIMEOUT, HttpPriceSource

logger = logging.getLogger(__name__)

PROVIDERS: dict[str, type[HttpPriceSource]] = {
    CoinGeckoSource.name: CoinGeckoSource,
    CoinCapSource.name: CoinCapSource,
}


def create_price_source(
    provider: str,
    assets: list[str],
    url: str | None = None,
    api_key: str | None = None,
    timeout: float = DEFAULT_TIMEOUT,
    client: httpx.AsyncClient | None = None,
) -> HttpPriceSource:
    """Create the price source registered under `provider`.

    Raises ValueError for unknown providers. The poll loop and hub only see
    the PriceSource contract, so switching provider is configuration only.
    """
    key = provider.strip().lower()
    try:
        source_cls = PROVIDERS[key]
    except KeyError:
        raise ValueError(f"unknown price provider {provider!r}, expected one of {sorted(PROVIDERS)}") from None

    source = source_cls(assets=assets, url=url, api_key=api_key, timeout=timeout, client=client)
    logger.info("Price source: %s (%s)", source.name, source.url)
    return source
