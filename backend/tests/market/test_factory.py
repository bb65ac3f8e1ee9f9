"""Tests for price source factory."""

import httpx
import pytest

from cryptodash.market.coincap import CoinCapSource
from cryptodash.market.coingecko import CoinGeckoSource
from cryptodash.market.factory import create_price_source

ASSETS = ["bitcoin", "ethereum", "solana"]


class TestFactory:
    """Tests for create_price_source."""

    def test_creates_coingecko(self):
        source = create_price_source("coingecko", ASSETS, client=httpx.AsyncClient())
        assert isinstance(source, CoinGeckoSource)

    def test_creates_coincap(self):
        source = create_price_source("coincap", ASSETS, client=httpx.AsyncClient())
        assert isinstance(source, CoinCapSource)

    def test_provider_name_is_normalized(self):
        """Test that provider names are case and whitespace insensitive."""
        source = create_price_source("  CoinGecko ", ASSETS, client=httpx.AsyncClient())
        assert isinstance(source, CoinGeckoSource)

    def test_unknown_provider_raises(self):
        with pytest.raises(ValueError, match="unknown price provider"):
            create_price_source("binance", ASSETS)

    def test_passes_configuration_through(self):
        """Test that url, key, timeout and assets reach the source."""
        source = create_price_source(
            "coincap",
            ["bitcoin"],
            url="http://localhost:8080/assets",
            api_key="k",
            timeout=2.5,
            client=httpx.AsyncClient(),
        )
        assert source.url == "http://localhost:8080/assets"
        assert source.assets == ["bitcoin"]
        assert source._api_key == "k"
        assert source._timeout == 2.5
