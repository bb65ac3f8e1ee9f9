"""Abstract interface for price sources."""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import Any

import httpx

from .errors import FetchError, RateLimitedError
from .models import Snapshot

DEFAULT_TIMEOUT = 5.0


class PriceSource(ABC):
    """Contract for upstream price providers.

    A source turns one upstream HTTP call into one complete Snapshot. It never
    schedules itself: the PollLoop decides when to call fetch(), and the rest
    of the system only ever sees canonical Snapshots.

    Lifecycle:
        source = create_price_source(settings)
        snapshot = await source.fetch()   # raises FetchError on any failure
        ...
        await source.aclose()
    """

    name: str = "unknown"

    @property
    @abstractmethod
    def assets(self) -> list[str]:
        """Tracked asset ids, in display order."""

    @abstractmethod
    async def fetch(self) -> Snapshot:
        """Fetch one snapshot covering every tracked asset.

        Raises FetchError (never anything else) on network failure, timeout,
        non-2xx status, rate limiting, or a malformed or partial payload.
        """

    @abstractmethod
    async def aclose(self) -> None:
        """Release network resources. Safe to call multiple times."""


class HttpPriceSource(PriceSource):
    """Shared plumbing for sources backed by a single GET endpoint.

    Subclasses provide the request parameters and the payload parser; this
    class owns the httpx client, the timeout and the error mapping.
    """

    default_url: str = ""

    def __init__(
        self,
        assets: list[str],
        url: str | None = None,
        api_key: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        if not assets:
            raise ValueError("at least one asset must be tracked")
        self._assets = list(assets)
        self._url = url or self.default_url
        self._api_key = api_key or None
        self._timeout = timeout
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = client is None

    @property
    def assets(self) -> list[str]:
        return list(self._assets)

    @property
    def url(self) -> str:
        return self._url

    async def fetch(self) -> Snapshot:
        payload = await self._get_json()
        try:
            return self.parse(payload)
        except FetchError:
            raise
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise FetchError(self.name, f"malformed payload: {e!r}") from e

    async def aclose(self) -> None:
        if self._owns_client and not self._client.is_closed:
            await self._client.aclose()

    # --- Provider hooks ---

    def request_params(self) -> dict[str, str]:
        return {}

    def request_headers(self) -> dict[str, str]:
        return {}

    @abstractmethod
    def parse(self, payload: Any) -> Snapshot:
        """Normalize a decoded JSON payload into a complete Snapshot."""

    # --- Helpers ---

    async def _get_json(self) -> Any:
        try:
            response = await self._client.get(
                self._url,
                params=self.request_params(),
                headers=self.request_headers(),
                timeout=self._timeout,
            )
        except httpx.TimeoutException as e:
            raise FetchError(self.name, f"timed out after {self._timeout}s") from e
        except httpx.HTTPError as e:
            raise FetchError(self.name, f"request failed: {e!r}") from e

        if response.status_code == 429:
            raise RateLimitedError(self.name, "rate limited (HTTP 429)")
        if not response.is_success:
            raise FetchError(self.name, f"HTTP {response.status_code}")

        try:
            return response.json()
        except ValueError as e:
            raise FetchError(self.name, "response is not valid JSON") from e

    def _missing(self, found: set[str]) -> list[str]:
        return [asset for asset in self._assets if asset not in found]

    def _number(self, value: Any, field_name: str, asset: str) -> float:
        """Parse a string-or-numeric upstream field into a finite float."""
        if value is None or isinstance(value, bool):
            raise FetchError(self.name, f"{asset}.{field_name} is missing")
        try:
            number = float(value)
        except (TypeError, ValueError) as e:
            raise FetchError(self.name, f"{asset}.{field_name} is not numeric: {value!r}") from e
        if not math.isfinite(number):
            raise FetchError(self.name, f"{asset}.{field_name} is not finite: {value!r}")
        return number

    def _price(self, value: Any, asset: str) -> float:
        price = self._number(value, "price", asset)
        if price <= 0:
            raise FetchError(self.name, f"{asset}.price is not positive: {price}")
        return price
