"""Bounded rolling price history, as kept by a dashboard client."""

from __future__ import annotations

from collections import deque
from datetime import datetime

from .models import Snapshot

DEFAULT_WINDOW = 30


class RollingHistory:
    """Last `window` snapshots as a label sequence plus one series per asset.

    All sequences stay the same length and index-aligned: position i of every
    series belongs to labels[i]. Oldest entries fall off the front.
    """

    def __init__(self, assets: list[str], window: int = DEFAULT_WINDOW) -> None:
        if window <= 0:
            raise ValueError(f"window must be positive, got {window}")
        self._assets = list(assets)
        self._window = window
        self._labels: deque[str] = deque(maxlen=window)
        self._series: dict[str, deque[float]] = {asset: deque(maxlen=window) for asset in self._assets}

    def append(self, snapshot: Snapshot, at: datetime | None = None) -> None:
        """Record one received snapshot.

        Raises ValueError, leaving the history untouched, if the snapshot
        lacks a tracked asset.
        """
        missing = [asset for asset in self._assets if asset not in snapshot]
        if missing:
            raise ValueError(f"snapshot is missing {', '.join(missing)}")

        label = (at or datetime.now()).strftime("%H:%M:%S")
        self._labels.append(label)
        for asset in self._assets:
            self._series[asset].append(snapshot.price(asset))

    @property
    def window(self) -> int:
        return self._window

    @property
    def labels(self) -> list[str]:
        return list(self._labels)

    def series(self, asset: str) -> list[float]:
        return list(self._series[asset])

    def latest(self, asset: str) -> float | None:
        values = self._series[asset]
        return values[-1] if values else None

    def to_dict(self) -> dict[str, list]:
        """Chart dataset: {"labels": [...], "bitcoin": [...], ...}."""
        data: dict[str, list] = {"labels": self.labels}
        for asset in self._assets:
            data[asset] = self.series(asset)
        return data

    def __len__(self) -> int:
        return len(self._labels)
