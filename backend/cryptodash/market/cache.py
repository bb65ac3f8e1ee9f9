"""Thread-safe single-slot snapshot cache."""

from __future__ import annotations

from threading import Lock

from .models import Snapshot


class SnapshotCache:
    """Holds the most recent complete Snapshot.

    Writer: PollLoop, after every successful fetch.
    Readers: BroadcastHub (late-joiner catch-up), REST endpoints.

    Empty until the first successful fetch; never cleared afterwards, so a
    failing upstream leaves the last good snapshot in place.
    """

    def __init__(self) -> None:
        self._snapshot: Snapshot | None = None
        self._lock = Lock()
        self._version: int = 0  # Bumped on every set()

    def get(self) -> Snapshot | None:
        """Latest snapshot, or None before the first successful fetch."""
        with self._lock:
            return self._snapshot

    def set(self, snapshot: Snapshot) -> None:
        """Unconditionally replace the cached snapshot."""
        with self._lock:
            self._snapshot = snapshot
            self._version += 1

    @property
    def version(self) -> int:
        with self._lock:
            return self._version
