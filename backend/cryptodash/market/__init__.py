"""Market data subsystem for CryptoDash.

Public API:
    Snapshot            - Immutable reading of all tracked assets
    AssetQuote          - Price and 24h change of one asset
    SnapshotCache       - Thread-safe single-slot snapshot store
    BroadcastHub        - Fan-out of snapshots to connected channels
    PollLoop            - Fixed-interval fetch/cache/publish driver
    PriceSource         - Abstract interface for upstream providers
    RollingHistory      - Bounded per-asset history for chart clients
    create_price_source - Factory that selects the configured provider
    create_stream_router - FastAPI router factory for SSE endpoint
"""

from .cache import SnapshotCache
from .errors import ChannelDeliveryError, FetchError, RateLimitedError, StartupError
from .factory import create_price_source
from .history import RollingHistory
from .hub import BroadcastHub, Channel
from .interface import PriceSource
from .models import AssetQuote, Snapshot
from .poller import PollLoop
from .stream import create_stream_router

__all__ = [
    "AssetQuote",
    "BroadcastHub",
    "Channel",
    "ChannelDeliveryError",
    "FetchError",
    "PollLoop",
    "PriceSource",
    "RateLimitedError",
    "RollingHistory",
    "Snapshot",
    "SnapshotCache",
    "StartupError",
    "create_price_source",
    "create_stream_router",
]
