"""Game Pass Proxy
=================

Read-through aggregation cache in front of the Roblox game pass APIs.

Given a creator's user id, the service lists the universes the creator
published, fetches the game passes of the first ten concurrently, normalizes
the shapes produced by different API revisions into one record format and
caches the merged result per user for a bounded time.

Key capabilities
----------------
- Two-stage remote lookup (universes, then passes per universe) over ``httpx``.
- Per-universe failure isolation: one broken universe never fails a lookup.
- Tolerant normalization of historical field names into
  :class:`~gamepass_proxy.models.GamePass`.
- In-process TTL cache with forced refresh, clearing and introspection.
- FastAPI transport with in-process request/cache/upstream metrics.

Minimal quick start
-------------------
>>> import asyncio
>>> from gamepass_proxy import PassAggregator, PassCache, RobloxClient
>>> aggregator = PassAggregator(RobloxClient(), PassCache(ttl_seconds=300))
>>> passes = asyncio.run(aggregator.aggregate("42"))

FastAPI application instance (for ASGI servers like uvicorn):
>>> from gamepass_proxy.app import app  # noqa: F401
"""

__version__ = "1.0.0"

from .aggregator import PassAggregator
from .cache import PassCache
from .client import RobloxClient
from .models import GamePass
from .normalizer import normalize

__all__ = [
    "GamePass",
    "PassAggregator",
    "PassCache",
    "RobloxClient",
    "normalize",
]
