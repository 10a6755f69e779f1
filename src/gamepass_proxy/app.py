"""FastAPI application serving normalized Roblox game passes.

The service is meant to be called from Roblox game servers (which cannot
reach the Roblox web APIs directly) to build tip jars and shops from the
passes a creator sells.

Quick start (run the server)::

    uvicorn gamepass_proxy.app:app --port 3000

Endpoints:

    GET /                                   Liveness/status payload
    GET /health                             Health probe with cache summary
    GET /api/gamepasses?universeId=...      Passes of one universe (uncached)
    GET /api/gamepasses?userId=...          Passes across the user's first 10
                                            universes (cached per user)
    GET /api/gamepasses?userId=...&refresh=true
                                            Same, bypassing the cache
    GET /api/cache/clear[?userId=...]       Drop one user's entry or all entries
    GET /api/cache/info                     Age / expiry of every cache entry
    GET /api/metrics                        Request, cache and upstream counters

Examples::

    curl "http://localhost:3000/api/gamepasses?userId=42" | jq .count
    curl "http://localhost:3000/api/gamepasses?userId=42&refresh=1"
    curl "http://localhost:3000/api/cache/clear?userId=42"

Error handling:
    * Missing ``universeId`` and ``userId`` -> 400.
    * Upstream failures (listing universes, or the direct universe lookup)
      -> 500 with the upstream message. Failures of individual universes
      during a user lookup are dropped silently.
"""

from __future__ import annotations

import logging
import time
from functools import lru_cache
from typing import Any, Dict, List, Optional, Union

from fastapi import Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from . import __version__
from .aggregator import PassAggregator
from .cache import PassCache
from .client import RobloxClient
from .config import ProxyConfig, load_config
from .errors import UpstreamError
from .models import GamePass
from .monitoring import get_monitor

logger = logging.getLogger(__name__)


MISSING_ID_MESSAGE = "universeId or userId parameter is required"
REFRESH_VALUES = {"true", "1"}

app = FastAPI(
    title="Game Pass Proxy",
    version=__version__,
    description="Cached, normalized access to the game passes sold by a Roblox creator",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def monitor_requests(request: Request, call_next):
    """Record latency and status of every request."""
    start_time = time.time()
    response = await call_next(request)
    response_time = time.time() - start_time

    endpoint = f"{request.method} {request.url.path}"
    get_monitor().record_endpoint_request(endpoint, response_time, response.status_code)

    response.headers["X-Response-Time"] = f"{response_time:.3f}s"
    return response


class GamePassModel(BaseModel):
    """Canonical game pass as returned to callers."""

    id: Optional[Union[int, str]] = Field(None, description="Game pass id")
    name: str = Field(..., description="Display name")
    icon: str = Field(..., description="rbxassetid:// URI or image URL")
    description: str = Field(..., description="Display description")

    @classmethod
    def from_record(cls, record: GamePass) -> "GamePassModel":
        return cls(**record.to_dict())


class GamePassesResponse(BaseModel):
    """Envelope for the game pass endpoint."""

    success: bool = True
    gamePasses: List[GamePassModel] = Field(default_factory=list)
    count: int = 0

    @classmethod
    def from_records(cls, records: List[GamePass]) -> "GamePassesResponse":
        return cls(
            gamePasses=[GamePassModel.from_record(r) for r in records],
            count=len(records),
        )


class CacheClearResponse(BaseModel):
    success: bool = True
    message: str
    cleared: int = 0


class CacheEntryInfo(BaseModel):
    key: str
    recordCount: int
    ageSeconds: float
    expiresInSeconds: float
    isExpired: bool


class CacheInfoResponse(BaseModel):
    """Snapshot of every cache entry."""

    success: bool = True
    ttlSeconds: float
    entryCount: int
    entries: List[CacheEntryInfo] = Field(default_factory=list)


@lru_cache(maxsize=1)
def get_config() -> ProxyConfig:
    return load_config()


@lru_cache(maxsize=1)
def get_aggregator() -> PassAggregator:
    """Build the process-wide aggregator and the cache it shares with the routes."""
    config = get_config()
    monitor = get_monitor()
    client = RobloxClient(
        games_api_url=config.games_api_url,
        passes_api_url=config.passes_api_url,
        monitor=monitor,
    )
    cache = PassCache(ttl_seconds=config.cache_ttl_seconds, monitor=monitor)
    return PassAggregator(client=client, cache=cache)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code, content={"success": False, "error": message}
    )


@app.get("/")
def root() -> Dict[str, Any]:
    """Liveness/status payload."""
    return {
        "success": True,
        "status": "online",
        "message": "Game Pass Proxy Server is running!",
        "version": __version__,
    }


@app.get("/health")
def health(aggregator: PassAggregator = Depends(get_aggregator)) -> Dict[str, Any]:
    """Health check endpoint."""
    stats = aggregator.cache.stats()
    return {
        "success": True,
        "status": "healthy",
        "cacheEntries": stats["entryCount"],
        "ttlSeconds": stats["ttlSeconds"],
    }


@app.get("/api/gamepasses", response_model=GamePassesResponse)
async def gamepasses(
    universeId: Optional[str] = Query(None, description="Universe to read directly"),
    userId: Optional[str] = Query(None, description="Creator whose universes to scan"),
    refresh: Optional[str] = Query(None, description='"true" or "1" bypasses the cache'),
    aggregator: PassAggregator = Depends(get_aggregator),
):
    """Return normalized game passes for a universe or a creator.

    ``universeId`` wins when both parameters are supplied.
    """
    if universeId:
        logger.info(f"Fetching game passes for universe: {universeId}")
        records = await aggregator.fetch_child(universeId)
        logger.info(f"Total universe game passes found: {len(records)}")
        return GamePassesResponse.from_records(records)

    if not userId:
        return _error(400, MISSING_ID_MESSAGE)

    force_refresh = (refresh or "").lower() in REFRESH_VALUES
    logger.info(
        f"Fetching game passes from all games created by user: {userId}"
        + (" (refresh)" if force_refresh else "")
    )
    records = await aggregator.aggregate(userId, force_refresh=force_refresh)
    return GamePassesResponse.from_records(records)


@app.get("/api/cache/clear", response_model=CacheClearResponse)
def clear_cache(
    userId: Optional[str] = Query(None, description="Entry to drop; all when omitted"),
    aggregator: PassAggregator = Depends(get_aggregator),
) -> CacheClearResponse:
    """Drop one user's cached lookup, or every entry."""
    cache = aggregator.cache
    if userId:
        removed = cache.clear(userId)
        message = (
            f"Cache cleared for user {userId}"
            if removed
            else f"No cache entry for user {userId}"
        )
        return CacheClearResponse(message=message, cleared=int(removed))

    count = cache.clear_all()
    return CacheClearResponse(message=f"Cleared {count} cache entries", cleared=count)


@app.get("/api/cache/info", response_model=CacheInfoResponse)
def cache_info(aggregator: PassAggregator = Depends(get_aggregator)) -> CacheInfoResponse:
    """Age and expiry of every cache entry, expired-but-unevicted ones included."""
    cache = aggregator.cache
    entries = cache.info()
    return CacheInfoResponse(
        ttlSeconds=cache.ttl_seconds,
        entryCount=len(entries),
        entries=[CacheEntryInfo(**entry) for entry in entries],
    )


@app.get("/api/metrics")
def metrics() -> Dict[str, Any]:
    """Request, cache and upstream counters since start (or last reset)."""
    return {"success": True, **get_monitor().get_performance_summary()}


@app.exception_handler(UpstreamError)
async def upstream_error_handler(request: Request, exc: UpstreamError):
    logger.error(f"Upstream failure on {request.url.path}: {exc.to_dict()}")
    return _error(500, str(exc))


@app.exception_handler(500)
async def internal_error_handler(request, exc):
    """Custom 500 handler for unexpected errors."""
    logger.error(f"Unhandled error on {request.url.path}", exc_info=exc)
    return _error(500, "Internal server error")
