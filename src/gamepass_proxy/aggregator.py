"""Fan-out aggregation of game passes across a user's universes.

``PassAggregator.aggregate`` is the read-through path behind
``GET /api/gamepasses?userId=...``:

    1. Serve from :class:`~gamepass_proxy.cache.PassCache` unless the entry is
       missing, expired, or a refresh is forced.
    2. List the user's universes. A failure here fails the whole request.
    3. Keep the first ``max_children`` resolvable universe ids.
    4. Fetch every universe's passes concurrently; a failing universe is
       logged and contributes nothing.
    5. Flatten in universe order (not completion order), cache, return.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, List

from .cache import PassCache
from .client import RobloxClient
from .config import MAX_CHILDREN
from .errors import UpstreamError
from .models import ChildResult, GamePass
from .normalizer import normalize_all, select_child_ids, unwrap_items

logger = logging.getLogger(__name__)


class PassAggregator:
    """Combine the cache and remote client into the owner lookup pipeline.

    The cache is owned by the caller (the web layer) and shared by reference
    so it can also be cleared and inspected from outside.
    """

    def __init__(
        self,
        client: RobloxClient,
        cache: PassCache,
        max_children: int = MAX_CHILDREN,
    ) -> None:
        self.client = client
        self.cache = cache
        self.max_children = max_children

    async def aggregate(self, owner_id: str, force_refresh: bool = False) -> List[GamePass]:
        """Return every game pass across the universes created by *owner_id*.

        Args:
            owner_id: Roblox user id; also the cache key.
            force_refresh: Bypass (and then overwrite) any cached entry.
        Raises:
            UpstreamError: Listing the user's universes failed.
        """
        cached = self.cache.get(owner_id, force_refresh=force_refresh)
        if cached is not None:
            return cached

        logger.info(f"Fetching games created by user: {owner_id}")
        descriptors = await self.client.enumerate_children(owner_id)
        child_ids = select_child_ids(descriptors, self.max_children)
        logger.info(
            f"Found {len(descriptors)} games created by user {owner_id}, "
            f"checking {len(child_ids)}"
        )

        if not child_ids:
            self.cache.put(owner_id, [])
            return []

        results = await asyncio.gather(*(self._fetch_child(cid) for cid in child_ids))

        records: List[GamePass] = []
        for result in results:
            records.extend(result.records)

        failed = sum(1 for result in results if not result.ok)
        logger.info(
            f"Total passes found across {len(results)} games for user {owner_id}: "
            f"{len(records)} ({failed} failed)"
        )
        self.cache.put(owner_id, records)
        return records

    async def fetch_child(self, child_id: Any) -> List[GamePass]:
        """Uncached pass lookup for a single universe.

        Raises:
            UpstreamError: The universe lookup failed.
        """
        payload = await self.client.enumerate_items(child_id)
        return normalize_all(unwrap_items(payload))

    async def _fetch_child(self, child_id: Any) -> ChildResult:
        try:
            records = await self.fetch_child(child_id)
        except UpstreamError as exc:
            logger.warning(f"Error fetching passes for game {child_id}: {exc}")
            return ChildResult(child_id=child_id, error=exc)
        logger.info(f"Found {len(records)} passes in game {child_id}")
        return ChildResult(child_id=child_id, records=records)
