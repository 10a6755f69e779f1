"""Async client for the two Roblox endpoint families the proxy depends on.

    * Children: ``GET {games_api}/v2/users/{userId}/games`` lists the public
      universes (experiences) a user created.
    * Items: ``GET {passes_api}/game-passes/v1/universes/{universeId}/game-passes``
      lists the game passes sold in one universe.

Each call is a single GET with no retries and the httpx default timeout. The
body is either returned as parsed JSON or converted into one of the
:mod:`gamepass_proxy.errors` failures.

Example::

    import asyncio
    from gamepass_proxy.client import RobloxClient

    async def main():
        client = RobloxClient()
        games = await client.enumerate_children("42")
        passes = await client.enumerate_items(games[0]["id"])

    asyncio.run(main())
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from .config import DEFAULT_GAMES_API, DEFAULT_PASSES_API
from .errors import ParseError, RemoteError, TransportError, UpstreamError
from .monitoring import PerformanceMonitor
from .normalizer import unwrap_children

logger = logging.getLogger(__name__)

CHILDREN_PARAMS = {"accessFilter": "Public", "limit": 50, "sortOrder": "Asc"}
ITEMS_PARAMS = {"passView": "Full", "pageSize": 100}


class RobloxClient:
    """Thin wrapper over ``httpx.AsyncClient`` for the Roblox web APIs.

    Args:
        games_api_url: Base URL of the games API.
        passes_api_url: Base URL of the game pass API.
        http_client: Shared ``httpx.AsyncClient``. When omitted, every call
            opens (and closes) its own client.
        monitor: Optional monitor receiving per-call outcomes.
    """

    def __init__(
        self,
        games_api_url: str = DEFAULT_GAMES_API,
        passes_api_url: str = DEFAULT_PASSES_API,
        http_client: Optional[httpx.AsyncClient] = None,
        monitor: Optional[PerformanceMonitor] = None,
    ) -> None:
        self.games_api_url = games_api_url.rstrip("/")
        self.passes_api_url = passes_api_url.rstrip("/")
        self._http = http_client
        self._monitor = monitor

    async def enumerate_children(self, owner_id: str) -> List[Any]:
        """Return the raw universe descriptors created by *owner_id*.

        Raises:
            UpstreamError: Transport, status or JSON failure.
        """
        url = f"{self.games_api_url}/v2/users/{owner_id}/games"
        logger.info(f"Calling Roblox User Games API: {url}")
        payload = await self._get_json("children", url, CHILDREN_PARAMS)
        return unwrap_children(payload)

    async def enumerate_items(self, child_id: Any) -> Any:
        """Return the raw game pass response for one universe.

        The shape depends on the API revision (``gamePasses`` / ``data``
        container or a bare list); callers unwrap it.

        Raises:
            UpstreamError: Transport, status or JSON failure.
        """
        url = f"{self.passes_api_url}/game-passes/v1/universes/{child_id}/game-passes"
        logger.info(f"Calling Roblox Universe API: {url}")
        return await self._get_json("items", url, ITEMS_PARAMS)

    async def _get_json(self, family: str, url: str, params: Dict[str, Any]) -> Any:
        try:
            response = await self._send(url, params)
            result = self._decode(url, response)
        except UpstreamError as exc:
            if self._monitor:
                self._monitor.record_upstream_call(family, error=str(exc))
            raise
        if self._monitor:
            self._monitor.record_upstream_call(family)
        return result

    async def _send(self, url: str, params: Dict[str, Any]) -> httpx.Response:
        try:
            if self._http is not None:
                return await self._http.get(url, params=params)
            async with httpx.AsyncClient() as client:
                return await client.get(url, params=params)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            # DecodingError (corrupt Content-Encoding) is raised while reading
            # the body and is not a TransportError
            logger.error(f"HTTP request error for {url}: {exc!r}")
            raise TransportError(url, exc) from exc

    def _decode(self, url: str, response: httpx.Response) -> Any:
        logger.debug(f"{url} -> {response.status_code}")
        body = response.text
        if response.status_code != 200:
            logger.error(f"API returned error status {response.status_code} for {url}")
            logger.debug(f"Response body: {body}")
            raise RemoteError(url, response.status_code, body)
        try:
            return response.json()
        except ValueError as exc:
            logger.error(f"Failed to parse JSON from {url}")
            logger.debug(f"Raw response: {body}")
            raise ParseError(url, body) from exc
