"""End-to-end tests for the FastAPI routes against a mocked Roblox upstream."""

import httpx
import pytest
from fastapi.testclient import TestClient

from gamepass_proxy.aggregator import PassAggregator
from gamepass_proxy.app import app, get_aggregator
from gamepass_proxy.cache import PassCache
from gamepass_proxy.client import RobloxClient


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class Upstream:
    """Mock Roblox API keyed by request path; records every hit."""

    def __init__(self):
        self.routes = {}
        self.calls = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request.url.path)
        response = self.routes.get(request.url.path)
        if response is None:
            return httpx.Response(404, text="Not found")
        # fresh copy so a canned response can be served more than once
        return httpx.Response(
            response.status_code, content=response.content, headers=response.headers
        )

    def games(self, user_id, games):
        self.routes[f"/v2/users/{user_id}/games"] = httpx.Response(200, json={"data": games})

    def passes(self, universe_id, response):
        self.routes[f"/game-passes/v1/universes/{universe_id}/game-passes"] = response


@pytest.fixture
def upstream():
    return Upstream()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def aggregator(upstream, clock):
    # AsyncClient without a context manager: each TestClient request runs its
    # own event loop, and MockTransport keeps no connections between them.
    http = httpx.AsyncClient(transport=httpx.MockTransport(upstream))
    client = RobloxClient(
        games_api_url="https://games.test",
        passes_api_url="https://apis.test",
        http_client=http,
    )
    return PassAggregator(client=client, cache=PassCache(ttl_seconds=300, clock=clock))


@pytest.fixture
def client(aggregator):
    app.dependency_overrides[get_aggregator] = lambda: aggregator
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_root_status(client):
    response = client.get("/")
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["status"] == "online"
    assert "X-Response-Time" in response.headers


def test_missing_parameters_is_bad_request(client):
    response = client.get("/api/gamepasses")
    assert response.status_code == 400
    assert response.json() == {
        "success": False,
        "error": "universeId or userId parameter is required",
    }


def test_universe_lookup_normalizes_and_skips_cache(client, upstream, aggregator):
    upstream.passes(
        "555",
        httpx.Response(
            200,
            json={
                "gamePasses": [
                    {"id": 1, "displayName": "VIP", "displayIconImageAssetId": 42},
                    {"productId": 2, "name": "Coins", "description": "100 coins"},
                ],
                "nextPageToken": "",
            },
        ),
    )

    response = client.get("/api/gamepasses", params={"universeId": "555"})

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "gamePasses": [
            {"id": 1, "name": "VIP", "icon": "rbxassetid://42", "description": ""},
            {"id": 2, "name": "Coins", "icon": "", "description": "100 coins"},
        ],
        "count": 2,
    }
    assert len(aggregator.cache) == 0


def test_universe_takes_precedence_over_user(client, upstream):
    upstream.passes("555", httpx.Response(200, json=[]))
    response = client.get("/api/gamepasses", params={"universeId": "555", "userId": "42"})
    assert response.json()["count"] == 0
    assert upstream.calls == ["/game-passes/v1/universes/555/game-passes"]


def test_universe_upstream_error_is_server_error(client, upstream):
    upstream.passes("555", httpx.Response(403, text="Forbidden"))

    response = client.get("/api/gamepasses", params={"universeId": "555"})

    assert response.status_code == 500
    assert response.json() == {
        "success": False,
        "error": "API returned status 403: Forbidden",
    }


def test_user_lookup_scenario(client, upstream, aggregator):
    upstream.games("42", [{"id": 1}, {"id": 2}])
    upstream.passes("1", httpx.Response(200, json={"gamePasses": [{"id": 101, "name": "Gold"}]}))
    upstream.passes("2", httpx.Response(200, json={"gamePasses": []}))

    response = client.get("/api/gamepasses", params={"userId": "42"})

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "gamePasses": [{"id": 101, "name": "Gold", "icon": "", "description": ""}],
        "count": 1,
    }
    assert "42" in aggregator.cache


def test_user_lookup_served_from_cache(client, upstream):
    upstream.games("42", [{"id": 1}])
    upstream.passes("1", httpx.Response(200, json={"data": [{"id": 7}]}))

    first = client.get("/api/gamepasses", params={"userId": "42"})
    calls_after_first = len(upstream.calls)
    second = client.get("/api/gamepasses", params={"userId": "42"})

    assert first.content == second.content
    assert len(upstream.calls) == calls_after_first


@pytest.mark.parametrize("flag", ["true", "1", "TRUE"])
def test_refresh_flag_bypasses_cache(client, upstream, flag):
    upstream.games("42", [{"id": 1}])
    upstream.passes("1", httpx.Response(200, json=[{"id": 7, "name": "Old"}]))
    client.get("/api/gamepasses", params={"userId": "42"})

    upstream.passes("1", httpx.Response(200, json=[{"id": 7, "name": "New"}]))
    response = client.get("/api/gamepasses", params={"userId": "42", "refresh": flag})

    assert response.json()["gamePasses"][0]["name"] == "New"


def test_other_refresh_values_use_cache(client, upstream):
    upstream.games("42", [{"id": 1}])
    upstream.passes("1", httpx.Response(200, json=[{"id": 7, "name": "Old"}]))
    client.get("/api/gamepasses", params={"userId": "42"})

    upstream.passes("1", httpx.Response(200, json=[{"id": 7, "name": "New"}]))
    response = client.get("/api/gamepasses", params={"userId": "42", "refresh": "no"})

    assert response.json()["gamePasses"][0]["name"] == "Old"


def test_failing_universe_does_not_fail_user_lookup(client, upstream):
    upstream.games("42", [{"id": 1}, {"id": 2}])
    upstream.passes("1", httpx.Response(500, text="boom"))
    upstream.passes("2", httpx.Response(200, json={"gamePasses": [{"id": 3}, {"id": 4}]}))

    response = client.get("/api/gamepasses", params={"userId": "42"})

    assert response.status_code == 200
    assert [p["id"] for p in response.json()["gamePasses"]] == [3, 4]


def test_games_enumeration_failure_is_server_error(client, upstream, aggregator):
    upstream.routes["/v2/users/42/games"] = httpx.Response(200, text="not json")

    response = client.get("/api/gamepasses", params={"userId": "42"})

    assert response.status_code == 500
    body = response.json()
    assert body["success"] is False
    assert "Failed to parse JSON" in body["error"]
    assert "42" not in aggregator.cache


def test_user_without_games_is_successful_empty(client, upstream):
    upstream.games("42", [])
    response = client.get("/api/gamepasses", params={"userId": "42"})
    assert response.status_code == 200
    assert response.json() == {"success": True, "gamePasses": [], "count": 0}


def test_cache_clear_single_and_all(client, aggregator):
    aggregator.cache.put("1", [])
    aggregator.cache.put("2", [])

    single = client.get("/api/cache/clear", params={"userId": "1"})
    assert single.status_code == 200
    assert single.json()["success"] is True
    assert single.json()["cleared"] == 1
    assert "1" not in aggregator.cache

    missing = client.get("/api/cache/clear", params={"userId": "1"})
    assert missing.json()["cleared"] == 0

    everything = client.get("/api/cache/clear")
    assert everything.json()["cleared"] == 1
    assert len(aggregator.cache) == 0


def test_cache_info_reports_expired_entries(client, aggregator, clock):
    aggregator.cache.put("42", [])
    clock.now = 400

    response = client.get("/api/cache/info")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["ttlSeconds"] == 300
    assert body["entryCount"] == 1
    (entry,) = body["entries"]
    assert entry["key"] == "42"
    assert entry["isExpired"] is True
    assert entry["expiresInSeconds"] <= 0


def test_metrics_endpoint(client):
    client.get("/")
    response = client.get("/api/metrics")
    assert response.status_code == 200
    body = response.json()
    assert {"cache", "upstream", "api"} <= set(body)
    assert body["success"] is True
