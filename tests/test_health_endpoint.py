from fastapi.testclient import TestClient

from gamepass_proxy.aggregator import PassAggregator
from gamepass_proxy.app import app, get_aggregator
from gamepass_proxy.cache import PassCache
from gamepass_proxy.client import RobloxClient


def override_aggregator():
    return PassAggregator(RobloxClient(), PassCache(ttl_seconds=120))


def test_health_basic():
    """Health endpoint should report healthy status and the cache summary."""
    app.dependency_overrides[get_aggregator] = override_aggregator
    try:
        client = TestClient(app)
        resp = client.get("/health")
    finally:
        app.dependency_overrides.clear()
    assert resp.status_code == 200
    data = resp.json()
    assert data["success"] is True
    assert data["status"] == "healthy"
    assert data["cacheEntries"] == 0
    assert data["ttlSeconds"] == 120
