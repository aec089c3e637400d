"""Unit tests for rate limiting middleware

Tests cover:
- Requests under limit allowed
- Minute and hour limit enforcement
- Health and index endpoints exempt
- Per-IP isolation and proxy header trust
- Rate limit headers
- Memory cleanup
"""

from __future__ import annotations

import time

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from lesbot.api.middleware.rate_limit import RateLimitMiddleware


def _make_app(requests_per_minute: int = 5, requests_per_hour: int = 20, trust_proxy: bool = True):
    test_app = FastAPI()
    test_app.add_middleware(
        RateLimitMiddleware,
        requests_per_minute=requests_per_minute,
        requests_per_hour=requests_per_hour,
        trust_proxy=trust_proxy,
    )

    @test_app.post("/api/chat")
    async def chat():
        return {"status": "ok"}

    @test_app.get("/health")
    async def health():
        return {"status": "healthy"}

    return test_app


@pytest.fixture
def app():
    return _make_app()


def test_requests_under_limit_allowed(app):
    client = TestClient(app)

    for _ in range(3):
        response = client.post("/api/chat")
        assert response.status_code == 200
        assert response.headers["X-RateLimit-Limit-Minute"] == "5"
        assert "X-RateLimit-Remaining-Minute" in response.headers


def test_minute_limit_enforced(app):
    client = TestClient(app)

    for _ in range(5):
        assert client.post("/api/chat").status_code == 200

    response = client.post("/api/chat")
    assert response.status_code == 429
    assert "per minute" in response.json()["error"]
    assert response.json()["retry_after"] == 60
    assert response.headers["Retry-After"] == "60"


def test_hour_limit_enforced():
    client = TestClient(_make_app(requests_per_minute=100, requests_per_hour=3))

    for _ in range(3):
        assert client.post("/api/chat").status_code == 200

    response = client.post("/api/chat")
    assert response.status_code == 429
    assert "per hour" in response.json()["error"]
    assert response.headers["Retry-After"] == "3600"


def test_rejected_requests_do_not_extend_window(app):
    client = TestClient(app)

    for _ in range(8):
        client.post("/api/chat")

    middleware_buckets = [len(b) for b in _buckets(client.app).values()]
    assert middleware_buckets == [5]


def _buckets(app: FastAPI):
    # Walk the built middleware stack to find the limiter instance
    node = app.middleware_stack
    while node is not None and not isinstance(node, RateLimitMiddleware):
        node = getattr(node, "app", None)
    assert node is not None
    return node.minute_buckets


def test_health_endpoint_exempt(app):
    client = TestClient(app)

    for _ in range(6):
        client.post("/api/chat")

    response = client.get("/health")
    assert response.status_code == 200
    assert "X-RateLimit-Limit-Minute" not in response.headers


def test_per_ip_isolation(app):
    client = TestClient(app)

    for _ in range(5):
        assert client.post("/api/chat", headers={"X-Forwarded-For": "192.168.1.1"}).status_code == 200

    assert client.post("/api/chat", headers={"X-Forwarded-For": "192.168.1.1"}).status_code == 429
    assert client.post("/api/chat", headers={"X-Forwarded-For": "192.168.1.2"}).status_code == 200


def test_forwarded_for_uses_first_hop(app):
    client = TestClient(app)

    client.post("/api/chat", headers={"X-Forwarded-For": "203.0.113.1, 198.51.100.1"})
    for _ in range(4):
        client.post("/api/chat", headers={"X-Forwarded-For": "203.0.113.1, 10.0.0.1"})

    response = client.post("/api/chat", headers={"X-Forwarded-For": "203.0.113.1, 10.0.0.2"})
    assert response.status_code == 429


def test_x_real_ip_header(app):
    client = TestClient(app)

    for _ in range(5):
        assert client.post("/api/chat", headers={"X-Real-IP": "198.51.100.42"}).status_code == 200

    assert client.post("/api/chat", headers={"X-Real-IP": "198.51.100.42"}).status_code == 429


def test_forwarded_headers_ignored_without_proxy_trust():
    client = TestClient(_make_app(trust_proxy=False))

    for i in range(5):
        client.post("/api/chat", headers={"X-Forwarded-For": f"192.0.2.{i}"})

    # All requests came from the same socket address
    response = client.post("/api/chat", headers={"X-Forwarded-For": "192.0.2.99"})
    assert response.status_code == 429


def test_malformed_forwarded_for_falls_back_to_socket(app):
    client = TestClient(app)

    for _ in range(5):
        client.post("/api/chat", headers={"X-Forwarded-For": "not-an-ip"})

    assert client.post("/api/chat").status_code == 429


def test_rate_limit_headers_accuracy(app):
    client = TestClient(app)

    response = client.post("/api/chat")
    assert response.headers["X-RateLimit-Remaining-Minute"] == "4"
    assert response.headers["X-RateLimit-Remaining-Hour"] == "19"

    response = client.post("/api/chat")
    assert response.headers["X-RateLimit-Remaining-Minute"] == "3"
    assert response.headers["X-RateLimit-Remaining-Hour"] == "18"


def test_memory_cleanup():
    middleware = RateLimitMiddleware(FastAPI().router, requests_per_minute=100, requests_per_hour=1000)

    for i in range(100):
        middleware.minute_buckets[f"192.168.1.{i}"] = [time.time()]
        middleware.hour_buckets[f"192.168.1.{i}"] = [time.time()]

    old_timestamp = time.time() - 10800
    for i in range(50):
        middleware.minute_buckets[f"192.168.2.{i}"] = [old_timestamp]
        middleware.hour_buckets[f"192.168.2.{i}"] = [old_timestamp]

    assert len(middleware.minute_buckets) == 150

    middleware._cleanup_old_buckets()

    assert len(middleware.minute_buckets) == 100
    assert len(middleware.hour_buckets) == 100
