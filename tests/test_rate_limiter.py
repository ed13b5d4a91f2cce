"""Tests for the hybrid rate limiter."""

from unittest.mock import MagicMock, patch

import pytest

from app.rate_limiter import check_rate_limit, reset_rate_limits


@pytest.fixture(autouse=True)
def clean_limiter():
    reset_rate_limits()
    yield
    reset_rate_limits()


def test_allows_up_to_limit_then_blocks():
    results = [check_rate_limit("test:1.2.3.4", 2, 60) for _ in range(3)]

    assert [allowed for allowed, _, _ in results] == [True, True, False]
    assert results[-1][1] == 2
    assert 0 < results[-1][2] <= 60


def test_keys_are_independent():
    check_rate_limit("test:a", 1, 60)

    allowed, _, _ = check_rate_limit("test:b", 1, 60)
    assert allowed is True


def test_window_expiry_resets_count():
    with patch("app.rate_limiter.time.time", return_value=1_000):
        check_rate_limit("test:expiry", 1, 60)
        assert check_rate_limit("test:expiry", 1, 60)[0] is False

    with patch("app.rate_limiter.time.time", return_value=1_061):
        assert check_rate_limit("test:expiry", 1, 60)[0] is True


def test_redis_window_is_picked_up():
    redis_client = MagicMock()
    redis_client.get.return_value = "5"
    redis_client.ttl.return_value = 30

    allowed, count, ttl = check_rate_limit("test:shared", 5, 60, redis_client)

    assert allowed is False
    assert count == 5
    assert ttl == 30


def test_redis_errors_fall_back_to_memory():
    import redis

    redis_client = MagicMock()
    redis_client.get.side_effect = redis.ConnectionError("down")
    redis_client.set.side_effect = redis.ConnectionError("down")

    allowed, count, _ = check_rate_limit("test:down", 5, 60, redis_client)

    assert allowed is True
    assert count == 1


def test_endpoint_returns_429_with_retry_after(client, lead_payload):
    with patch("app.rate_limiter.RATE_LIMIT_ENABLED", True):
        statuses = [client.post("/api/leads", json=lead_payload).status_code for _ in range(6)]
        resp = client.post("/api/leads", json=lead_payload)

    assert statuses[:5] == [201] * 5
    assert statuses[5] == 429
    assert resp.status_code == 429
    assert resp.json()["code"] == "RATE_LIMIT_EXCEEDED"
    assert int(resp.headers["Retry-After"]) > 0


def test_availability_lookup_is_not_rate_limited(client):
    with patch("app.rate_limiter.RATE_LIMIT_ENABLED", True):
        statuses = [
            client.get("/api/bookings", params={"date": "2030-01-08", "time": "10:00"}).status_code
            for _ in range(8)
        ]

    assert set(statuses) == {200}


def test_intake_endpoints_share_one_window(client, lead_payload):
    with patch("app.rate_limiter.RATE_LIMIT_ENABLED", True):
        statuses = [client.post("/api/leads", json=lead_payload).status_code for _ in range(5)]
        resp = client.post("/api/whatsapp", json={"page_path": "/contact"})

    assert statuses == [201] * 5
    assert resp.status_code == 429
    assert resp.json()["code"] == "RATE_LIMIT_EXCEEDED"
