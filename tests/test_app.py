"""Tests for app-level endpoints and middleware."""


def test_root_and_health(client):
    assert client.get("/").json() == {"message": "Wild West Construction API is running"}
    assert client.get("/health").json() == {"status": "healthy"}


def test_rate_limiter_health_without_redis(client):
    data = client.get("/health/redis").json()

    assert data["status"] == "degraded"
    assert data["rate_limiter"]["backend"] == "memory"
    assert data["rate_limiter"]["redis_configured"] is False


def test_security_headers_on_api_responses(client):
    resp = client.get("/api/bookings", params={"date": "2030-01-08", "time": "10:00"})

    assert resp.headers["X-Frame-Options"] == "DENY"
    assert resp.headers["X-Content-Type-Options"] == "nosniff"
    assert resp.headers["Content-Security-Policy"].startswith("default-src 'none'")
    assert "no-store" in resp.headers["Cache-Control"]
    assert "Strict-Transport-Security" not in resp.headers


def test_health_is_excluded_from_security_headers(client):
    resp = client.get("/health")

    assert "Content-Security-Policy" not in resp.headers


def test_cors_preflight_for_allowed_origin(client):
    resp = client.options(
        "/api/leads",
        headers={
            "Origin": "http://localhost:3000",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "Content-Type",
        },
    )

    assert resp.status_code == 200
    assert resp.headers["access-control-allow-origin"] == "http://localhost:3000"
