from app.config import settings


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_api_responses_carry_security_headers_and_no_store(client):
    response = client.get("/api/auth/me")

    assert response.status_code == 401
    assert response.headers["x-content-type-options"] == "nosniff"
    assert response.headers["x-frame-options"] == "DENY"
    assert response.headers["cache-control"] == "no-store"


def test_health_is_cacheable(client):
    response = client.get("/health")

    assert "cache-control" not in response.headers
    assert response.headers["x-frame-options"] == "DENY"


def test_unknown_route_uses_error_body(client):
    response = client.get("/api/nowhere")

    assert response.status_code == 404
    assert response.json() == {"error": "Not Found"}


def test_default_rate_limit_applies_to_api_routes(client, monkeypatch):
    monkeypatch.setattr(settings, "rate_limit", "2/minute")

    codes = [client.get("/api/notifications/config").status_code for _ in range(3)]

    assert codes == [200, 200, 429]


def test_health_and_ready_are_not_rate_limited(client, monkeypatch):
    monkeypatch.setattr(settings, "rate_limit", "2/minute")

    assert all(client.get("/health").status_code == 200 for _ in range(5))
    assert all(client.get("/ready").status_code != 429 for _ in range(5))
