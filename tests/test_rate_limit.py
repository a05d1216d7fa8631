import pytest
from fastapi.testclient import TestClient

from app.errors import RateLimitExceededError
from app.services.rate_limiter import FixedWindowRateLimiter
from server.app import create_app

from tests.conftest import RecordingTransport, make_settings, valid_service_request


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_limiter_counts_per_key_and_resets() -> None:
    clock = FakeClock()
    limiter = FixedWindowRateLimiter(2, 60, scope="test", clock=clock)

    assert limiter.hit("1.1.1.1") == (True, 1, 60)
    assert limiter.hit("1.1.1.1") == (True, 2, 60)
    clock.now += 10
    assert limiter.hit("1.1.1.1") == (False, 2, 50)
    assert limiter.hit("2.2.2.2")[0] is True

    clock.now += 50
    assert limiter.hit("1.1.1.1") == (True, 1, 60)

    limiter.hit("1.1.1.1")
    limiter.reset()
    assert limiter.hit("1.1.1.1") == (True, 1, 60)


def test_check_raises_with_retry_after() -> None:
    clock = FakeClock()
    limiter = FixedWindowRateLimiter(1, 900, clock=clock)
    limiter.check("ip")
    clock.now += 300
    with pytest.raises(RateLimitExceededError) as exc_info:
        limiter.check("ip")
    assert exc_info.value.retry_after == 600
    assert exc_info.value.status_code == 429


def test_sixth_mail_request_is_throttled() -> None:
    transport = RecordingTransport()
    app = create_app(make_settings(), transport)
    clock = FakeClock()
    limiter = app.state.rate_limiters["mail"]
    limiter.clock = clock

    with TestClient(app) as client:
        for _ in range(5):
            assert client.post("/send-email", json=valid_service_request()).status_code == 200

        r = client.post("/send-email", json=valid_service_request())
        assert r.status_code == 429
        assert r.json() == {"success": False, "error": "Too many requests, please try again later"}
        assert int(r.headers["Retry-After"]) > 0
        assert len(transport.sent) == 10

        clock.now += 901
        assert client.post("/send-email", json=valid_service_request()).status_code == 200


def test_invalid_requests_count_against_the_limit() -> None:
    app = create_app(make_settings(rate_limit_mail_max=2), RecordingTransport())
    with TestClient(app) as client:
        client.post("/send-email", json={})
        client.post("/send-email", json={})
        assert client.post("/send-email", json=valid_service_request()).status_code == 429


def test_health_is_not_limited() -> None:
    app = create_app(make_settings(rate_limit_general_max=1), RecordingTransport())
    with TestClient(app) as client:
        for _ in range(3):
            assert client.get("/api/health").status_code == 200


def test_general_limit_applies_to_mail_routes() -> None:
    app = create_app(make_settings(rate_limit_general_max=1), RecordingTransport())
    with TestClient(app) as client:
        assert client.post("/send-email", json=valid_service_request()).status_code == 200
        assert client.post("/support-email", json=valid_service_request()).status_code == 429


def test_forwarded_for_is_ignored_unless_trusted() -> None:
    app = create_app(make_settings(rate_limit_mail_max=1), RecordingTransport())
    with TestClient(app) as client:
        client.post("/send-email", json=valid_service_request(), headers={"X-Forwarded-For": "10.0.0.1"})
        r = client.post("/send-email", json=valid_service_request(), headers={"X-Forwarded-For": "10.0.0.2"})
        assert r.status_code == 429


def test_forwarded_for_keys_the_limiter_when_trusted() -> None:
    app = create_app(make_settings(rate_limit_mail_max=1, trust_forwarded_for=True), RecordingTransport())
    with TestClient(app) as client:
        client.post("/send-email", json=valid_service_request(), headers={"X-Forwarded-For": "10.0.0.1"})
        r = client.post("/send-email", json=valid_service_request(), headers={"X-Forwarded-For": "10.0.0.2"})
        assert r.status_code == 200
