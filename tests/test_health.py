from fastapi.testclient import TestClient


def test_healthz(client: TestClient) -> None:
    r = client.get("/healthz")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_api_health_reports_transport(client: TestClient) -> None:
    r = client.get("/api/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok", "transport": "recording", "transportReady": True}


def test_health_alias(client: TestClient) -> None:
    assert client.get("/health").json()["status"] == "ok"
