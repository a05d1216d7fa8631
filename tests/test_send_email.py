from email.utils import parseaddr

import pytest
from fastapi.testclient import TestClient

from app.types import EmailCategory
from server.app import create_app

from tests.conftest import (
    ALLOWED_ORIGIN,
    BUSINESS_EMAIL,
    RecordingTransport,
    make_settings,
    valid_service_request,
)


@pytest.mark.parametrize("path", ["/send-email", "/api/send-email"])
def test_valid_request_sends_both_emails(client: TestClient, transport: RecordingTransport, path: str) -> None:
    r = client.post(path, json=valid_service_request())

    assert r.status_code == 200
    assert r.json() == {"success": True, "message": "Emails sent successfully"}
    assert sorted(transport.recipients) == sorted([BUSINESS_EMAIL, "john@example.com"])


def test_business_leg_carries_reply_to(client: TestClient, transport: RecordingTransport) -> None:
    client.post("/send-email", json=valid_service_request())

    business = next(m for m in transport.sent if m.to == BUSINESS_EMAIL)
    confirmation = next(m for m in transport.sent if m.to == "john@example.com")
    assert business.category == EmailCategory.BUSINESS_NOTIFICATION
    assert parseaddr(business.reply_to) == ("John Doe", "john@example.com")
    assert business.subject == "New Service Request from John Doe"
    assert business.text_body and "Need help" in business.text_body
    assert confirmation.category == EmailCategory.CLIENT_CONFIRMATION
    assert confirmation.reply_to is None
    assert confirmation.subject == "We received your request - Acme Cleaning"


@pytest.mark.parametrize("missing", ["name", "email", "message"])
def test_missing_field_is_rejected_without_sending(
    client: TestClient, transport: RecordingTransport, missing: str
) -> None:
    body = valid_service_request()
    del body[missing]

    r = client.post("/send-email", json=body)

    assert r.status_code == 400
    payload = r.json()
    assert payload["success"] is False
    assert payload["error"] == "Validation failed"
    assert [d["field"] for d in payload["details"]] == [missing]
    assert transport.sent == []


def test_header_injection_never_reaches_headers(client: TestClient, transport: RecordingTransport) -> None:
    r = client.post(
        "/send-email",
        json=valid_service_request(name="Evil\r\nBcc: attacker@x.com", subject="Hi\r\nCc: attacker@x.com"),
    )

    assert r.status_code == 200
    assert len(transport.sent) == 2
    for message in transport.sent:
        assert "\r" not in message.subject and "\n" not in message.subject
        for value in message.headers.values():
            assert "\r" not in value and "\n" not in value
        assert "attacker@x.com" not in transport.recipients
    business = next(m for m in transport.sent if m.to == BUSINESS_EMAIL)
    assert parseaddr(business.reply_to)[1] == "john@example.com"


def test_markup_is_stripped_before_rendering(client: TestClient, transport: RecordingTransport) -> None:
    client.post(
        "/send-email",
        json=valid_service_request(message="<script>alert(1)</script>Please <b>call</b> me"),
    )
    business = next(m for m in transport.sent if m.to == BUSINESS_EMAIL)
    assert "<script>" not in business.body
    assert "alert(1)" not in business.body
    assert "Please call me" in business.body


def test_confirmation_failure_is_partial(settings) -> None:
    transport = RecordingTransport(fail_for={"john@example.com"})
    with TestClient(create_app(settings, transport)) as client:
        r = client.post("/send-email", json=valid_service_request())

    assert r.status_code == 200
    payload = r.json()
    assert payload["success"] is False
    assert len(payload["errorIds"]) == 1
    assert "mailbox unavailable" not in r.text
    assert BUSINESS_EMAIL in transport.recipients


def test_total_failure_reports_both_error_ids(settings) -> None:
    transport = RecordingTransport(fail_for={"john@example.com", BUSINESS_EMAIL})
    with TestClient(create_app(settings, transport)) as client:
        r = client.post("/send-email", json=valid_service_request())

    assert r.status_code == 200
    payload = r.json()
    assert payload["success"] is False
    assert len(set(payload["errorIds"])) == 2


@pytest.mark.parametrize("path", ["/support-email", "/api/support-email"])
def test_support_email(client: TestClient, transport: RecordingTransport, path: str) -> None:
    r = client.post(
        path,
        json={"name": "Sam", "email": "sam@example.com", "subject": "Login", "message": "I cannot log in"},
    )
    assert r.status_code == 200
    assert r.json()["success"] is True
    assert sorted(transport.recipients) == sorted([BUSINESS_EMAIL, "sam@example.com"])
    business = next(m for m in transport.sent if m.to == BUSINESS_EMAIL)
    assert business.subject == "Support: Login from Sam"


def test_malformed_json_is_rejected(client: TestClient, transport: RecordingTransport) -> None:
    r = client.post("/send-email", content=b"{not json", headers={"Content-Type": "application/json"})
    assert r.status_code == 400
    assert r.json()["details"] == [{"field": "body", "message": "Malformed JSON"}]
    assert transport.sent == []


def test_empty_body_is_rejected(client: TestClient, transport: RecordingTransport) -> None:
    r = client.post("/send-email", content=b"", headers={"Content-Type": "application/json"})
    assert r.status_code == 400
    assert transport.sent == []


def test_disallowed_origin_is_forbidden(client: TestClient, transport: RecordingTransport) -> None:
    r = client.post(
        "/send-email",
        json=valid_service_request(),
        headers={"Origin": "https://evil.example.net"},
    )
    assert r.status_code == 403
    assert r.json() == {"success": False, "error": "Origin not allowed"}
    assert transport.sent == []


def test_allowed_origin_passes_and_gets_cors_header(client: TestClient) -> None:
    r = client.post("/send-email", json=valid_service_request(), headers={"Origin": ALLOWED_ORIGIN})
    assert r.status_code == 200
    assert r.headers["access-control-allow-origin"] == ALLOWED_ORIGIN


def test_unexpected_error_returns_500_with_error_id(transport: RecordingTransport) -> None:
    app = create_app(make_settings(), transport)
    with TestClient(app, raise_server_exceptions=False) as client:

        async def explode(submission):
            raise RuntimeError("boom")

        app.state.handler.handle_service_request = explode
        r = client.post("/send-email", json=valid_service_request())

    assert r.status_code == 500
    payload = r.json()
    assert payload["success"] is False
    assert payload["error"] == "Internal server error"
    assert payload["errorId"]
    assert "boom" not in r.text
