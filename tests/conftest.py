from typing import Any, Dict, Iterable, Iterator, List

import pytest
from fastapi.testclient import TestClient

from app.errors import TransportError
from app.types import MailTransport, OutboundEmail, SendResult
from server.app import create_app
from server.config import Settings

BUSINESS_EMAIL = "owner@example.com"
ALLOWED_ORIGIN = "https://www.example.com"


class RecordingTransport(MailTransport):
    """Fake transport that records every message and fails for chosen recipients."""

    name = "recording"

    def __init__(self, fail_for: Iterable[str] = ()) -> None:
        self.sent: List[OutboundEmail] = []
        self.fail_for = set(fail_for)
        self.closed = False

    @property
    def ready(self) -> bool:
        return True

    async def send(self, message: OutboundEmail) -> SendResult:
        self.sent.append(message)
        if message.to in self.fail_for:
            raise TransportError("550 5.1.1 mailbox unavailable", provider=self.name)
        return SendResult(message_id=f"<{len(self.sent)}@recording.test>", provider=self.name)

    async def aclose(self) -> None:
        self.closed = True

    @property
    def recipients(self) -> List[str]:
        return [m.to for m in self.sent]


def make_settings(**overrides: Any) -> Settings:
    values: Dict[str, Any] = {
        "allowed_origins_raw": ALLOWED_ORIGIN,
        "business_email": BUSINESS_EMAIL,
        "business_name": "Acme Cleaning",
        "mail_from": "Acme Cleaning <noreply@example.com>",
        "mail_transport": "smtp",
        "smtp_host": "smtp.example.com",
        "smtp_port": 587,
        "smtp_use_tls": True,
        "smtp_username": "relay-user",
        "smtp_password": "relay-pass",
        "emailjs_service_id": None,
        "emailjs_provider_template_id": None,
        "emailjs_client_template_id": None,
        "emailjs_public_key": None,
        "emailjs_private_key": None,
        "graph_tenant_id": None,
        "graph_client_id": None,
        "graph_client_secret": None,
        "enable_docs": False,
        "trust_forwarded_for": False,
        "rate_limit_mail_max": 5,
        "rate_limit_general_max": 100,
        "rate_limit_window_seconds": 900,
        "max_body_bytes": 100 * 1024,
        "mail_send_timeout": 5.0,
    }
    values.update(overrides)
    return Settings(**values)


def valid_service_request(**overrides: Any) -> Dict[str, Any]:
    body: Dict[str, Any] = {
        "name": "John Doe",
        "email": "john@example.com",
        "message": "Need help",
    }
    body.update(overrides)
    return body


@pytest.fixture()
def settings() -> Settings:
    return make_settings()


@pytest.fixture()
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture()
def client(settings: Settings, transport: RecordingTransport) -> Iterator[TestClient]:
    with TestClient(create_app(settings, transport)) as test_client:
        yield test_client
