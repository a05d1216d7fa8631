import pytest
from fastapi.testclient import TestClient

from app.adapters.emailjs import EmailJsTransport
from app.adapters.graph import GraphTransport
from app.adapters.registry import TransportRegistry
from app.adapters.smtp import SmtpTransport
from server.app import create_app

from tests.conftest import RecordingTransport, make_settings, valid_service_request


def test_builtin_transports_are_registered() -> None:
    assert {"smtp", "emailjs", "graph"} <= set(TransportRegistry.names())


@pytest.mark.parametrize(
    "name,expected",
    [("smtp", SmtpTransport), ("emailjs", EmailJsTransport), ("graph", GraphTransport), (" SMTP ", SmtpTransport)],
)
def test_create_builds_configured_transport(name, expected) -> None:
    transport = TransportRegistry.create(name, make_settings())
    assert isinstance(transport, expected)


def test_unknown_transport_raises() -> None:
    with pytest.raises(KeyError):
        TransportRegistry.create("pigeon", make_settings())


def test_registered_factory_is_used_by_the_app() -> None:
    recording = RecordingTransport()
    TransportRegistry.register("recording", lambda settings: recording)
    try:
        app = create_app(make_settings(mail_transport="recording"))
        with TestClient(app) as client:
            assert client.post("/send-email", json=valid_service_request()).status_code == 200
        assert len(recording.sent) == 2
        assert recording.closed is True
    finally:
        TransportRegistry.unregister("recording")
    assert "recording" not in TransportRegistry.names()
