import asyncio
import logging

import pytest

from app.errors import TransportError
from app.services.dispatcher import MailDispatcher
from app.types import EmailCategory, OutboundEmail, SendResult

from tests.conftest import RecordingTransport


class SlowTransport(RecordingTransport):
    name = "slow"

    async def send(self, message: OutboundEmail) -> SendResult:
        await asyncio.sleep(1)
        return await super().send(message)


class BrokenTransport(RecordingTransport):
    name = "broken"

    async def send(self, message: OutboundEmail) -> SendResult:
        raise RuntimeError("socket closed unexpectedly")


@pytest.mark.asyncio
async def test_successful_send_returns_message_id() -> None:
    transport = RecordingTransport()
    dispatcher = MailDispatcher(transport)

    result = await dispatcher.send(
        "Someone@Example.com",
        "Hello",
        "<p>Hi</p>",
        headers={"Reply-To": "someone@example.com"},
        text_body="Hi",
        category=EmailCategory.CLIENT_CONFIRMATION,
    )

    assert result.success is True
    assert result.message_id == "<1@recording.test>"
    assert result.error_id is None
    sent = transport.sent[0]
    assert sent.to == "someone@example.com"
    assert sent.text_body == "Hi"
    assert sent.category == EmailCategory.CLIENT_CONFIRMATION
    assert sent.headers == {"Reply-To": "someone@example.com"}


@pytest.mark.asyncio
async def test_transport_error_becomes_error_id(caplog: pytest.LogCaptureFixture) -> None:
    transport = RecordingTransport(fail_for={"john@example.com"})
    dispatcher = MailDispatcher(transport)

    with caplog.at_level(logging.ERROR, logger="formrelay.dispatcher"):
        result = await dispatcher.send("john@example.com", "Hello", "<p>Hi</p>")

    assert result.success is False
    assert result.message_id is None
    assert result.error_id
    assert result.error_id in caplog.text
    assert "jo***@example.com" in caplog.text
    assert "john@example.com" not in caplog.text
    assert "550 5.1.1" in caplog.text


@pytest.mark.asyncio
async def test_timeout_becomes_error_id() -> None:
    dispatcher = MailDispatcher(SlowTransport(), timeout=0.01)
    result = await dispatcher.send("john@example.com", "Hello", "<p>Hi</p>")
    assert result.success is False
    assert result.error_id


@pytest.mark.asyncio
async def test_unexpected_exception_is_contained() -> None:
    dispatcher = MailDispatcher(BrokenTransport())
    result = await dispatcher.send("john@example.com", "Hello", "<p>Hi</p>")
    assert result.success is False
    assert result.error_id


@pytest.mark.asyncio
async def test_invalid_recipient_never_reaches_transport() -> None:
    transport = RecordingTransport()
    dispatcher = MailDispatcher(transport)
    result = await dispatcher.send("not an address", "Hello", "<p>Hi</p>")
    assert result.success is False
    assert transport.sent == []


@pytest.mark.asyncio
async def test_multiline_subject_is_refused() -> None:
    transport = RecordingTransport()
    dispatcher = MailDispatcher(transport)
    result = await dispatcher.send("john@example.com", "Hello\r\nBcc: x@example.com", "<p>Hi</p>")
    assert result.success is False
    assert transport.sent == []


@pytest.mark.asyncio
async def test_error_ids_are_unique() -> None:
    dispatcher = MailDispatcher(RecordingTransport(fail_for={"john@example.com"}))
    first = await dispatcher.send("john@example.com", "Hello", "<p>Hi</p>")
    second = await dispatcher.send("john@example.com", "Hello", "<p>Hi</p>")
    assert first.error_id != second.error_id


class EchoingTransport(RecordingTransport):
    name = "echoing"

    async def send(self, message: OutboundEmail) -> SendResult:
        raise TransportError(f"550 <{message.to.upper()}> rejected; {message.to} unknown", provider=self.name)


@pytest.mark.asyncio
async def test_recipient_echoed_by_provider_is_masked(caplog: pytest.LogCaptureFixture) -> None:
    dispatcher = MailDispatcher(EchoingTransport())

    with caplog.at_level(logging.ERROR, logger="formrelay.dispatcher"):
        result = await dispatcher.send("john@example.com", "Hello", "<p>Hi</p>")

    assert result.success is False
    assert "john@example.com" not in caplog.text.lower()
    assert caplog.text.count("jo***@example.com") == 3
