from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel


class SendResult(BaseModel):
    """Standardized result returned by transports after a successful send.

    Transports raise `TransportError` on failure rather than returning a
    failed result; the dispatcher turns failures into `DispatchResult`.

    Attributes:
        message_id: Provider-assigned identifier for the outbound email, if any.
        provider: Name of the transport that handled the send.

    Example:
        >>> from app.types import SendResult
        >>> SendResult(message_id="<abc@mail.example.com>", provider="smtp")
    """

    message_id: Optional[str] = None
    provider: Optional[str] = None


class DispatchResult(BaseModel):
    """Outcome of one dispatch attempt.

    `error_id` is an opaque correlation id; provider error text is only ever
    written to the server log.
    """

    success: bool
    message_id: Optional[str] = None
    error_id: Optional[str] = None

    @classmethod
    def sent(cls, message_id: Optional[str] = None) -> "DispatchResult":
        return cls(success=True, message_id=message_id)

    @classmethod
    def failed(cls, error_id: str) -> "DispatchResult":
        return cls(success=False, error_id=error_id)


class RequestOutcome(BaseModel):
    """Aggregate of the business-notification and client-confirmation sends."""

    business: DispatchResult
    client: DispatchResult

    @property
    def success(self) -> bool:
        return self.business.success and self.client.success

    @property
    def partial(self) -> bool:
        return self.business.success != self.client.success

    @property
    def error_ids(self) -> List[str]:
        return [r.error_id for r in (self.business, self.client) if not r.success and r.error_id]
