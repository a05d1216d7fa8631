from __future__ import annotations

from typing import Protocol

from .messages import OutboundEmail
from .results import SendResult


class MailTransport(Protocol):
    """Protocol for outbound mail channels.

    Concrete implementations encapsulate provider-specific connection handling
    and payloads so the dispatcher and routers remain provider-agnostic. One
    instance is built at startup and shared by every request.

    Responsibilities:
        - Convert `OutboundEmail` to the provider's wire format and send it
        - Raise `TransportError` on any provider or network failure
        - Release pooled connections / HTTP clients on `aclose`

    Minimal example:
        >>> import httpx
        >>> from app.types import MailTransport, OutboundEmail, SendResult
        >>> class ExampleTransport(MailTransport):
        ...     name = "example"
        ...     def __init__(self) -> None:
        ...         self.client = httpx.AsyncClient(timeout=10)
        ...     @property
        ...     def ready(self) -> bool:
        ...         return True
        ...     async def send(self, message: OutboundEmail) -> SendResult:
        ...         r = await self.client.post("https://example.com/send", json={"to": message.to})
        ...         r.raise_for_status()
        ...         return SendResult(message_id=r.json().get("id"), provider=self.name)
        ...     async def aclose(self) -> None:
        ...         await self.client.aclose()
    """

    name: str

    @property
    def ready(self) -> bool:
        """Whether the transport has everything it needs to attempt a send."""
        ...

    async def send(self, message: OutboundEmail) -> SendResult:
        """Send one email.

        Implementations should raise `TransportError` on failure; the
        dispatcher maps it into a failed `DispatchResult`.
        """
        ...

    async def aclose(self) -> None:
        """Release connections held by the transport."""
        ...
