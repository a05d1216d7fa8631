from __future__ import annotations

from typing import Callable, Dict, List

from app.adapters.emailjs import EmailJsTransport
from app.adapters.graph import GraphTransport
from app.adapters.smtp import SmtpTransport
from app.types import MailTransport, TransportName
from server.config import Settings

TransportFactory = Callable[[Settings], MailTransport]


class TransportRegistry:
    """Registry for mail transports by name.

    The configured transport is built once at startup from
    ``MAIL_TRANSPORT``; tests register fakes here instead of patching the
    request handler.
    """

    _registry: Dict[str, TransportFactory] = {
        TransportName.SMTP.value: SmtpTransport,
        TransportName.EMAILJS.value: EmailJsTransport,
        TransportName.GRAPH.value: GraphTransport,
    }

    @classmethod
    def create(cls, name: str, settings: Settings) -> MailTransport:
        factory = cls._registry.get(name.strip().lower())
        if factory is None:
            raise KeyError(f"Unknown mail transport: {name}")
        return factory(settings)

    @classmethod
    def register(cls, name: str, factory: TransportFactory) -> None:
        cls._registry[name] = factory

    @classmethod
    def unregister(cls, name: str) -> None:
        cls._registry.pop(name, None)

    @classmethod
    def names(cls) -> List[str]:
        return sorted(cls._registry)
