from __future__ import annotations

from enum import Enum


class Urgency(str, Enum):
    """How quickly the submitter needs the service.

    Example:
        >>> from app.types import Urgency
        >>> Urgency("High")
        <Urgency.HIGH: 'High'>
    """

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    URGENT = "Urgent"


class EmailCategory(str, Enum):
    """Which leg of a request an outbound email belongs to.

    Transports that work from provider-side templates (EmailJS) use this to
    pick the template; SMTP and Graph ignore it.

    - BUSINESS_NOTIFICATION: sent to the configured business address
    - CLIENT_CONFIRMATION: receipt confirmation sent to the submitter
    """

    BUSINESS_NOTIFICATION = "business_notification"
    CLIENT_CONFIRMATION = "client_confirmation"


class TransportName(str, Enum):
    """Outbound mail channels that can be selected with ``MAIL_TRANSPORT``."""

    SMTP = "smtp"
    EMAILJS = "emailjs"
    GRAPH = "graph"
