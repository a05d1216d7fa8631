"""Core types for FormRelay.

This package centralizes enums, submission models, the transport protocol and
result/response schemas in one place to keep the codebase discoverable. Most
modules should import types from here rather than directly from submodules.

Usage:
    from app.types import ServiceRequest, MailTransport, DispatchResult
"""

from .enums import EmailCategory, TransportName, Urgency
from .messages import OutboundEmail
from .protocols import MailTransport
from .results import DispatchResult, RequestOutcome, SendResult
from .submission import ContactFields, ServiceRequest, SupportRequest, normalize_email
from .api import (
    EmailJsConfigResponse,
    EmailJsTemplateConfig,
    ErrorResponse,
    HealthResponse,
    PrepareEmailResponse,
    SendEmailResponse,
)

__all__ = [
    "EmailCategory",
    "TransportName",
    "Urgency",
    "OutboundEmail",
    "MailTransport",
    "SendResult",
    "DispatchResult",
    "RequestOutcome",
    "ContactFields",
    "ServiceRequest",
    "SupportRequest",
    "normalize_email",
    "EmailJsConfigResponse",
    "EmailJsTemplateConfig",
    "ErrorResponse",
    "HealthResponse",
    "PrepareEmailResponse",
    "SendEmailResponse",
]
