"""Error taxonomy for FormRelay.

Routers and services raise these; `server.app.register_exception_handlers`
maps each one to a JSON response so no handler has to build error bodies.
"""

from __future__ import annotations

import uuid
from typing import Dict, List, Optional


def new_error_id() -> str:
    """Return a short opaque identifier used to correlate logs with responses."""
    return uuid.uuid4().hex[:12]


class FormRelayError(Exception):
    """Base class for all application errors."""

    status_code: int = 500
    public_message: str = "Internal server error"


class ConfigurationError(FormRelayError):
    """Mandatory configuration is missing. Raised at startup only."""

    def __init__(self, missing: List[str]) -> None:
        self.missing = list(missing)
        super().__init__(f"Missing required configuration: {', '.join(self.missing)}")


class ValidationError(FormRelayError):
    """One or more submitted fields failed validation."""

    status_code = 400
    public_message = "Validation failed"

    def __init__(self, details: List[Dict[str, str]]) -> None:
        self.details = details
        fields = ", ".join(d.get("field", "?") for d in details)
        super().__init__(f"Invalid fields: {fields}")

    @property
    def fields(self) -> List[str]:
        return [d["field"] for d in self.details]


class PayloadTooLargeError(FormRelayError):
    status_code = 413
    public_message = "Request body too large"

    def __init__(self, limit: int) -> None:
        self.limit = limit
        super().__init__(f"Request body exceeds {limit} bytes")


class RateLimitExceededError(FormRelayError):
    status_code = 429
    public_message = "Too many requests, please try again later"

    def __init__(self, limit: int, window_seconds: int, retry_after: int) -> None:
        self.limit = limit
        self.window_seconds = window_seconds
        self.retry_after = retry_after
        super().__init__(f"Rate limit of {limit} per {window_seconds}s exceeded")


class OriginNotAllowedError(FormRelayError):
    status_code = 403
    public_message = "Origin not allowed"

    def __init__(self, origin: str) -> None:
        self.origin = origin
        super().__init__(f"Origin not allowed: {origin}")


class TransportError(FormRelayError):
    """An outbound mail call failed.

    The message may carry provider detail; it is logged server-side and never
    returned to clients.
    """

    status_code = 502
    public_message = "Mail transport failure"

    def __init__(self, message: str, *, provider: Optional[str] = None) -> None:
        self.provider = provider
        super().__init__(message)
