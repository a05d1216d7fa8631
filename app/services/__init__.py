"""Services package for FormRelay."""

from .dispatcher import MailDispatcher
from .rate_limiter import FixedWindowRateLimiter
from .request_handler import FormRequestHandler
from .templates import RenderedEmail, RenderedNotifications, render_service_request, render_support_request
from .validation import validate_service_request, validate_support_request

__all__ = [
    "MailDispatcher",
    "FixedWindowRateLimiter",
    "FormRequestHandler",
    "RenderedEmail",
    "RenderedNotifications",
    "render_service_request",
    "render_support_request",
    "validate_service_request",
    "validate_support_request",
]
