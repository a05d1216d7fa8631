from __future__ import annotations

import json
from typing import Any, Callable

from fastapi import Request

from app.errors import OriginNotAllowedError, ValidationError
from app.services.rate_limiter import FixedWindowRateLimiter, client_ip
from app.services.request_handler import FormRequestHandler
from server.config import Settings

GENERAL_SCOPE = "general"
MAIL_SCOPE = "mail"


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_handler(request: Request) -> FormRequestHandler:
    """Process-scoped handler built at startup (see `server.app.lifespan`)."""
    return request.app.state.handler


async def require_allowed_origin(request: Request) -> None:
    """Reject browser requests from origins outside the allow-list.

    Requests without an ``Origin`` header (server-to-server, curl) pass; the
    CORS middleware still governs what browsers may read.
    """
    settings = get_app_settings(request)
    origin = request.headers.get("origin")
    if origin is None or "*" in settings.allowed_origins:
        return
    if origin.rstrip("/") not in {o.rstrip("/") for o in settings.allowed_origins}:
        raise OriginNotAllowedError(origin)


def create_rate_limiter(scope: str) -> Callable[[Request], Any]:
    """
    Create a rate limiter dependency bound to one of the app's limiters

    Example usage:
        mail_rate_limit = create_rate_limiter("mail")

        @router.post("/send-email", dependencies=[Depends(mail_rate_limit)])
        async def send_email(...):
            ...
    """

    async def rate_limiter(request: Request) -> None:
        limiter: FixedWindowRateLimiter = request.app.state.rate_limiters[scope]
        settings = get_app_settings(request)
        limiter.check(client_ip(request, settings.trust_forwarded_for))

    return rate_limiter


general_rate_limit = create_rate_limiter(GENERAL_SCOPE)
mail_rate_limit = create_rate_limiter(MAIL_SCOPE)


async def read_json_body(request: Request) -> Any:
    """Read the body only after the gate dependencies have passed."""
    body = await request.body()
    if not body.strip():
        raise ValidationError([{"field": "body", "message": "Request body is required"}])
    try:
        return json.loads(body)
    except ValueError as exc:
        raise ValidationError([{"field": "body", "message": "Malformed JSON"}]) from exc
