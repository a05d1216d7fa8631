"""ASGI middleware for FormRelay."""

from __future__ import annotations

from starlette.datastructures import Headers
from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from app.errors import PayloadTooLargeError
from app.types import ErrorResponse

from .logging_config import logger


class BodySizeLimitMiddleware:
    """Reject request bodies larger than `max_body_bytes` with HTTP 413.

    A declared ``Content-Length`` over the cap is answered before the app
    runs. Chunked bodies are counted as they stream in; crossing the cap
    raises `PayloadTooLargeError`, which the exception handlers turn into
    the same 413 response.
    """

    def __init__(self, app: ASGIApp, max_body_bytes: int) -> None:
        self.app = app
        self.max_body_bytes = max_body_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        declared = Headers(scope=scope).get("content-length")
        if declared is not None and declared.isdigit() and int(declared) > self.max_body_bytes:
            logger.warning(
                "Rejected oversized body",
                extra={"path": scope.get("path"), "content_length": int(declared)},
            )
            body = ErrorResponse(error=PayloadTooLargeError.public_message)
            response = JSONResponse(
                body.model_dump(by_alias=True, exclude_none=True), status_code=413
            )
            await response(scope, receive, send)
            return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_body_bytes:
                    raise PayloadTooLargeError(self.max_body_bytes)
            return message

        await self.app(scope, limited_receive, send)
