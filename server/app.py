"""Main FastAPI application for FormRelay."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.adapters.registry import TransportRegistry
from app.errors import (
    ConfigurationError,
    FormRelayError,
    RateLimitExceededError,
    ValidationError,
    new_error_id,
)
from app.routers.dependencies import GENERAL_SCOPE, MAIL_SCOPE
from app.services.dispatcher import MailDispatcher
from app.services.rate_limiter import FixedWindowRateLimiter
from app.services.request_handler import FormRequestHandler
from app.types import ErrorResponse, MailTransport

from .config import Settings, get_settings
from .logging_config import configure_logging, logger
from .middleware import BodySizeLimitMiddleware
from .routes import api_router


def _error_response(
    status_code: int,
    error: str,
    *,
    details: Optional[list] = None,
    error_id: Optional[str] = None,
    headers: Optional[dict] = None,
) -> JSONResponse:
    body = ErrorResponse(error=error, details=details, error_id=error_id)
    return JSONResponse(
        body.model_dump(by_alias=True, exclude_none=True),
        status_code=status_code,
        headers=headers,
    )


# Register global exception handlers for consistent error responses across the API
def register_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers for 400, 403, 413, 429, HTTP and 500 errors."""

    @app.exception_handler(ValidationError)
    async def _validation_error_handler(request: Request, exc: ValidationError):
        logger.info("validation failed", extra={"fields": exc.fields, "path": request.url.path})
        return _error_response(exc.status_code, exc.public_message, details=exc.details)

    @app.exception_handler(RateLimitExceededError)
    async def _rate_limit_handler(request: Request, exc: RateLimitExceededError):
        return _error_response(
            exc.status_code,
            exc.public_message,
            headers={"Retry-After": str(exc.retry_after)},
        )

    @app.exception_handler(FormRelayError)
    async def _app_error_handler(request: Request, exc: FormRelayError):
        logger.warning(
            "request rejected",
            extra={"error": type(exc).__name__, "status": exc.status_code, "path": request.url.path},
        )
        return _error_response(exc.status_code, exc.public_message)

    @app.exception_handler(RequestValidationError)
    async def _request_validation_handler(request: Request, exc: RequestValidationError):
        logger.debug("request validation error", extra={"errors": exc.errors(), "path": request.url.path})
        details = [
            {"field": ".".join(str(p) for p in err.get("loc", ())), "message": err.get("msg", "")}
            for err in exc.errors()
        ]
        return _error_response(status.HTTP_400_BAD_REQUEST, "Invalid request", details=details)

    @app.exception_handler(StarletteHTTPException)
    async def _http_exception_handler(request: Request, exc: StarletteHTTPException):
        logger.debug(
            "http error",
            extra={"detail": exc.detail, "status": exc.status_code, "path": request.url.path},
        )
        return _error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def _unhandled_exception_handler(request: Request, exc: Exception):
        error_id = new_error_id()
        logger.exception("Unhandled error [%s]", error_id, extra={"path": request.url.path})
        return _error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Internal server error",
            error_id=error_id,
        )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Validate configuration and build the process-scoped mail transport.

    A `ConfigurationError` raised here aborts startup before the server
    accepts connections.
    """
    settings: Settings = app.state.settings
    settings.require_complete()

    transport: Optional[MailTransport] = app.state.transport_override
    if transport is None:
        try:
            transport = TransportRegistry.create(settings.mail_transport, settings)
        except KeyError as exc:
            raise ConfigurationError(
                [f"MAIL_TRANSPORT (unknown transport {settings.mail_transport!r})"]
            ) from exc
    dispatcher = MailDispatcher(transport, timeout=settings.mail_send_timeout)
    app.state.transport = transport
    app.state.dispatcher = dispatcher
    app.state.handler = FormRequestHandler(
        dispatcher,
        business_email=settings.business_email or "",
        business_name=settings.business_name,
    )
    logger.info(
        "Starting FormRelay server",
        extra={"version": settings.app_version, "env": settings.env, "transport": transport.name},
    )
    try:
        yield
    finally:
        logger.info("Shutting down FormRelay server")
        await transport.aclose()


def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[MailTransport] = None,
) -> FastAPI:
    """Build the application.

    `transport` replaces the configured transport; tests pass a fake here.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        docs_url="/docs" if settings.enable_docs else None,
        redoc_url=None,
        openapi_url="/openapi.json" if settings.enable_docs else None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.transport_override = transport
    app.state.rate_limiters = {
        GENERAL_SCOPE: FixedWindowRateLimiter(
            settings.rate_limit_general_max, settings.rate_limit_window_seconds, scope=GENERAL_SCOPE
        ),
        MAIL_SCOPE: FixedWindowRateLimiter(
            settings.rate_limit_mail_max, settings.rate_limit_window_seconds, scope=MAIL_SCOPE
        ),
    }

    app.add_middleware(BodySizeLimitMiddleware, max_body_bytes=settings.max_body_bytes)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(api_router)
    return app


__all__ = ["create_app", "register_exception_handlers", "lifespan"]
