from __future__ import annotations

from fastapi import APIRouter, Request

from app.types import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/api/health", response_model=HealthResponse, response_model_exclude_none=True)
@router.get("/health", response_model=HealthResponse, response_model_exclude_none=True)
async def health(request: Request) -> HealthResponse:
    """Return service health and transport readiness for monitoring and load balancers."""
    transport = getattr(request.app.state, "transport", None)
    if transport is None:
        return HealthResponse(status="ok")
    return HealthResponse(status="ok", transport=transport.name, transport_ready=transport.ready)


@router.get("/healthz")
async def healthz() -> dict:
    """Alternative health endpoint (kept for compatibility)."""
    return {"status": "ok"}
