"""Router aggregation for FormRelay."""

from __future__ import annotations

from fastapi import APIRouter

from app.routers import email as email_router_module
from app.routers import emailjs as emailjs_router_module
from app.routers import health as health_router_module

# Routes keep the paths existing site front-ends already post to, so no prefix here
api_router = APIRouter()

api_router.include_router(health_router_module.router)
api_router.include_router(email_router_module.router)
api_router.include_router(emailjs_router_module.router)

__all__ = ["api_router"]
