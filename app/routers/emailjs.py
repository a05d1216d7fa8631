"""Public EmailJS configuration for front-ends that send from the browser.

Only identifiers EmailJS treats as public are returned here: the service id,
template ids and public key. The private key never leaves the server.
"""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Request

from app.routers.dependencies import (
    general_rate_limit,
    get_app_settings,
    mail_rate_limit,
    read_json_body,
    require_allowed_origin,
)
from app.services.templates import render_service_request
from app.services.validation import validate_service_request
from app.types import EmailJsConfigResponse, EmailJsTemplateConfig, PrepareEmailResponse
from server.config import Settings

router = APIRouter(
    prefix="/api",
    tags=["emailjs"],
    dependencies=[Depends(require_allowed_origin), Depends(general_rate_limit)],
)


def _public_config(settings: Settings) -> EmailJsConfigResponse:
    if not settings.emailjs_public_config_available:
        raise HTTPException(status_code=404, detail="EmailJS is not configured")
    return EmailJsConfigResponse(
        service_provider=EmailJsTemplateConfig(
            service_id=settings.emailjs_service_id,
            template_id=settings.emailjs_provider_template_id,
            public_key=settings.emailjs_public_key,
            default_reply_to=settings.emailjs_default_reply_to,
        ),
        client=EmailJsTemplateConfig(
            service_id=settings.emailjs_service_id,
            template_id=settings.emailjs_client_template_id,
            public_key=settings.emailjs_public_key,
        ),
    )


@router.get("/emailjs-config", response_model=EmailJsConfigResponse, response_model_exclude_none=True)
async def emailjs_config(settings: Settings = Depends(get_app_settings)) -> EmailJsConfigResponse:
    return _public_config(settings)


@router.post(
    "/prepare-email",
    response_model=PrepareEmailResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(mail_rate_limit)],
)
async def prepare_email(
    request: Request,
    settings: Settings = Depends(get_app_settings),
) -> PrepareEmailResponse:
    """Validate a service request and return both EmailJS template configurations.

    Nothing is sent; the browser performs the two sends with the returned
    template params, which are already sanitized.
    """
    config = _public_config(settings)
    raw = await read_json_body(request)
    submission = validate_service_request(raw)
    rendered = render_service_request(submission, datetime.now(timezone.utc), settings.business_name)

    config.service_provider.template_params = rendered.business.template_params
    config.client.template_params = rendered.client.template_params
    return PrepareEmailResponse(email_configs=config)
