from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from app.routers.dependencies import (
    general_rate_limit,
    get_handler,
    mail_rate_limit,
    read_json_body,
    require_allowed_origin,
)
from app.services.request_handler import FormRequestHandler, outcome_message
from app.services.validation import validate_service_request, validate_support_request
from app.types import RequestOutcome, SendEmailResponse

router = APIRouter(
    tags=["email"],
    dependencies=[Depends(require_allowed_origin), Depends(general_rate_limit)],
)


def _response(outcome: RequestOutcome) -> SendEmailResponse:
    return SendEmailResponse(
        success=outcome.success,
        message=outcome_message(outcome),
        error_ids=outcome.error_ids or None,
    )


@router.post(
    "/send-email",
    response_model=SendEmailResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(mail_rate_limit)],
)
@router.post(
    "/api/send-email",
    response_model=SendEmailResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(mail_rate_limit)],
)
async def send_email(
    request: Request,
    handler: FormRequestHandler = Depends(get_handler),
) -> SendEmailResponse:
    """Validate a service request, then notify the business and confirm to the submitter.

    Returns 200 whenever dispatch was attempted; `success` is false and
    `errorIds` is set when either email could not be sent.
    """
    raw = await read_json_body(request)
    submission = validate_service_request(raw)
    outcome = await handler.handle_service_request(submission)
    return _response(outcome)


@router.post(
    "/support-email",
    response_model=SendEmailResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(mail_rate_limit)],
)
@router.post(
    "/api/support-email",
    response_model=SendEmailResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(mail_rate_limit)],
)
async def support_email(
    request: Request,
    handler: FormRequestHandler = Depends(get_handler),
) -> SendEmailResponse:
    """Support/contact-us variant of `send_email` with the same response contract."""
    raw = await read_json_body(request)
    submission = validate_support_request(raw)
    outcome = await handler.handle_support_request(submission)
    return _response(outcome)
