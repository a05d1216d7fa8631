"""Turn raw form payloads into sanitized submissions or field-level errors."""

from __future__ import annotations

from typing import Any, Dict, List, Type, TypeVar

import pydantic

from app.errors import ValidationError
from app.types import ContactFields, ServiceRequest, SupportRequest

SubmissionT = TypeVar("SubmissionT", bound=ContactFields)


def _field_errors(exc: pydantic.ValidationError) -> List[Dict[str, str]]:
    details: List[Dict[str, str]] = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ())) or "body"
        message = error.get("msg", "invalid value")
        # pydantic prefixes messages raised from validators with "Value error, "
        if message.startswith("Value error, "):
            message = message[len("Value error, ") :]
        details.append({"field": field, "message": message})
    return details


def validate_submission(model: Type[SubmissionT], raw: Any) -> SubmissionT:
    """Validate and sanitize `raw` into `model`, raising `ValidationError` on failure."""
    if not isinstance(raw, dict):
        raise ValidationError([{"field": "body", "message": "Request body must be a JSON object"}])
    try:
        return model.model_validate(raw)
    except pydantic.ValidationError as exc:
        raise ValidationError(_field_errors(exc)) from exc


def validate_service_request(raw: Any) -> ServiceRequest:
    return validate_submission(ServiceRequest, raw)


def validate_support_request(raw: Any) -> SupportRequest:
    return validate_submission(SupportRequest, raw)
