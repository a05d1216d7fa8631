from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Dict, Optional

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.utils.text import sanitize_block, sanitize_line

from .enums import Urgency

NAME_MAX_LENGTH = 100
MESSAGE_MIN_LENGTH = 5
MESSAGE_MAX_LENGTH = 1000
SUBJECT_MAX_LENGTH = 150

_PHONE_CHARS = re.compile(r"^[0-9+().\-\s]+$")
_ZIP = re.compile(r"^\d{5}(?:-\d{4})?$")
_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_CLOCK_TIME = re.compile(r"^(?:[01]?\d|2[0-3]):[0-5]\d(?:\s?[AaPp][Mm])?$")
_DAY_PARTS = {"morning", "afternoon", "evening", "flexible", "anytime"}
_FALSE_WORDS = {"", "false", "no", "0", "off", "none"}


def normalize_email(value: Any) -> str:
    """Validate address syntax (no DNS lookup) and return it trimmed and lower-cased."""
    if not isinstance(value, str):
        raise ValueError("email must be a string")
    candidate = value.strip().lower()
    try:
        info = validate_email(candidate, check_deliverability=False)
    except EmailNotValidError as exc:
        raise ValueError(f"invalid email address: {exc}") from exc
    return info.normalized.lower()


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _as_text(value: Any) -> Any:
    """Numbers are accepted for phone/zip/amount fields and kept as text."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    return value


class ContactFields(BaseModel):
    """Fields shared by every form: who is writing and what they said.

    All free text is sanitized before length checks run, so the constraints
    apply to what will actually be rendered and sent.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str = Field(min_length=1, max_length=NAME_MAX_LENGTH)
    email: str
    phone: Optional[str] = None
    subject: Optional[str] = Field(default=None, max_length=SUBJECT_MAX_LENGTH)
    message: str = Field(min_length=MESSAGE_MIN_LENGTH, max_length=MESSAGE_MAX_LENGTH)

    @field_validator("name", "subject", mode="before")
    @classmethod
    def _sanitize_single_line(cls, v: Any) -> Any:
        v = _blank_to_none(v)
        return sanitize_line(v) if isinstance(v, str) else v

    @field_validator("message", mode="before")
    @classmethod
    def _sanitize_message(cls, v: Any) -> Any:
        return sanitize_block(v) if isinstance(v, str) else v

    @field_validator("email", mode="before")
    @classmethod
    def _validate_email(cls, v: Any) -> str:
        return normalize_email(v)

    @field_validator("phone", mode="before")
    @classmethod
    def _validate_phone(cls, v: Any) -> Optional[str]:
        v = _blank_to_none(_as_text(v))
        if v is None:
            return None
        if not isinstance(v, str):
            raise ValueError("phone must be a string")
        v = sanitize_line(v)
        if not _PHONE_CHARS.match(v):
            raise ValueError("phone may only contain digits, spaces and + - . ( )")
        digits = sum(ch.isdigit() for ch in v)
        if not 7 <= digits <= 15:
            raise ValueError("phone must contain between 7 and 15 digits")
        return v


class ServiceRequest(ContactFields):
    """A service-request submission from the public booking form.

    Accepts the field spellings used by the different site front-ends:
    ``firstName``/``lastName`` for ``name``, ``description`` for ``message``,
    ``claimDeal`` for ``discount_claimed``, and either a flat ``address`` string
    or an object with ``street``/``city``/``state``/``zipCode``.

    Example:
        >>> from app.types import ServiceRequest
        >>> ServiceRequest.model_validate(
        ...     {"name": "John Doe", "email": "john@example.com", "message": "Need help"}
        ... )
    """

    address: Optional[str] = Field(default=None, max_length=200)
    city: Optional[str] = Field(default=None, max_length=100)
    state: Optional[str] = Field(default=None, max_length=50)
    zip_code: Optional[str] = Field(default=None, alias="zipCode")
    service_type: Optional[str] = Field(default=None, alias="serviceType", max_length=100)
    urgency: Optional[Urgency] = None
    preferred_date: Optional[str] = Field(default=None, alias="preferredDate")
    preferred_time: Optional[str] = Field(default=None, alias="preferredTime")
    discount_claimed: bool = False
    deal_amount: Optional[str] = Field(default=None, alias="dealAmount", max_length=50)

    @model_validator(mode="before")
    @classmethod
    def _fold_aliases(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if not data.get("name") and (data.get("firstName") or data.get("lastName")):
            parts = [data.get("firstName"), data.get("lastName")]
            data["name"] = " ".join(str(p).strip() for p in parts if p)
        if not data.get("message") and data.get("description"):
            data["message"] = data["description"]
        if "discount_claimed" not in data and "claimDeal" in data:
            data["discount_claimed"] = data["claimDeal"]
        address = data.get("address")
        if isinstance(address, dict):
            data["address"] = address.get("street") or address.get("address")
            for key in ("city", "state", "zipCode"):
                if address.get(key) and not data.get(key):
                    data[key] = address[key]
        return data

    @field_validator("address", "city", "state", "service_type", "deal_amount", mode="before")
    @classmethod
    def _sanitize_optional_line(cls, v: Any) -> Any:
        v = _blank_to_none(_as_text(v))
        if isinstance(v, str):
            return sanitize_line(v) or None
        return v

    @field_validator("zip_code", mode="before")
    @classmethod
    def _validate_zip(cls, v: Any) -> Optional[str]:
        v = _blank_to_none(_as_text(v))
        if v is None:
            return None
        v = str(v).strip()
        if not _ZIP.match(v):
            raise ValueError("zipCode must look like 12345 or 12345-6789")
        return v

    @field_validator("urgency", mode="before")
    @classmethod
    def _normalize_urgency(cls, v: Any) -> Any:
        v = _blank_to_none(v)
        if isinstance(v, str):
            return v.strip().capitalize()
        return v

    @field_validator("preferred_date", mode="before")
    @classmethod
    def _validate_date(cls, v: Any) -> Optional[str]:
        v = _blank_to_none(v)
        if v is None:
            return None
        v = str(v).strip()
        if not _DATE.match(v):
            raise ValueError("preferredDate must be YYYY-MM-DD")
        try:
            datetime.strptime(v, "%Y-%m-%d")
        except ValueError as exc:
            raise ValueError("preferredDate is not a real calendar date") from exc
        return v

    @field_validator("preferred_time", mode="before")
    @classmethod
    def _validate_time(cls, v: Any) -> Optional[str]:
        v = _blank_to_none(v)
        if v is None:
            return None
        v = " ".join(str(v).split())
        if v.lower() in _DAY_PARTS:
            return v.capitalize()
        if not _CLOCK_TIME.match(v):
            raise ValueError("preferredTime must be HH:MM or Morning/Afternoon/Evening/Flexible")
        return v.upper()

    @field_validator("discount_claimed", mode="before")
    @classmethod
    def _coerce_flag(cls, v: Any) -> bool:
        if isinstance(v, bool):
            return v
        if v is None:
            return False
        return str(v).strip().lower() not in _FALSE_WORDS

    @property
    def full_address(self) -> Optional[str]:
        """Single-line address assembled from whichever parts were supplied."""
        locality = " ".join(p for p in (self.state, self.zip_code) if p)
        parts = [p for p in (self.address, self.city, locality) if p]
        return ", ".join(parts) if parts else None

    def to_public_dict(self) -> Dict[str, Any]:
        """Sanitized fields in the wire spelling used by the front-ends."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class SupportRequest(ContactFields):
    """A support/contact-us submission: name, email, optional phone and subject, message."""
