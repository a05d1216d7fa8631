from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator

from .enums import EmailCategory


class OutboundEmail(BaseModel):
    """One rendered email handed to a transport.

    This model centralizes addressing and content so transports never receive
    ever-growing keyword argument lists.

    Anatomy:
    - to: single recipient address, already validated by the dispatcher
    - subject / body: rendered content; `is_html` selects the content type
    - text_body: optional plain-text alternative for multipart transports
    - headers: extra headers (e.g. ``Reply-To``); values must be single-line
    - category: which leg of the request this email is
    - template_params: provider template variables (EmailJS)

    Example:
        >>> from app.types import OutboundEmail
        >>> OutboundEmail(to="jane@example.com", subject="Hi", body="<p>Hi</p>")
    """

    to: str
    subject: str
    body: str
    is_html: bool = True
    text_body: Optional[str] = None
    headers: Dict[str, str] = Field(default_factory=dict)
    category: EmailCategory = EmailCategory.BUSINESS_NOTIFICATION
    template_params: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("subject")
    @classmethod
    def _single_line_subject(cls, v: str) -> str:
        if "\r" in v or "\n" in v:
            raise ValueError("subject must be a single line")
        return v

    @field_validator("headers")
    @classmethod
    def _single_line_headers(cls, v: Dict[str, str]) -> Dict[str, str]:
        for name, value in v.items():
            if any(ch in f"{name}{value}" for ch in ("\r", "\n")):
                raise ValueError(f"header {name!r} must be a single line")
        return v

    @property
    def reply_to(self) -> Optional[str]:
        return self.headers.get("Reply-To")
