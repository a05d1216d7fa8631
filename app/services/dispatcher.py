"""Mail dispatch: one send, one DispatchResult, no exceptions escape."""

from __future__ import annotations

import asyncio
import re
import logging
from typing import Dict, Optional

from app.errors import TransportError, new_error_id
from app.types import (
    DispatchResult,
    EmailCategory,
    MailTransport,
    OutboundEmail,
    normalize_email,
)
from app.utils.text import mask_email

logger = logging.getLogger("formrelay.dispatcher")


class MailDispatcher:
    """Wrap the configured transport behind a single `send` contract.

    Every failure (bad recipient, transport error, timeout, anything else the
    transport raises) becomes ``DispatchResult(success=False, error_id=...)``.
    The provider's error text goes to the server log with the recipient
    masked; callers only ever see the opaque id.
    """

    def __init__(self, transport: MailTransport, timeout: float = 30.0) -> None:
        self.transport = transport
        self.timeout = timeout

    @property
    def transport_name(self) -> str:
        return getattr(self.transport, "name", type(self.transport).__name__)

    def _failed(self, to: str, reason: str, *, exc: Optional[BaseException] = None) -> DispatchResult:
        error_id = new_error_id()
        masked = mask_email(to)
        # Provider replies often echo the recipient back
        if to:
            reason = re.sub(re.escape(to), masked, reason, flags=re.IGNORECASE)
        logger.error(
            "Mail dispatch failed [%s] to %s via %s: %s",
            error_id,
            masked,
            self.transport_name,
            reason,
            extra={
                "error_id": error_id,
                "transport": self.transport_name,
                "error_type": type(exc).__name__ if exc is not None else None,
            },
        )
        return DispatchResult.failed(error_id)

    async def send(
        self,
        to: str,
        subject: str,
        body: str,
        is_html: bool = True,
        headers: Optional[Dict[str, str]] = None,
        *,
        text_body: Optional[str] = None,
        category: EmailCategory = EmailCategory.BUSINESS_NOTIFICATION,
        template_params: Optional[Dict[str, object]] = None,
    ) -> DispatchResult:
        try:
            recipient = normalize_email(to)
        except ValueError as exc:
            return self._failed(to, f"invalid recipient: {exc}")

        try:
            message = OutboundEmail(
                to=recipient,
                subject=subject,
                body=body,
                is_html=is_html,
                text_body=text_body,
                headers=headers or {},
                category=category,
                template_params=template_params or {},
            )
        except ValueError as exc:
            return self._failed(recipient, f"unsendable message: {exc}")

        try:
            result = await asyncio.wait_for(self.transport.send(message), timeout=self.timeout)
        except asyncio.TimeoutError:
            return self._failed(recipient, f"timed out after {self.timeout:g}s")
        except TransportError as exc:
            return self._failed(recipient, str(exc), exc=exc)
        except Exception as exc:
            return self._failed(recipient, f"unexpected transport error: {exc!r}", exc=exc)

        logger.info(
            "Mail dispatched to %s via %s",
            mask_email(recipient),
            self.transport_name,
            extra={"message_id": result.message_id, "category": category.value},
        )
        return DispatchResult.sent(result.message_id)
