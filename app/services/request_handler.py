"""Render a validated submission and send both notification legs."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from email.utils import formataddr
from typing import Callable, Dict

from app.services.dispatcher import MailDispatcher
from app.services.templates import (
    RenderedEmail,
    RenderedNotifications,
    render_service_request,
    render_support_request,
)
from app.types import (
    ContactFields,
    DispatchResult,
    EmailCategory,
    RequestOutcome,
    ServiceRequest,
    SupportRequest,
)
from app.utils.text import mask_email

logger = logging.getLogger("formrelay.handler")

SUCCESS_MESSAGE = "Emails sent successfully"
PARTIAL_MESSAGE = (
    "Your request was received, but one of the notification emails could not be sent. "
    "Please keep the reference id if you contact support."
)
FAILURE_MESSAGE = "We could not send the notification emails. Please try again later."


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def outcome_message(outcome: RequestOutcome) -> str:
    if outcome.success:
        return SUCCESS_MESSAGE
    if outcome.partial:
        return PARTIAL_MESSAGE
    return FAILURE_MESSAGE


class FormRequestHandler:
    """Orchestrates render -> dispatch x2 -> aggregate for one submission.

    The business leg always goes to the configured address; the submitter's
    address is used only as the confirmation recipient and in ``Reply-To``.
    Both legs run concurrently and neither failure stops the other.
    """

    def __init__(
        self,
        dispatcher: MailDispatcher,
        business_email: str,
        business_name: str = "Our Team",
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.dispatcher = dispatcher
        self.business_email = business_email
        self.business_name = business_name
        self.clock = clock

    async def handle_service_request(self, submission: ServiceRequest) -> RequestOutcome:
        rendered = render_service_request(submission, self.clock(), self.business_name)
        return await self._dispatch_pair(submission, rendered, kind="service")

    async def handle_support_request(self, submission: SupportRequest) -> RequestOutcome:
        rendered = render_support_request(submission, self.clock(), self.business_name)
        return await self._dispatch_pair(submission, rendered, kind="support")

    def _send(
        self,
        to: str,
        email: RenderedEmail,
        category: EmailCategory,
        headers: Dict[str, str],
    ):
        return self.dispatcher.send(
            to,
            email.subject,
            email.html,
            True,
            headers,
            text_body=email.text,
            category=category,
            template_params=email.template_params,
        )

    async def _dispatch_pair(
        self,
        submission: ContactFields,
        rendered: RenderedNotifications,
        *,
        kind: str,
    ) -> RequestOutcome:
        reply_to = formataddr((submission.name, submission.email))
        business, client = await asyncio.gather(
            self._send(
                self.business_email,
                rendered.business,
                EmailCategory.BUSINESS_NOTIFICATION,
                {"Reply-To": reply_to},
            ),
            self._send(
                submission.email,
                rendered.client,
                EmailCategory.CLIENT_CONFIRMATION,
                {},
            ),
        )
        outcome = RequestOutcome(business=business, client=client)
        self._log_outcome(kind, submission.email, business, client)
        return outcome

    @staticmethod
    def _log_outcome(kind: str, submitter: str, business: DispatchResult, client: DispatchResult) -> None:
        log = logger.info if business.success and client.success else logger.warning
        log(
            "Processed %s request from %s (business=%s, client=%s)",
            kind,
            mask_email(submitter),
            "sent" if business.success else business.error_id,
            "sent" if client.success else client.error_id,
        )
