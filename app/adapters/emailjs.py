from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from app.errors import TransportError
from app.types import EmailCategory, MailTransport, OutboundEmail, SendResult
from server.config import Settings


class EmailJsTransport(MailTransport):
    """EmailJS REST transport implementing the MailTransport protocol.

    EmailJS renders mail from templates stored on its side, so each send picks
    a template by `OutboundEmail.category`: the provider template for the
    business notification and the client template for confirmations. The
    rendered subject and bodies travel as template params (``subject``,
    ``message_html``, ``message``) next to the field-level params from the
    renderer, so templates may use either.

    Server-side sends need the account's private key (``accessToken``) and
    "API access from non-browser environments" enabled in EmailJS.
    """

    name = "emailjs"

    def __init__(self, settings: Settings, client: Optional[httpx.AsyncClient] = None) -> None:
        self.send_url = settings.emailjs_send_url
        self.service_id = settings.emailjs_service_id or ""
        self.provider_template_id = settings.emailjs_provider_template_id or ""
        self.client_template_id = settings.emailjs_client_template_id or ""
        self.public_key = settings.emailjs_public_key or ""
        self.private_key = settings.emailjs_private_key or ""
        self.client = client or httpx.AsyncClient(timeout=settings.mail_send_timeout)

    def send_endpoint(self) -> str:
        return self.send_url

    @property
    def ready(self) -> bool:
        return all(
            (
                self.service_id,
                self.provider_template_id,
                self.client_template_id,
                self.public_key,
                self.private_key,
            )
        )

    def template_for(self, category: EmailCategory) -> str:
        if category == EmailCategory.CLIENT_CONFIRMATION:
            return self.client_template_id
        return self.provider_template_id

    def _build_payload(self, message: OutboundEmail) -> Dict[str, Any]:
        params: Dict[str, Any] = dict(message.template_params)
        params.update(
            {
                "to_email": message.to,
                "subject": message.subject,
                "message": message.text_body or message.body,
            }
        )
        if message.is_html:
            params["message_html"] = message.body
        if message.reply_to:
            params["reply_to"] = message.reply_to
        return {
            "service_id": self.service_id,
            "template_id": self.template_for(message.category),
            "user_id": self.public_key,
            "accessToken": self.private_key,
            "template_params": params,
        }

    async def send(self, message: OutboundEmail) -> SendResult:
        if not self.ready:
            raise TransportError("EmailJS transport is not configured", provider=self.name)
        try:
            response = await self.client.post(self.send_endpoint(), json=self._build_payload(message))
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise TransportError(
                f"EmailJS HTTP {e.response.status_code}: {e.response.text[:200]}",
                provider=self.name,
            ) from e
        except httpx.RequestError as e:
            raise TransportError(f"EmailJS network error: {e}", provider=self.name) from e
        # EmailJS answers a plain "OK" and assigns no message id
        return SendResult(message_id=None, provider=self.name)

    async def aclose(self) -> None:
        await self.client.aclose()
