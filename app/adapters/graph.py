"""Microsoft Graph mail transport."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from email.utils import parseaddr
from typing import Any, Dict, Optional

import httpx

from app.errors import TransportError
from app.types import MailTransport, OutboundEmail, SendResult
from server.config import Settings

logger = logging.getLogger("formrelay.adapters.graph")


class GraphTransport(MailTransport):
    """Send mail as a licensed mailbox through Microsoft Graph.

    Uses the client-credentials flow (application permission ``Mail.Send``)
    and sends as ``MAIL_FROM``. The access token is cached until five minutes
    before it expires.
    """

    name = "graph"

    BASE_URL = "https://graph.microsoft.com/v1.0"
    TOKEN_URL = "https://login.microsoftonline.com/{tenant_id}/oauth2/v2.0/token"

    def __init__(self, settings: Settings, client: Optional[httpx.AsyncClient] = None) -> None:
        self.tenant_id = settings.graph_tenant_id or ""
        self.client_id = settings.graph_client_id or ""
        self.client_secret = settings.graph_client_secret or ""
        self.sender = parseaddr(settings.mail_from or "")[1]
        self.client = client or httpx.AsyncClient(timeout=settings.mail_send_timeout)
        self._access_token: Optional[str] = None
        self._token_expiry: Optional[datetime] = None
        self._token_lock = asyncio.Lock()

    @property
    def ready(self) -> bool:
        return all((self.tenant_id, self.client_id, self.client_secret, self.sender))

    def send_endpoint(self) -> str:
        return f"{self.BASE_URL}/users/{self.sender}/sendMail"

    def token_endpoint(self) -> str:
        return self.TOKEN_URL.format(tenant_id=self.tenant_id)

    def clear_token_cache(self) -> None:
        self._access_token = None
        self._token_expiry = None

    async def _get_access_token(self) -> str:
        async with self._token_lock:
            if self._access_token and self._token_expiry:
                if datetime.now(timezone.utc) < self._token_expiry - timedelta(minutes=5):
                    return self._access_token

            data = {
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "scope": "https://graph.microsoft.com/.default",
                "grant_type": "client_credentials",
            }
            response = await self.client.post(self.token_endpoint(), data=data)
            if response.status_code != 200:
                raise TransportError(
                    f"Graph token request failed: HTTP {response.status_code}", provider=self.name
                )
            token_data = response.json()
            self._access_token = token_data["access_token"]
            expires_in = int(token_data.get("expires_in", 3600))
            self._token_expiry = datetime.now(timezone.utc) + timedelta(seconds=expires_in)
            logger.info("Obtained Graph access token", extra={"expires_in": expires_in})
            return self._access_token

    def _build_payload(self, message: OutboundEmail) -> Dict[str, Any]:
        graph_message: Dict[str, Any] = {
            "subject": message.subject,
            "body": {
                "contentType": "HTML" if message.is_html else "Text",
                "content": message.body,
            },
            "toRecipients": [{"emailAddress": {"address": message.to}}],
        }
        if message.reply_to:
            reply_name, reply_address = parseaddr(message.reply_to)
            address: Dict[str, str] = {"address": reply_address}
            if reply_name:
                address["name"] = reply_name
            graph_message["replyTo"] = [{"emailAddress": address}]
        return {"message": graph_message, "saveToSentItems": False}

    async def send(self, message: OutboundEmail) -> SendResult:
        if not self.ready:
            raise TransportError("Graph transport is not configured", provider=self.name)
        try:
            token = await self._get_access_token()
            response = await self.client.post(
                self.send_endpoint(),
                json=self._build_payload(message),
                headers={"Authorization": f"Bearer {token}"},
            )
        except httpx.RequestError as e:
            raise TransportError(f"Graph network error: {e}", provider=self.name) from e
        except (KeyError, ValueError) as e:
            raise TransportError(f"Graph token response malformed: {e}", provider=self.name) from e

        if response.status_code == 401:
            # Token revoked or permissions changed; fetch a fresh one next time
            self.clear_token_cache()
        if response.status_code != 202:
            raise TransportError(
                f"Graph sendMail HTTP {response.status_code}: {response.text[:200]}",
                provider=self.name,
            )
        return SendResult(message_id=response.headers.get("request-id"), provider=self.name)

    async def aclose(self) -> None:
        await self.client.aclose()
