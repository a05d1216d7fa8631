from __future__ import annotations

import asyncio
import logging
import smtplib
import ssl
import threading
from dataclasses import dataclass
from email.message import EmailMessage
from email.utils import formatdate, make_msgid, parseaddr
from typing import List, Optional

from app.errors import TransportError
from app.types import MailTransport, OutboundEmail, SendResult
from server.config import Settings

logger = logging.getLogger("formrelay.adapters.smtp")


def _describe(exc: BaseException) -> str:
    """Error class and SMTP reply codes only; server replies echo recipient addresses."""
    if isinstance(exc, smtplib.SMTPRecipientsRefused):
        codes = sorted({str(code) for code, _ in exc.recipients.values()})
        return f"{type(exc).__name__} ({', '.join(codes)})" if codes else type(exc).__name__
    code = getattr(exc, "smtp_code", None)
    return f"{type(exc).__name__} ({code})" if code else type(exc).__name__


@dataclass
class PooledConnection:
    smtp: smtplib.SMTP
    sent: int = 0


class SmtpConnectionPool:
    """Bounded pool of authenticated SMTP connections.

    At most `max_connections` connections exist at once; a caller that finds
    every slot busy is suspended until one frees. A connection is retired
    after `max_messages` sends. All blocking smtplib calls run in a
    worker thread.
    """

    def __init__(
        self,
        host: str,
        port: int,
        username: Optional[str],
        password: Optional[str],
        *,
        use_tls: bool = True,
        timeout: float = 30.0,
        max_connections: int = 5,
        max_messages: int = 100,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout
        self.max_connections = max(1, max_connections)
        self.max_messages = max(1, max_messages)
        self._slots = asyncio.Semaphore(self.max_connections)
        self._idle: List[PooledConnection] = []
        self._lock = threading.Lock()

    def _connect(self) -> PooledConnection:
        if self.port == 465:
            smtp: smtplib.SMTP = smtplib.SMTP_SSL(
                self.host, self.port, timeout=self.timeout, context=ssl.create_default_context()
            )
        else:
            smtp = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
            if self.use_tls:
                smtp.starttls(context=ssl.create_default_context())
        if self.username and self.password:
            smtp.login(self.username, self.password)
        logger.debug("Opened SMTP connection", extra={"host": self.host, "port": self.port})
        return PooledConnection(smtp=smtp)

    @staticmethod
    def _is_alive(conn: PooledConnection) -> bool:
        try:
            return conn.smtp.noop()[0] == 250
        except (smtplib.SMTPException, OSError):
            return False

    @staticmethod
    def _close(conn: PooledConnection) -> None:
        try:
            conn.smtp.quit()
        except (smtplib.SMTPException, OSError):
            conn.smtp.close()

    def _checkout(self) -> PooledConnection:
        while True:
            with self._lock:
                conn = self._idle.pop() if self._idle else None
            if conn is None:
                return self._connect()
            if self._is_alive(conn):
                return conn
            self._close(conn)

    def _checkin(self, conn: PooledConnection) -> None:
        if conn.sent >= self.max_messages:
            self._close(conn)
            return
        with self._lock:
            self._idle.append(conn)

    def _deliver(self, msg: EmailMessage) -> None:
        """Checkout, send and checkin on one worker thread."""
        conn = self._checkout()
        try:
            conn.smtp.send_message(msg)
        except BaseException:
            # Never return a connection in an unknown protocol state to the pool
            self._close(conn)
            raise
        conn.sent += 1
        self._checkin(conn)

    def _release(self, job: "asyncio.Future[None]") -> None:
        self._slots.release()
        if not job.cancelled():
            # Mark the outcome as retrieved when the caller stopped waiting
            job.exception()

    async def send(self, msg: EmailMessage) -> None:
        """Send `msg` on a pooled connection.

        The slot stays taken until the worker thread finishes, even when the
        caller is cancelled (a dispatch timeout), so a connection is never used
        from two threads and the pool bound holds.
        """
        await self._slots.acquire()
        try:
            job = asyncio.ensure_future(asyncio.to_thread(self._deliver, msg))
        except BaseException:
            self._slots.release()
            raise
        job.add_done_callback(self._release)
        await asyncio.shield(job)

    @property
    def idle_count(self) -> int:
        with self._lock:
            return len(self._idle)

    async def close(self) -> None:
        with self._lock:
            idle, self._idle = self._idle, []
        for conn in idle:
            await asyncio.to_thread(self._close, conn)


class SmtpTransport(MailTransport):
    """SMTP relay transport implementing the MailTransport protocol.

    Notes:
    - Port 465 uses implicit TLS; any other port upgrades with STARTTLS unless
      SMTP_USE_TLS is disabled.
    - The returned message id is the generated ``Message-ID`` header.
    """

    name = "smtp"

    def __init__(self, settings: Settings, pool: Optional[SmtpConnectionPool] = None) -> None:
        self.mail_from = settings.mail_from or ""
        self.pool = pool or SmtpConnectionPool(
            settings.smtp_host or "",
            settings.smtp_port,
            settings.smtp_username,
            settings.smtp_password,
            use_tls=settings.smtp_use_tls,
            timeout=settings.mail_send_timeout,
            max_connections=settings.smtp_max_connections,
            max_messages=settings.smtp_max_messages,
        )

    @property
    def ready(self) -> bool:
        return bool(self.pool.host and self.mail_from)

    def build_message(self, message: OutboundEmail) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = self.mail_from
        msg["To"] = message.to
        msg["Subject"] = message.subject
        msg["Date"] = formatdate(localtime=True)
        domain = parseaddr(self.mail_from)[1].partition("@")[2] or None
        msg["Message-ID"] = make_msgid(domain=domain)
        for header, value in message.headers.items():
            msg[header] = value

        if message.is_html:
            msg.set_content(message.text_body or "This message requires an HTML-capable mail client.")
            msg.add_alternative(message.body, subtype="html")
        else:
            msg.set_content(message.body)
        return msg

    async def send(self, message: OutboundEmail) -> SendResult:
        if not self.ready:
            raise TransportError("SMTP transport is not configured", provider=self.name)
        msg = self.build_message(message)
        try:
            await self.pool.send(msg)
        except (smtplib.SMTPException, OSError) as exc:
            raise TransportError(f"SMTP send failed: {_describe(exc)}", provider=self.name) from exc
        return SendResult(message_id=msg["Message-ID"], provider=self.name)

    async def aclose(self) -> None:
        await self.pool.close()
