import asyncio
import smtplib
import socket
from email.message import EmailMessage as MIMEMessage
from email.utils import formataddr
from typing import Awaitable, Callable, Optional

from itdesk.core.config import Settings
from itdesk.core.exceptions import ChannelDeliveryException
from itdesk.schemas.notification import EmailMessage
from itdesk.utils.logger import notify_logger as logger

# Errors after which the pooled connection is thrown away and rebuilt
CONNECTION_ERRORS = (
    smtplib.SMTPServerDisconnected,
    ConnectionError,
    TimeoutError,
    socket.timeout,
    socket.gaierror,
)


class SMTPEmailChannel:
    """
    Outbound email over SMTP.

    One connection is shared by every send in the process. It is verified
    lazily, marked not-ready on connection-class failures and rebuilt on the
    next attempt. `send` never raises; it reports delivery as a bool.
    """

    def __init__(
        self,
        config: Settings,
        smtp_factory: Optional[Callable[[], smtplib.SMTP]] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.config = config
        self._smtp_factory = smtp_factory or self._open_connection
        self._sleep = sleep
        self._connection: Optional[smtplib.SMTP] = None
        self._ready = False
        self._lock = asyncio.Lock()

    @property
    def is_ready(self) -> bool:
        return self._ready

    # ------------------------------------------------------------------ #
    # Connection lifecycle (blocking, run in a worker thread)
    # ------------------------------------------------------------------ #
    def _open_connection(self) -> smtplib.SMTP:
        host, port, timeout = self.config.SMTP_HOST, self.config.SMTP_PORT, self.config.SMTP_TIMEOUT
        if self.config.SMTP_SECURE:
            smtp = smtplib.SMTP_SSL(host, port, timeout=timeout)
        else:
            smtp = smtplib.SMTP(host, port, timeout=timeout)
            smtp.ehlo()
            if smtp.has_extn("starttls"):
                smtp.starttls()
                smtp.ehlo()
        smtp.login(self.config.SMTP_USER, self.config.SMTP_PASS)
        return smtp

    def _verify_sync(self) -> None:
        if self._connection is None:
            self._connection = self._smtp_factory()
        code, response = self._connection.noop()
        if code != 250:
            raise smtplib.SMTPResponseException(code, response)

    def _send_sync(self, mime: MIMEMessage) -> None:
        if self._connection is None:
            self._connection = self._smtp_factory()
        self._connection.send_message(mime)

    def _discard_sync(self) -> None:
        connection, self._connection = self._connection, None
        if connection is None:
            return
        try:
            connection.quit()
        except (smtplib.SMTPException, OSError) as e:
            logger.debug(f"Ignoring error while closing SMTP connection: {e}")

    async def _reset(self) -> None:
        self._ready = False
        async with self._lock:
            await asyncio.to_thread(self._discard_sync)

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #
    async def verify_connection(self) -> bool:
        """Check the shared connection, rebuilding it once if the first check fails."""
        try:
            async with self._lock:
                await asyncio.to_thread(self._verify_sync)
            self._ready = True
            return True
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"❌ SMTP connection verification failed: {e}")
            await self._reset()

        try:
            async with self._lock:
                await asyncio.to_thread(self._verify_sync)
            self._ready = True
            return True
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"❌ SMTP connection failed after retry: {e}")
            await self._reset()
            return False

    def build_mime(self, message: EmailMessage) -> MIMEMessage:
        mime = MIMEMessage()
        mime["From"] = formataddr((self.config.SMTP_SENDER_NAME, self.config.SMTP_USER))
        mime["To"] = message.to
        mime["Subject"] = " ".join(message.subject.split())
        mime.set_content(message.text)
        mime.add_alternative(message.html, subtype="html")
        return mime

    async def _send_with_retry(self, message: EmailMessage) -> None:
        if not self._ready and not await self.verify_connection():
            raise ChannelDeliveryException("Cannot establish SMTP connection. Email not sent.")

        mime = self.build_mime(message)
        max_retries = self.config.SMTP_MAX_RETRIES

        for attempt in range(1, max_retries + 1):
            try:
                async with self._lock:
                    await asyncio.to_thread(self._send_sync, mime)
                return
            except CONNECTION_ERRORS as e:
                logger.error(f"❌ Email send attempt {attempt} failed (connection): {e}")
                await self._reset()
                reconnected = await self.verify_connection()
                if not reconnected and attempt == max_retries:
                    raise ChannelDeliveryException("Failed to reconnect to SMTP after all attempts") from e
            except (smtplib.SMTPException, OSError) as e:
                logger.error(f"❌ Email send attempt {attempt} failed: {e}")
                if attempt == max_retries:
                    raise ChannelDeliveryException(f"Failed to send email after {max_retries} attempts") from e

            if attempt < max_retries:
                await self._sleep(2 ** attempt)

        raise ChannelDeliveryException(f"Failed to send email after {max_retries} attempts")

    async def send(self, message: EmailMessage) -> bool:
        if not self.config.smtp_configured:
            logger.info(f"SMTP credentials not configured; skipping email to {message.to}")
            return False

        try:
            await self._send_with_retry(message)
            logger.info(f"✅ Email sent to {message.to}: {message.subject}")
            return True
        except ChannelDeliveryException as e:
            logger.error(f"❌ Email to {message.to} not delivered: {e.detail}")
            return False
        except Exception as e:
            logger.error(f"❌ Unexpected error sending email to {message.to}: {e}", exc_info=True)
            return False

    async def close(self) -> None:
        await self._reset()
