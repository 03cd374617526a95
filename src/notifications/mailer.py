"""
SMTP mail transport.

When ``MAIL_SERVER`` is not configured the transport runs in log-only mode:
messages are built and logged but never leave the process (dev/test).
"""

from typing import Optional, Protocol
from email import encoders
from email.mime.base import MIMEBase
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formatdate, make_msgid
import logging
import smtplib

from src.config import Settings, settings as default_settings
from src.notifications.schemas import OutgoingEmail

logger = logging.getLogger(__name__)


class MailTransport(Protocol):
    def send(self, message: OutgoingEmail) -> None: ...


def build_mime_message(message: OutgoingEmail, default_sender: str) -> MIMEMultipart:
    """HTML body plus attachments as a multipart/mixed message"""

    mime = MIMEMultipart("mixed")
    mime["Subject"] = message.subject
    mime["From"] = message.sender or default_sender
    mime["To"] = message.to
    mime["Date"] = formatdate(localtime=True)
    mime["Message-ID"] = make_msgid(domain="busify.com")

    mime.attach(MIMEText(message.html_body, "html", "utf-8"))

    for attachment in message.attachments:
        maintype, _, subtype = attachment.mime_type.partition("/")
        part = MIMEBase(maintype or "application", subtype or "octet-stream")
        part.set_payload(attachment.content)
        encoders.encode_base64(part)
        part.add_header("Content-Disposition", "attachment", filename=attachment.filename)
        mime.attach(part)

    return mime


class SmtpTransport:
    """Sends messages through the configured SMTP relay"""

    def __init__(self, config: Optional[Settings] = None):
        self.config = config or default_settings

    @property
    def is_configured(self) -> bool:
        return self.config.mail_configured

    def send(self, message: OutgoingEmail) -> None:
        mime = build_mime_message(message, self.config.MAIL_FROM)

        if not self.is_configured:
            logger.info(
                "Email (log-only mode): to=%s subject='%s' attachments=%d",
                message.to, message.subject, len(message.attachments),
                extra={"to_email": message.to}
            )
            return

        with smtplib.SMTP(self.config.MAIL_SERVER, self.config.MAIL_PORT, timeout=self.config.MAIL_TIMEOUT) as smtp:
            if self.config.MAIL_USE_TLS:
                smtp.starttls()
            if self.config.MAIL_USERNAME and self.config.MAIL_PASSWORD:
                smtp.login(self.config.MAIL_USERNAME, self.config.MAIL_PASSWORD)
            smtp.send_message(mime)

        logger.info(
            "Email sent: to=%s subject='%s'", message.to, message.subject,
            extra={"to_email": message.to}
        )
