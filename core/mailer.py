"""
core/mailer.py -- Outbound SMTP relay for contact-form messages.

One provider: SMTP with STARTTLS and login (Gmail app passwords work). The
relay is configured from Settings (SMTP_HOST, SMTP_PORT, MAILER_FROM,
MAILER_PASSWORD, MAILER_TO) and is optional: without credentials,
Mailer.enabled is False and the contact route stores the message only.

Security: every user-supplied value is HTML-escaped before it is placed in
the HTML body. The visitor controls name, email, subject, and message; the
admin's mail client renders the result.

smtplib is blocking. Async callers run send_contact() via run_in_threadpool.
"""

import html
import logging
import smtplib
from dataclasses import dataclass
from email.mime.application import MIMEApplication
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from core.config import Settings

logger = logging.getLogger("portfolio.mailer")


class MailDeliveryError(Exception):
    """The SMTP server refused the message or could not be reached."""


@dataclass
class Attachment:
    filename: str
    content: bytes


def build_contact_email(
    *,
    sender: str,
    recipient: str,
    name: str,
    email: str,
    subject: str,
    message: str,
    attachment: Optional[Attachment] = None,
) -> MIMEMultipart:
    """Assemble the notification email for one contact-form submission."""
    body = (
        "<h2>New contact message</h2>"
        f"<p><strong>Name:</strong> {html.escape(name)}</p>"
        f"<p><strong>Email:</strong> {html.escape(email)}</p>"
        f"<p><strong>Subject:</strong> {html.escape(subject)}</p>"
        "<p><strong>Message:</strong></p>"
        f"<p>{html.escape(message).replace(chr(10), '<br>')}</p>"
    )
    msg = MIMEMultipart("mixed")
    msg["From"] = sender
    msg["To"] = recipient
    msg["Reply-To"] = email
    # Header injection: email.header refuses embedded newlines, strip them first.
    msg["Subject"] = f"New contact message: {' '.join(subject.splitlines())}"
    msg.attach(MIMEText(body, "html", "utf-8"))
    if attachment is not None:
        part = MIMEApplication(attachment.content)
        part.add_header("Content-Disposition", "attachment", filename=attachment.filename)
        msg.attach(part)
    return msg


class Mailer:
    """Send contact notifications through the configured SMTP server."""

    def __init__(self, settings: Settings) -> None:
        self.host = settings.smtp_host
        self.port = settings.smtp_port
        self.sender = settings.mailer_from
        self.recipient = settings.mailer_to
        self._password = settings.mailer_password
        self.enabled = settings.mailer_configured
        if not self.enabled:
            logger.warning("MAILER_FROM / MAILER_PASSWORD not configured - contact relay disabled")

    def send_contact(
        self,
        *,
        name: str,
        email: str,
        subject: str,
        message: str,
        attachment: Optional[Attachment] = None,
    ) -> None:
        """Relay one contact message. Raises MailDeliveryError on any SMTP failure."""
        msg = build_contact_email(
            sender=self.sender,
            recipient=self.recipient,
            name=name,
            email=email,
            subject=subject,
            message=message,
            attachment=attachment,
        )
        try:
            with smtplib.SMTP(self.host, self.port, timeout=30) as server:
                server.starttls()
                server.login(self.sender, self._password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as exc:
            logger.exception("SMTP relay to %s:%d failed", self.host, self.port)
            raise MailDeliveryError(str(exc)) from exc
        logger.info("Contact message relayed to %s", self.recipient)
