"""
api/routes/contact.py -- Public contact form relay.

Routes:
  POST /api/contact  -- multipart form: name, email, subject, message,
                        optional attachment (rate limited, 5/minute per IP)

The message is stored first, then relayed by SMTP. When no mailer is
configured the message is kept and the request still succeeds; a relay that
is configured but fails answers 500 mail_failed.
"""


import logging
import re
from typing import Optional

from fastapi import APIRouter, File, Form, HTTPException, Request, UploadFile
from starlette.concurrency import run_in_threadpool

from api.limiter import limiter
from api.models import ContactResponse
from core.config import Settings
from core.mailer import Attachment, MailDeliveryError, Mailer
from portfolio.models import ContactMessage
from portfolio.store import PortfolioStore

logger = logging.getLogger("portfolio.api")

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

router = APIRouter()


def _bad_request(code: str, message: str) -> HTTPException:
    return HTTPException(status_code=400, detail={"code": code, "message": message})


@router.post("/contact", response_model=ContactResponse)
@limiter.limit("5/minute")
async def submit_contact(
    request: Request,
    name: str = Form(...),
    email: str = Form(...),
    subject: str = Form(...),
    message: str = Form(...),
    attachment: Optional[UploadFile] = File(default=None),
) -> ContactResponse:
    """Store a contact message and relay it to the site owner."""
    name, email, subject, message = name.strip(), email.strip(), subject.strip(), message.strip()
    if not (name and email and subject and message):
        raise _bad_request("bad_request", "All fields are required.")
    if not _EMAIL_RE.match(email):
        raise _bad_request("invalid_email", "Invalid email address.")

    settings: Settings = request.app.state.settings
    mail_attachment = None
    if attachment is not None and attachment.filename:
        raw = await attachment.read(settings.max_attachment_bytes + 1)
        if len(raw) > settings.max_attachment_bytes:
            raise _bad_request(
                "attachment_too_large",
                f"Attachment must be {settings.max_attachment_bytes // (1024 * 1024)} MB or smaller.",
            )
        mail_attachment = Attachment(filename=attachment.filename, content=raw)

    store: PortfolioStore = request.app.state.portfolio
    msg_id = await run_in_threadpool(
        store.save_contact_message,
        ContactMessage(
            name=name,
            email=email,
            subject=subject,
            message=message,
            attachment_name=mail_attachment.filename if mail_attachment else None,
        ),
    )

    mailer: Mailer = request.app.state.mailer
    if not mailer.enabled:
        logger.warning("Contact message %d stored but not relayed: mailer not configured", msg_id)
        return ContactResponse()

    try:
        await run_in_threadpool(
            mailer.send_contact,
            name=name,
            email=email,
            subject=subject,
            message=message,
            attachment=mail_attachment,
        )
    except MailDeliveryError:
        raise HTTPException(
            status_code=500,
            detail={"code": "mail_failed", "message": "The message could not be sent. Please try again later."},
        )
    logger.info("Contact message %d relayed", msg_id)
    return ContactResponse()
