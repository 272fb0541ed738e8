# app/services/notification_dispatcher.py
"""
Sends exactly one guest email per triage decision and records the attempt.

Backends (settings.EMAIL_BACKEND):
  log  — development: logs the message, sends nothing.
  smtp — SMTP with STARTTLS + login (e.g. Gmail app password).
A failed send raises NotificationError; the caller decides what that means.
"""

import asyncio
import smtplib
import uuid
from datetime import datetime
from email.message import EmailMessage
from email.utils import make_msgid
from typing import Optional, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import settings
from app.exceptions import NotificationError
from app.models.notification_log import NotificationLog
from app.schemas.reservation import Reservation, ReservationStatus
from app.services.email_templates import EmailContent, render_for_status
from app.utils.logger import get_logger

logger = get_logger(__name__)


class EmailBackend(Protocol):
    async def send(self, content: EmailContent) -> str:
        """Deliver the message and return its message id."""
        ...


class LogEmailBackend:
    def __init__(self):
        self.sent: list[EmailContent] = []

    async def send(self, content: EmailContent) -> str:
        self.sent.append(content)
        message_id = f"<log-{uuid.uuid4().hex}@localhost>"
        logger.info(f"[EMAIL][log] {content.template} → {content.to} | {content.subject}")
        return message_id


class SmtpEmailBackend:
    def __init__(self, host: str = None, port: int = None, user: Optional[str] = None,
                 password: Optional[str] = None, sender: str = None, timeout: float = None):
        self.host = host or settings.SMTP_HOST
        self.port = port or settings.SMTP_PORT
        self.user = user if user is not None else settings.SMTP_USER
        self.password = password if password is not None else settings.SMTP_PASSWORD
        self.sender = sender or settings.EMAIL_FROM
        self.timeout = timeout or settings.SMTP_TIMEOUT_SECONDS

    def _build(self, content: EmailContent) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = f"{settings.RESTAURANT_NAME} <{self.sender}>"
        msg["To"] = content.to
        msg["Subject"] = content.subject
        msg["Message-ID"] = make_msgid(domain=self.sender.split("@")[-1])
        msg.set_content(content.text)
        msg.add_alternative(content.html, subtype="html")
        return msg

    def _send_sync(self, msg: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
            smtp.starttls()
            smtp.login(self.user, self.password)
            smtp.send_message(msg)

    async def send(self, content: EmailContent) -> str:
        if not self.user or not self.password:
            raise NotificationError("SMTP credentials not configured (SMTP_USER or SMTP_PASSWORD missing)")
        msg = self._build(content)
        await asyncio.to_thread(self._send_sync, msg)
        logger.info(f"[EMAIL][smtp] {content.template} → {content.to} ({msg['Message-ID']})")
        return msg["Message-ID"]


def build_email_backend(name: Optional[str] = None) -> EmailBackend:
    name = (name or settings.EMAIL_BACKEND).lower()
    if name == "smtp":
        return SmtpEmailBackend()
    if name == "log":
        return LogEmailBackend()
    raise ValueError(f"Unknown EMAIL_BACKEND: {name}")


class NotificationDispatcher:
    def __init__(self, backend: EmailBackend, db: Optional[Session] = None):
        self.backend = backend
        self.db = db

    async def dispatch(self, reservation: Reservation, status: ReservationStatus,
                       reason: Optional[str] = None) -> str:
        """Render the template for `status`, send it once, record the attempt."""
        content = render_for_status(reservation, status, reason)
        try:
            message_id = await self.backend.send(content)
        except Exception as e:
            logger.error(f"[EMAIL] {content.template} to {content.to} failed: {e}", exc_info=True)
            await asyncio.to_thread(self._record, reservation.id, content, success=False, error=str(e))
            raise NotificationError(str(e)) from e

        await asyncio.to_thread(self._record, reservation.id, content, success=True, message_id=message_id)
        return message_id

    def _record(self, reservation_id: str, content: EmailContent, success: bool,
                message_id: Optional[str] = None, error: Optional[str] = None) -> None:
        if self.db is None:
            return
        try:
            self.db.add(NotificationLog(
                reservation_id=reservation_id, template=content.template,
                recipient=content.to, success=success,
                message_id=message_id, error=error, sent_at=datetime.utcnow(),
            ))
            self.db.commit()
        except SQLAlchemyError as e:
            # The email outcome stands even if the history row is lost
            self.db.rollback()
            logger.error(f"[EMAIL] Could not record notification for {reservation_id}: {e}")

