# app/utils/logger.py
"""
Logging for the triage backend: console plus a rotating file under LOG_DIR.

Triage and email log lines name guests, so every record passes through
GuestContactFilter, which masks email addresses and phone numbers before any
handler writes it (disable with LOG_REDACT_CONTACTS=false when debugging locally).
Uvicorn logs through the same handlers.
"""

import logging
import os
import re
from logging.handlers import RotatingFileHandler

from app.config import settings

_PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.dirname(__file__)))
LOG_DIR = settings.LOG_DIR if os.path.isabs(settings.LOG_DIR) else os.path.join(_PROJECT_ROOT, settings.LOG_DIR)

_QUIET_LOGGERS = ("sqlalchemy.engine", "httpx", "httpcore", "multipart")

_EMAIL_RE = re.compile(r"\b([A-Za-z0-9._%+-])[A-Za-z0-9._%+-]*@([A-Za-z0-9.-]+\.[A-Za-z]{2,})\b")
_PHONE_RE = re.compile(r"(?<![\w.])\+?\d[\d /-]{6,}\d(\d{2})\b")


def redact_contacts(text: str) -> str:
    """'anna@example.com' → 'a***@example.com', '+49 611 123456' → '***56'."""
    text = _EMAIL_RE.sub(r"\1***@\2", text)
    return _PHONE_RE.sub(r"***\1", text)


class GuestContactFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = redact_contacts(message)
        if redacted != message:
            record.msg = redacted
            record.args = ()
        return True


_configured = False


def _configure_root_logger():
    global _configured
    if _configured:
        return
    _configured = True

    level = settings.LOG_LEVEL.upper()
    fmt = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handlers = [logging.StreamHandler()]

    os.makedirs(LOG_DIR, exist_ok=True)
    # 10 × 5MB
    handlers.append(RotatingFileHandler(
        filename=os.path.join(LOG_DIR, settings.LOG_FILE),
        maxBytes=5 * 1024 * 1024,
        backupCount=10,
        encoding="utf-8",
    ))

    root = logging.getLogger()
    root.setLevel(level)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(fmt)
        if settings.LOG_REDACT_CONTACTS:
            handler.addFilter(GuestContactFilter())
        root.addHandler(handler)

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uv = logging.getLogger(name)
        uv.handlers.clear()
        uv.propagate = True

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a named logger. Call this at the top of every module."""
    _configure_root_logger()
    return logging.getLogger(name)
