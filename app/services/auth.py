# app/services/auth.py
"""
Operator authentication — an opaque provider to the rest of the backend.
Staff log in elsewhere; this service only checks that a bearer token maps to
an operator and that the operator is on the admin allow-list.
"""

import hmac
from dataclasses import dataclass
from typing import Optional, Protocol

from fastapi import Header

from app.config import settings
from app.exceptions import UnauthorizedError
from app.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Operator:
    email: str


class OperatorAuthenticator(Protocol):
    def verify(self, token: Optional[str]) -> Operator: ...


class StaticTokenAuthenticator:
    """Tokens and allow-list come from settings (OPERATOR_TOKENS, ADMIN_EMAILS)."""

    def __init__(self, tokens: Optional[dict[str, str]] = None,
                 admin_emails: Optional[list[str]] = None):
        self._tokens = dict(settings.OPERATOR_TOKENS if tokens is None else tokens)
        emails = settings.ADMIN_EMAILS if admin_emails is None else admin_emails
        self._admin_emails = {e.lower() for e in emails}

    def verify(self, token: Optional[str]) -> Operator:
        if not token:
            raise UnauthorizedError("Benutzer nicht authentifiziert")

        email = None
        for known, owner in self._tokens.items():
            if hmac.compare_digest(known.encode(), token.encode()):
                email = owner
                break
        if email is None:
            logger.warning("[AUTH] Unknown or expired operator token")
            raise UnauthorizedError("Ungültiges oder abgelaufenes Token")

        if self._admin_emails and email.lower() not in self._admin_emails:
            logger.warning(f"[AUTH] Unauthorized admin action attempt by {email}")
            raise UnauthorizedError("Keine Berechtigung")

        return Operator(email=email)


def bearer_token(authorization: Optional[str] = Header(default=None)) -> Optional[str]:
    """FastAPI dependency — extracts the token from 'Authorization: Bearer <token>'."""
    if not authorization or not authorization.startswith("Bearer "):
        return None
    return authorization[len("Bearer "):].strip() or None

