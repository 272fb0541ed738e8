# app/dependencies.py
"""Process-wide singletons and FastAPI dependency providers."""

from functools import lru_cache
from typing import Optional

from fastapi import Depends, HTTPException
from sqlalchemy.orm import Session

from app.database import get_db
from app.exceptions import UnauthorizedError
from app.services.auth import Operator, OperatorAuthenticator, StaticTokenAuthenticator, bearer_token
from app.services.console_session import ConsoleRegistry
from app.services.notification_dispatcher import (
    EmailBackend,
    NotificationDispatcher,
    build_email_backend,
)
from app.services.reservation_feed import ReservationFeed
from app.services.reservation_store import ReservationStore
from app.services.triage_service import TriageService


@lru_cache
def get_feed() -> ReservationFeed:
    return ReservationFeed()


@lru_cache
def get_console_registry() -> ConsoleRegistry:
    return ConsoleRegistry(get_feed())


@lru_cache
def get_authenticator() -> OperatorAuthenticator:
    return StaticTokenAuthenticator()


@lru_cache
def get_email_backend() -> EmailBackend:
    return build_email_backend()


def get_triage_service(
    db: Session = Depends(get_db),
    authenticator: OperatorAuthenticator = Depends(get_authenticator),
    backend: EmailBackend = Depends(get_email_backend),
) -> TriageService:
    return TriageService(
        store=ReservationStore(db),
        dispatcher=NotificationDispatcher(backend, db=db),
        authenticator=authenticator,
    )


def require_operator(
    token: Optional[str] = Depends(bearer_token),
    authenticator: OperatorAuthenticator = Depends(get_authenticator),
) -> Operator:
    """Gate for every route that returns guest data."""
    try:
        return authenticator.verify(token)
    except UnauthorizedError as e:
        raise HTTPException(status_code=401, detail=e.message)
