# app/services/triage_service.py
"""
Triage: move a pending reservation to 'confirmed' or 'rejected', then email the guest.

Order of operations:
  1. Validate (target status, rejection reason, operator token) — no side effects on failure.
  2. Conditional store update (only matches 'pending') — on failure nothing is emailed.
  3. Exactly one guest email. A failed send is reported as a warning; the status stays committed.

A repeated or concurrent transition on the same reservation fails at step 2 with
AlreadyTriagedError, so no guest ever gets two emails for one decision.
"""

import asyncio
from dataclasses import dataclass
from typing import Optional

from app.exceptions import (
    InvalidTransitionError,
    MissingReasonError,
    NotificationError,
    NotificationWarning,
)
from app.schemas.reservation import ReservationStatus
from app.services.auth import OperatorAuthenticator
from app.services.notification_dispatcher import NotificationDispatcher
from app.services.reservation_store import ReservationStore
from app.utils.logger import get_logger

logger = get_logger(__name__)

TRIAGE_TARGETS = (ReservationStatus.CONFIRMED, ReservationStatus.REJECTED)


@dataclass
class TransitionResult:
    reservation_id: str
    status: ReservationStatus
    notified: bool
    warning: Optional[str] = None


class TriageService:
    def __init__(self, store: ReservationStore, dispatcher: NotificationDispatcher,
                 authenticator: OperatorAuthenticator):
        self.store = store
        self.dispatcher = dispatcher
        self.authenticator = authenticator

    async def transition(self, reservation_id: str, target_status, reason: Optional[str] = None,
                         actor_token: Optional[str] = None) -> TransitionResult:
        target = self._validate(reservation_id, target_status, reason)
        reason = reason.strip() if target == ReservationStatus.REJECTED else None
        operator = self.authenticator.verify(actor_token)

        committed = await asyncio.to_thread(
            self.store.mark_triaged, reservation_id, target, reason, operator.email
        )
        logger.info(f"[TRIAGE] {reservation_id} {target.value} by {operator.email}")

        try:
            await self.dispatcher.dispatch(committed, target, reason)
        except NotificationError as e:
            warning = NotificationWarning(
                f"Reservierung ist {self._label(target)}, aber die E-Mail an {committed.email} "
                f"konnte nicht gesendet werden: {e}"
            )
            logger.warning(f"[TRIAGE] {reservation_id}: {warning}")
            return TransitionResult(reservation_id, target, notified=False, warning=str(warning))

        return TransitionResult(reservation_id, target, notified=True)

    @staticmethod
    def _validate(reservation_id: str, target_status, reason: Optional[str]) -> ReservationStatus:
        try:
            target = ReservationStatus(target_status)
        except ValueError:
            raise InvalidTransitionError(f"Ungültiger Status: {target_status!r}", reservation_id)
        if target not in TRIAGE_TARGETS:
            raise InvalidTransitionError(
                'Ungültiger Status. Erlaubt sind "confirmed" oder "rejected"', reservation_id
            )
        if target == ReservationStatus.REJECTED and not (reason or "").strip():
            raise MissingReasonError("Bitte geben Sie einen Grund an", reservation_id)
        return target

    @staticmethod
    def _label(status: ReservationStatus) -> str:
        return "bestätigt" if status == ReservationStatus.CONFIRMED else "abgelehnt"
