# app/routers/reservations.py
"""
Reservation read endpoints + the triage action. Every route needs an operator token.
GET  /reservations                   — newest first, optional status filter.
GET  /reservations/{id}              — one reservation.
POST /reservations/{id}/transition   — confirm or reject (operator token required).
"""

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from typing import Optional

from app.database import get_db
from app.dependencies import get_triage_service, require_operator
from app.exceptions import (
    AlreadyTriagedError,
    InvalidTransitionError,
    MissingReasonError,
    ReservationNotFoundError,
    StoreError,
    TriageError,
    UnauthorizedError,
)
from app.schemas.reservation import Reservation, ReservationStatus, TransitionOut, TransitionRequest
from app.services.auth import Operator, bearer_token
from app.services.reservation_store import ReservationStore
from app.services.triage_service import TriageService
from app.utils.logger import get_logger

router = APIRouter()
logger = get_logger(__name__)

ERROR_STATUS_CODES = {
    InvalidTransitionError: 400,
    MissingReasonError: 400,
    UnauthorizedError: 401,
    ReservationNotFoundError: 404,
    AlreadyTriagedError: 409,
    StoreError: 503,
}


@router.get("/reservations", response_model=list[Reservation], summary="List reservations")
def list_reservations(status: Optional[ReservationStatus] = None, limit: int = 100,
                      operator: Operator = Depends(require_operator),
                      db: Session = Depends(get_db)):
    """Newest first — the same order the console feed delivers."""
    return ReservationStore(db).list_snapshot(status=status, limit=limit)


@router.get("/reservations/{reservation_id}", response_model=Reservation, summary="One reservation")
def get_reservation(reservation_id: str, operator: Operator = Depends(require_operator),
                    db: Session = Depends(get_db)):
    reservation = ReservationStore(db).get(reservation_id)
    if reservation is None:
        raise HTTPException(status_code=404, detail="Reservierung nicht gefunden")
    return reservation


@router.post("/reservations/{reservation_id}/transition", response_model=TransitionOut,
             summary="Confirm or reject a pending reservation")
async def transition_reservation(
    reservation_id: str,
    body: TransitionRequest,
    token: Optional[str] = Depends(bearer_token),
    triage: TriageService = Depends(get_triage_service),
):
    """
    200 — committed (check `notified`/`warning`: the guest email may have failed).
    4xx/503 — nothing was changed and no email was sent.
    """
    try:
        result = await triage.transition(reservation_id, body.status, body.reason, token)
    except TriageError as e:
        status_code = ERROR_STATUS_CODES.get(type(e), 400)
        logger.info(f"[TRIAGE] {reservation_id} → {body.status.value} refused: {e.kind} ({e.message})")
        out = TransitionOut(success=False, reservation_id=reservation_id,
                            error=e.kind, detail=e.message)
        return JSONResponse(status_code=status_code, content=out.model_dump(mode="json"))

    return TransitionOut(
        success=True,
        notified=result.notified,
        reservation_id=result.reservation_id,
        status=result.status,
        warning=result.warning,
    )
