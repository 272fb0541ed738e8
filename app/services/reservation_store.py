# app/services/reservation_store.py
"""
SQLAlchemy adapter for the reservations table.
The database is the authority on status: triage writes go through a conditional
UPDATE that only matches rows still 'pending', so two operators acting on the
same reservation can never both commit.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import ValidationError
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.exceptions import AlreadyTriagedError, ReservationNotFoundError, StoreError
from app.models.reservation import Reservation as ReservationRow
from app.schemas.reservation import Reservation, ReservationStatus
from app.utils.logger import get_logger

logger = get_logger(__name__)


class ReservationStore:
    def __init__(self, db: Session):
        self.db = db

    def list_snapshot(self, status: Optional[ReservationStatus] = None,
                      limit: Optional[int] = None) -> list[Reservation]:
        """All reservations, newest first — the order the console relies on."""
        try:
            q = self.db.query(ReservationRow)
            if status is not None:
                q = q.filter(ReservationRow.status == status.value)
            q = q.order_by(ReservationRow.created_at.desc())
            if limit:
                q = q.limit(limit)
            return [Reservation.model_validate(row) for row in q.all()]
        except SQLAlchemyError as e:
            raise StoreError(f"Reservierungen konnten nicht geladen werden: {e}") from e

    def get(self, reservation_id: str) -> Optional[Reservation]:
        try:
            row = self.db.get(ReservationRow, reservation_id)
        except SQLAlchemyError as e:
            raise StoreError(f"Reservierung konnte nicht geladen werden: {e}", reservation_id) from e
        return Reservation.model_validate(row) if row else None

    def mark_triaged(self, reservation_id: str, status: ReservationStatus,
                     reason: Optional[str], operator: str) -> Reservation:
        """
        Move a pending reservation to `status`. Returns the committed record.
        The row is read back before COMMIT, so once the change is committed the
        caller always holds the record it needs to email the guest.
        """
        stmt = (
            update(ReservationRow)
            .where(ReservationRow.id == reservation_id,
                   ReservationRow.status == ReservationStatus.PENDING.value)
            .values(
                status=status.value,
                rejection_reason=reason if status == ReservationStatus.REJECTED else None,
                updated_at=datetime.utcnow(),
                updated_by=operator,
            )
            .execution_options(synchronize_session=False)
        )
        committed = None
        try:
            result = self.db.execute(stmt)
            if result.rowcount == 1:
                row = self.db.get(ReservationRow, reservation_id, populate_existing=True)
                committed = Reservation.model_validate(row)
                self.db.commit()
            else:
                self.db.rollback()
        except (SQLAlchemyError, ValidationError) as e:
            self.db.rollback()
            logger.error(f"[STORE] Update failed for {reservation_id}: {e}", exc_info=True)
            raise StoreError("Fehler beim Aktualisieren der Reservierung", reservation_id) from e

        if committed is None:
            current = self.get(reservation_id)
            if current is None:
                raise ReservationNotFoundError("Reservierung nicht gefunden", reservation_id)
            raise AlreadyTriagedError(
                f"Reservierung wurde bereits bearbeitet ({current.status.value})",
                reservation_id, current_status=current.status.value,
            )

        logger.info(f"[STORE] {reservation_id} → {status.value} by {operator}")
        return committed

    def create(self, *, email: str, date, time, party_size: int,
               first_name: Optional[str] = None, last_name: Optional[str] = None,
               phone: Optional[str] = None, notes: Optional[str] = None,
               area: str = "Innenbereich", created_at: Optional[datetime] = None) -> Reservation:
        """Insert a new pending reservation (booking form stand-in for scripts and tests)."""
        row = ReservationRow(
            id=uuid.uuid4().hex,
            first_name=first_name, last_name=last_name,
            email=email, phone=phone,
            date=date, time=time, party_size=party_size,
            notes=notes, area=area,
            status=ReservationStatus.PENDING.value,
            created_at=created_at or datetime.utcnow(),
        )
        try:
            self.db.add(row)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreError(f"Reservierung konnte nicht gespeichert werden: {e}") from e
        self.db.refresh(row)
        return Reservation.model_validate(row)
