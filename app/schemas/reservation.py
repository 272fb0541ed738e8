# app/schemas/reservation.py
from enum import Enum
from pydantic import BaseModel, Field, model_validator
import datetime as dt
from typing import Optional


class ReservationStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"


class Reservation(BaseModel):
    """
    Immutable view of one reservation row, as delivered in a feed snapshot.
    A rejected reservation always carries a non-empty reason; any other status never does.
    """
    id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: str
    phone: Optional[str] = None
    date: dt.date
    time: dt.time
    party_size: int = Field(ge=1)
    notes: Optional[str] = None
    area: str = "Innenbereich"
    status: ReservationStatus
    rejection_reason: Optional[str] = None
    created_at: dt.datetime

    class Config:
        from_attributes = True
        frozen = True

    @model_validator(mode="after")
    def _check_rejection_reason(self):
        if self.status == ReservationStatus.REJECTED:
            if not self.rejection_reason or not self.rejection_reason.strip():
                raise ValueError("rejected reservation requires a rejection_reason")
        elif self.rejection_reason is not None:
            raise ValueError(f"{self.status.value} reservation cannot carry a rejection_reason")
        return self

    @property
    def full_name(self) -> str:
        return " ".join(p for p in (self.first_name, self.last_name) if p) or "Gast"


class TransitionRequest(BaseModel):
    status: ReservationStatus
    reason: Optional[str] = None


class TransitionOut(BaseModel):
    success: bool
    notified: bool = False
    reservation_id: str
    status: Optional[ReservationStatus] = None
    warning: Optional[str] = None
    error: Optional[str] = None       # error kind, e.g. "missing_reason"
    detail: Optional[str] = None      # operator-facing message
