# app/schemas/console.py
from pydantic import BaseModel
from datetime import datetime
from typing import Optional

from app.schemas.reservation import Reservation


class AlertOut(BaseModel):
    state: str                                 # idle | showing
    reservation: Optional[Reservation] = None
    shown_at: Optional[datetime] = None
    remaining_seconds: float = 0.0
    cue_sequence: int = 0                      # bumps on every chime; clients play on change


class FeedStatusOut(BaseModel):
    connected: bool
    last_delivery: Optional[datetime] = None
    subscriber_count: int = 0
    last_error: Optional[str] = None


class ConsoleSessionOut(BaseModel):
    session_id: str
    operator: str
    pending: list[Reservation] = []
    completed: list[Reservation] = []
    last_update: Optional[datetime] = None
    alert: AlertOut
    feed: FeedStatusOut
