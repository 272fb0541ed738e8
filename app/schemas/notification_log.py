# app/schemas/notification_log.py
from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class NotificationLogOut(BaseModel):
    id: int
    reservation_id: str
    template: str
    recipient: str
    success: bool
    message_id: Optional[str]
    error: Optional[str]
    sent_at: datetime

    class Config:
        from_attributes = True
