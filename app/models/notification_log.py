# app/models/notification_log.py
"""
Notification log — one row per guest email attempt (acceptance or decline).
Lets staff see which guests were never emailed after a NotificationWarning.
"""

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text
from app.database import Base


class NotificationLog(Base):
    __tablename__ = "notification_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    reservation_id = Column(String(64), nullable=False, index=True)
    template = Column(String(20), nullable=False)     # acceptance | decline
    recipient = Column(String(255), nullable=False)
    success = Column(Boolean, nullable=False, default=False)
    message_id = Column(String(255))
    error = Column(Text)
    sent_at = Column(DateTime, nullable=False, index=True)

    def __repr__(self):
        return f"<NotificationLog {self.id} {self.template} -> {self.recipient} ok={self.success}>"
