# app/models/reservation.py
"""
Reservations table — one row per table request from the public booking form.
Rows arrive as 'pending'; only triage_service moves them to 'confirmed' or 'rejected'.
"""

from sqlalchemy import CheckConstraint, Column, Date, DateTime, Integer, String, Text, Time
from app.database import Base


class Reservation(Base):
    __tablename__ = "reservations"
    __table_args__ = (
        CheckConstraint("party_size > 0", name="ck_reservations_party_size"),
        CheckConstraint("status IN ('pending', 'confirmed', 'rejected')", name="ck_reservations_status"),
        # A rejection always carries its reason, and only a rejection does
        CheckConstraint(
            "(status = 'rejected' AND rejection_reason IS NOT NULL AND rejection_reason <> '') "
            "OR (status <> 'rejected' AND rejection_reason IS NULL)",
            name="ck_reservations_rejection_reason",
        ),
    )

    id = Column(String(64), primary_key=True)
    first_name = Column(String(100))
    last_name = Column(String(100))
    email = Column(String(255), nullable=False)
    phone = Column(String(50))
    date = Column(Date, nullable=False)
    time = Column(Time, nullable=False)
    party_size = Column(Integer, nullable=False)
    notes = Column(Text)
    area = Column(String(50), nullable=False, default="Innenbereich")
    status = Column(String(20), nullable=False, default="pending", index=True)
    rejection_reason = Column(Text)
    created_at = Column(DateTime, nullable=False, index=True)
    updated_at = Column(DateTime)
    updated_by = Column(String(255))

    def __repr__(self):
        return f"<Reservation {self.id} {self.date} {self.time} status={self.status}>"
