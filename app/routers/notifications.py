# app/routers/notifications.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.database import get_db
from app.dependencies import require_operator
from app.services.auth import Operator
from app.models.notification_log import NotificationLog
from app.schemas.notification_log import NotificationLogOut
from typing import Optional

router = APIRouter()


@router.get("/notifications", response_model=list[NotificationLogOut], summary="Guest email history")
def get_notifications(
    reservation_id: Optional[str] = None,
    success: Optional[bool] = None,
    limit: int = 50,
    operator: Operator = Depends(require_operator),
    db: Session = Depends(get_db)
):
    """Filter by reservation_id, or success=false to find guests who were never emailed."""
    q = db.query(NotificationLog)
    if reservation_id:
        q = q.filter(NotificationLog.reservation_id == reservation_id)
    if success is not None:
        q = q.filter(NotificationLog.success == success)
    return q.order_by(NotificationLog.sent_at.desc()).limit(limit).all()
