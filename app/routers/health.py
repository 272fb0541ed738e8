# app/routers/health.py
"""
System health check endpoint.
Returns status of backend + DB + reservation feed + open consoles.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy import text
from app.database import get_db
from app.config import settings
from app.dependencies import get_console_registry
from app.services.console_session import ConsoleRegistry
from datetime import datetime

router = APIRouter()


@router.get("/health", summary="System health check")
def health_check(db: Session = Depends(get_db),
                 registry: ConsoleRegistry = Depends(get_console_registry)):
    """
    Returns:
    - Backend status
    - Database connectivity
    - Reservation feed state and number of open consoles
    """
    feed = registry.feed.status()
    result = {
        "status": "ok",
        "timestamp": datetime.utcnow().isoformat(),
        "backend": "ok",
        "database": "unknown",
        "feed": feed.model_dump(mode="json"),
        "consoles": len(registry),
        "email_backend": settings.EMAIL_BACKEND,
    }

    try:
        db.execute(text("SELECT 1"))
        result["database"] = "ok"
    except Exception as e:
        result["database"] = f"error: {str(e)}"
        result["status"] = "degraded"

    if not feed.connected:
        result["status"] = "degraded"

    return result
