# Reservation Triage — Database Models
# Import all models here for SQLAlchemy discovery

from app.models.reservation import Reservation          # noqa
from app.models.notification_log import NotificationLog  # noqa
