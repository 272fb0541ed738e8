# app/exceptions.py
"""
Triage error taxonomy.
Every TriageError carries a machine-readable `kind` and an operator-facing message.
Validation errors are raised before any side effect; StoreError before any email.
"""

from typing import Optional


class TriageError(RuntimeError):
    kind = "triage_error"

    def __init__(self, message: str, reservation_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.reservation_id = reservation_id


class InvalidTransitionError(TriageError):
    """Target status is not confirmed/rejected."""
    kind = "invalid_transition"


class MissingReasonError(TriageError):
    """Rejection requested without a reason."""
    kind = "missing_reason"


class UnauthorizedError(TriageError):
    """Missing, unknown or expired operator credential."""
    kind = "unauthorized"


class ReservationNotFoundError(TriageError):
    kind = "not_found"


class AlreadyTriagedError(TriageError):
    """Reservation left 'pending' before this transition could commit."""
    kind = "already_triaged"

    def __init__(self, message: str, reservation_id: Optional[str] = None,
                 current_status: Optional[str] = None):
        super().__init__(message, reservation_id)
        self.current_status = current_status


class StoreError(TriageError):
    """Persistent store rejected or failed the write. Safe to retry."""
    kind = "store_error"


class NotificationError(RuntimeError):
    """Guest email could not be sent. Never unwinds a committed transition."""


class NotificationWarning(UserWarning):
    """Status committed but the guest was not notified."""
