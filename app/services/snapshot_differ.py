# app/services/snapshot_differ.py
"""
Splits a reservation feed snapshot into pending / completed and detects new arrivals.

The feed delivers complete snapshots, not diffs, and may redeliver the same one.
Arrival detection is count-based: a new reservation is reported only when the
pending count grows relative to the count the caller saw last time.

Known limitations:
  - One reservation triaged elsewhere + one new arrival in the same delivery
    leaves the count unchanged, so no arrival is reported.
  - The newest pending reservation is the first one in delivery order. The feed
    delivers by created_at descending; the differ never re-sorts.
"""

from dataclasses import dataclass, field
from typing import Optional, Sequence

from app.schemas.reservation import Reservation, ReservationStatus


@dataclass(frozen=True)
class SnapshotDiff:
    pending: list[Reservation] = field(default_factory=list)
    completed: list[Reservation] = field(default_factory=list)
    newest_pending: Optional[Reservation] = None

    @property
    def pending_count(self) -> int:
        """Pass this back as previous_pending_count on the next delivery."""
        return len(self.pending)

    @property
    def has_arrival(self) -> bool:
        return self.newest_pending is not None


def partition(snapshot: Sequence[Reservation]) -> tuple[list[Reservation], list[Reservation]]:
    pending, completed = [], []
    for reservation in snapshot:
        if reservation.status == ReservationStatus.PENDING:
            pending.append(reservation)
        else:
            completed.append(reservation)
    return pending, completed


def diff_snapshot(previous_pending_count: int, snapshot: Sequence[Reservation]) -> SnapshotDiff:
    """Pure: same inputs always give the same SnapshotDiff."""
    pending, completed = partition(snapshot)
    newest = pending[0] if pending and len(pending) > previous_pending_count else None
    return SnapshotDiff(pending=pending, completed=completed, newest_pending=newest)
