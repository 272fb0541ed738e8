# tests/test_snapshot_differ.py
"""Unit tests for the snapshot differ (pending/completed split + arrival detection)."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from datetime import date, datetime, time, timedelta
from app.schemas.reservation import Reservation
from app.services.snapshot_differ import diff_snapshot, partition

T0 = datetime(2026, 10, 19, 12, 0, 0)


def make_reservation(rid, status="pending", minutes=0, reason=None):
    return Reservation(
        id=str(rid),
        first_name="Anna",
        email=f"guest{rid}@example.com",
        date=date(2026, 10, 24),
        time=time(19, 0),
        party_size=2,
        status=status,
        rejection_reason=reason,
        created_at=T0 + timedelta(minutes=minutes),
    )


class TestPartition:
    def test_every_record_lands_in_exactly_one_list(self):
        snapshot = [
            make_reservation(1, "pending"),
            make_reservation(2, "confirmed"),
            make_reservation(3, "rejected", reason="Ausgebucht"),
            make_reservation(4, "pending"),
        ]
        pending, completed = partition(snapshot)

        assert [r.id for r in pending] == ["1", "4"]
        assert [r.id for r in completed] == ["2", "3"]
        assert len(pending) + len(completed) == len(snapshot)

    def test_delivery_order_is_preserved(self):
        snapshot = [make_reservation(i, minutes=-i) for i in range(5)]
        diff = diff_snapshot(0, snapshot)
        assert [r.id for r in diff.pending] == ["0", "1", "2", "3", "4"]

    def test_empty_snapshot(self):
        diff = diff_snapshot(3, [])
        assert diff.pending == [] and diff.completed == []
        assert diff.newest_pending is None
        assert diff.pending_count == 0


class TestArrivalDetection:
    def test_growth_reports_first_pending(self):
        a = [make_reservation(1, minutes=1), make_reservation(2)]
        b = [make_reservation(3, minutes=2)] + a

        first = diff_snapshot(0, a)
        second = diff_snapshot(first.pending_count, b)

        assert second.has_arrival
        assert second.newest_pending.id == "3"

    def test_identical_redelivery_does_not_alert(self):
        a = [make_reservation(1, minutes=1), make_reservation(2)]
        first = diff_snapshot(0, a)
        again = diff_snapshot(first.pending_count, a)

        assert again.newest_pending is None
        assert again.pending_count == 2

    def test_shrinking_pending_does_not_alert(self):
        diff = diff_snapshot(3, [make_reservation(1), make_reservation(2, "confirmed")])
        assert diff.newest_pending is None
        assert diff.pending_count == 1

    def test_swap_in_same_delivery_is_not_detected(self):
        # One triaged elsewhere + one new arrival → count unchanged, no alert
        before = [make_reservation(1, minutes=1), make_reservation(2)]
        after = [make_reservation(3, minutes=2), make_reservation(1, minutes=1),
                 make_reservation(2, "confirmed")]
        first = diff_snapshot(0, before)
        second = diff_snapshot(first.pending_count, after)

        assert second.newest_pending is None

    def test_first_delivery_with_pending_alerts(self):
        diff = diff_snapshot(0, [make_reservation(1)])
        assert diff.newest_pending.id == "1"

    def test_newest_is_not_resorted(self):
        # Feed order wins even if created_at disagrees
        snapshot = [make_reservation(1, minutes=0), make_reservation(2, minutes=10)]
        assert diff_snapshot(0, snapshot).newest_pending.id == "1"

    def test_scenario_sequence(self):
        d1 = diff_snapshot(0, [make_reservation(1)])
        assert [r.id for r in d1.pending] == ["1"]
        assert d1.newest_pending.id == "1"

        d2 = diff_snapshot(d1.pending_count, [make_reservation(2, minutes=5), make_reservation(1)])
        assert [r.id for r in d2.pending] == ["2", "1"]
        assert d2.newest_pending.id == "2"

    def test_pure_function(self):
        snapshot = [make_reservation(1), make_reservation(2, "confirmed")]
        assert diff_snapshot(0, snapshot) == diff_snapshot(0, snapshot)
