# tests/test_reservation_store.py
"""Store tests against in-memory SQLite: ordering and the guarded triage update."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from unittest.mock import MagicMock, patch
from datetime import date, datetime, time, timedelta
from sqlalchemy.exc import OperationalError
from app.exceptions import AlreadyTriagedError, ReservationNotFoundError, StoreError
from app.schemas.reservation import ReservationStatus
from app.services.reservation_store import ReservationStore

T0 = datetime(2026, 10, 19, 12, 0, 0)


def add(store, minutes=0, first_name="Jonas"):
    return store.create(
        first_name=first_name, last_name="Becker", email="jonas@example.com",
        date=date(2026, 10, 25), time=time(20, 0), party_size=2,
        created_at=T0 + timedelta(minutes=minutes),
    )


class TestReservationStore:
    def test_create_is_pending(self, db):
        r = add(ReservationStore(db))
        assert r.status == ReservationStatus.PENDING
        assert r.rejection_reason is None
        assert r.area == "Innenbereich"

    def test_snapshot_newest_first(self, db):
        store = ReservationStore(db)
        old = add(store, minutes=0)
        new = add(store, minutes=5)
        mid = add(store, minutes=2)

        assert [r.id for r in store.list_snapshot()] == [new.id, mid.id, old.id]

    def test_snapshot_status_filter(self, db):
        store = ReservationStore(db)
        a = add(store)
        b = add(store, minutes=1)
        store.mark_triaged(a.id, ReservationStatus.CONFIRMED, None, "admin@seilerstubb.de")

        pending = store.list_snapshot(status=ReservationStatus.PENDING)
        assert [r.id for r in pending] == [b.id]

    def test_confirm(self, db):
        store = ReservationStore(db)
        r = add(store)

        committed = store.mark_triaged(r.id, ReservationStatus.CONFIRMED, None, "admin@seilerstubb.de")

        assert committed.status == ReservationStatus.CONFIRMED
        assert committed.rejection_reason is None
        assert committed.created_at == r.created_at

    def test_reject_stores_reason(self, db):
        store = ReservationStore(db)
        r = add(store)

        committed = store.mark_triaged(r.id, ReservationStatus.REJECTED, "Fully booked", "admin@seilerstubb.de")

        assert committed.status == ReservationStatus.REJECTED
        assert committed.rejection_reason == "Fully booked"

    def test_second_transition_is_refused(self, db):
        store = ReservationStore(db)
        r = add(store)
        store.mark_triaged(r.id, ReservationStatus.CONFIRMED, None, "a@seilerstubb.de")

        with pytest.raises(AlreadyTriagedError) as exc:
            store.mark_triaged(r.id, ReservationStatus.REJECTED, "Fully booked", "b@seilerstubb.de")

        assert exc.value.current_status == "confirmed"
        assert store.get(r.id).status == ReservationStatus.CONFIRMED

    def test_concurrent_operators_only_one_wins(self, session_factory):
        first, second = session_factory(), session_factory()
        try:
            r = add(ReservationStore(first))
            # Both consoles saw it pending
            assert ReservationStore(second).get(r.id).status == ReservationStatus.PENDING

            ReservationStore(first).mark_triaged(r.id, ReservationStatus.CONFIRMED, None, "a@seilerstubb.de")
            with pytest.raises(AlreadyTriagedError):
                ReservationStore(second).mark_triaged(r.id, ReservationStatus.REJECTED, "Zu spät", "b@seilerstubb.de")
        finally:
            first.close()
            second.close()

    def test_unknown_id(self, db):
        with pytest.raises(ReservationNotFoundError):
            ReservationStore(db).mark_triaged("nope", ReservationStatus.CONFIRMED, None, "a@seilerstubb.de")
        assert ReservationStore(db).get("nope") is None

    def test_database_error_becomes_store_error(self):
        db = MagicMock()
        db.execute.side_effect = OperationalError("UPDATE", {}, Exception("connection lost"))

        with pytest.raises(StoreError):
            ReservationStore(db).mark_triaged("1", ReservationStatus.CONFIRMED, None, "a@seilerstubb.de")

        db.rollback.assert_called_once()

    def test_failed_read_back_rolls_the_update_back(self, db):
        store = ReservationStore(db)
        r = add(store)

        with patch.object(db, "get", side_effect=OperationalError("SELECT", {}, Exception("connection lost"))):
            with pytest.raises(StoreError):
                store.mark_triaged(r.id, ReservationStatus.CONFIRMED, None, "a@seilerstubb.de")

        assert store.get(r.id).status == ReservationStatus.PENDING

    def test_committed_record_does_not_need_a_second_read(self, db):
        store = ReservationStore(db)
        r = add(store)

        with patch.object(ReservationStore, "get", side_effect=StoreError("read failed")):
            committed = store.mark_triaged(r.id, ReservationStatus.CONFIRMED, None, "a@seilerstubb.de")

        assert committed.status == ReservationStatus.CONFIRMED
        assert store.get(r.id).status == ReservationStatus.CONFIRMED
