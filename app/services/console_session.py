# app/services/console_session.py
"""
Operator console sessions — one per open "live reservations" screen.

Each session keeps its own previous pending count and its own alert, so two
operators watching the same feed each get their own chime. The count starts at 0:
a console opened while reservations are pending alerts for the newest one.

Browsers poll their session; a session not seen for CONSOLE_IDLE_SECONDS is
closed by the registry's reaper, so a tab closed without DELETE stops ringing.
"""

import asyncio
import time
import uuid
from datetime import datetime
from typing import Callable, Optional

from app.config import settings
from app.schemas.console import ConsoleSessionOut
from app.schemas.reservation import Reservation
from app.services.alert_controller import AlertController
from app.services.reservation_feed import ReservationFeed
from app.services.snapshot_differ import SnapshotDiff, diff_snapshot
from app.utils.logger import get_logger

logger = get_logger(__name__)


class ConsoleSession:
    def __init__(self, operator: str, alert: Optional[AlertController] = None,
                 session_id: Optional[str] = None):
        self.session_id = session_id or uuid.uuid4().hex
        self.operator = operator
        self.alert = alert or AlertController(label=f"console-{self.session_id[:8]}")
        self.previous_pending_count = 0
        self.pending: list[Reservation] = []
        self.completed: list[Reservation] = []
        self.last_update: Optional[datetime] = None
        self.last_seen = time.monotonic()
        self._unsubscribe: Optional[Callable[[], None]] = None

    def on_snapshot(self, snapshot: list[Reservation]) -> SnapshotDiff:
        diff = diff_snapshot(self.previous_pending_count, snapshot)
        self.previous_pending_count = diff.pending_count
        self.pending = diff.pending
        self.completed = diff.completed
        self.last_update = datetime.utcnow()
        if diff.newest_pending is not None:
            self.alert.show(diff.newest_pending)
        return diff

    def touch(self) -> None:
        self.last_seen = time.monotonic()

    def idle_seconds(self, now: Optional[float] = None) -> float:
        return (time.monotonic() if now is None else now) - self.last_seen

    def attach(self, feed: ReservationFeed) -> None:
        self._unsubscribe = feed.subscribe(self.on_snapshot)

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self.alert.close()

    def to_out(self, feed: ReservationFeed) -> ConsoleSessionOut:
        return ConsoleSessionOut(
            session_id=self.session_id,
            operator=self.operator,
            pending=self.pending,
            completed=self.completed,
            last_update=self.last_update,
            alert=self.alert.snapshot(),
            feed=feed.status(),
        )


class ConsoleRegistry:
    def __init__(self, feed: ReservationFeed, idle_seconds: Optional[float] = None):
        self.feed = feed
        self.idle_seconds = settings.CONSOLE_IDLE_SECONDS if idle_seconds is None else idle_seconds
        self._sessions: dict[str, ConsoleSession] = {}
        self._reaper: Optional[asyncio.Task] = None

    def open(self, operator: str, alert: Optional[AlertController] = None) -> ConsoleSession:
        session = ConsoleSession(operator, alert=alert)
        self._sessions[session.session_id] = session
        session.attach(self.feed)
        logger.info(f"[CONSOLE] {operator} opened session {session.session_id}")
        return session

    def get(self, session_id: str, operator: Optional[str] = None) -> Optional[ConsoleSession]:
        """Look up a session; with `operator`, only that operator's own session matches."""
        session = self._sessions.get(session_id)
        if session is None or (operator is not None and session.operator != operator):
            return None
        return session

    def close(self, session_id: str) -> bool:
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        session.close()
        logger.info(f"[CONSOLE] {session.operator} closed session {session_id}")
        return True

    def close_all(self) -> None:
        for session_id in list(self._sessions):
            self.close(session_id)

    def reap_idle(self, now: Optional[float] = None) -> list[str]:
        """Close every session idle longer than `idle_seconds`. Returns their ids."""
        now = time.monotonic() if now is None else now
        stale = [sid for sid, s in self._sessions.items() if s.idle_seconds(now) > self.idle_seconds]
        for session_id in stale:
            logger.info(f"[CONSOLE] Session {session_id} idle for over {self.idle_seconds}s")
            self.close(session_id)
        return stale

    async def run_reaper(self, interval: Optional[float] = None):
        interval = interval or max(self.idle_seconds / 4, 1.0)
        while True:
            await asyncio.sleep(interval)
            self.reap_idle()

    def start(self) -> asyncio.Task:
        if self._reaper is None or self._reaper.done():
            self._reaper = asyncio.create_task(self.run_reaper(), name="console-reaper")
        return self._reaper

    async def stop(self) -> None:
        if self._reaper is not None:
            self._reaper.cancel()
            try:
                await self._reaper
            except asyncio.CancelledError:
                pass
            self._reaper = None
        self.close_all()

    def __len__(self):
        return len(self._sessions)
