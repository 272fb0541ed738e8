# app/services/reservation_feed.py
"""
Reservation feed — delivers the complete reservation list to every subscriber.

Polls the reservations table every FEED_POLL_SECONDS and hands each subscriber the
whole snapshot (newest first). Delivery is at-least-once: the same snapshot is
redelivered every cycle and after every reconnect, so subscribers must diff.

On database errors the feed marks itself disconnected and retries with
exponential backoff (3s doubling up to 60s).
"""

import asyncio
from datetime import datetime
from typing import Callable, Optional

from app.config import settings
from app.database import SessionLocal
from app.exceptions import StoreError
from app.schemas.console import FeedStatusOut
from app.schemas.reservation import Reservation
from app.services.reservation_store import ReservationStore
from app.utils.logger import get_logger

logger = get_logger(__name__)

_MIN_BACKOFF = 3
_MAX_BACKOFF = 60

Subscriber = Callable[[list[Reservation]], None]


class ReservationFeed:
    def __init__(self, session_factory=SessionLocal, poll_seconds: Optional[float] = None):
        self._session_factory = session_factory
        self.poll_seconds = settings.FEED_POLL_SECONDS if poll_seconds is None else poll_seconds
        self._subscribers: dict[int, Subscriber] = {}
        self._next_key = 0
        self._task: Optional[asyncio.Task] = None
        self._last_snapshot: Optional[list[Reservation]] = None
        self.connected = False
        self.last_delivery: Optional[datetime] = None
        self.last_error: Optional[str] = None

    # ── Subscriptions ────────────────────────────────────────────────────
    def subscribe(self, callback: Subscriber, replay: bool = True) -> Callable[[], None]:
        """Register `callback`; returns an unsubscribe function.
        With replay, the latest snapshot is delivered immediately."""
        key = self._next_key
        self._next_key += 1
        self._subscribers[key] = callback
        if replay and self._last_snapshot is not None:
            self._deliver_one(key, callback, self._last_snapshot)

        def unsubscribe():
            self._subscribers.pop(key, None)
        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def status(self) -> FeedStatusOut:
        return FeedStatusOut(
            connected=self.connected,
            last_delivery=self.last_delivery,
            subscriber_count=self.subscriber_count,
            last_error=self.last_error,
        )

    # ── Delivery ─────────────────────────────────────────────────────────
    def deliver(self, snapshot: list[Reservation]) -> None:
        self._last_snapshot = list(snapshot)
        self.last_delivery = datetime.utcnow()
        for key, callback in list(self._subscribers.items()):
            self._deliver_one(key, callback, self._last_snapshot)

    def _deliver_one(self, key: int, callback: Subscriber, snapshot: list[Reservation]) -> None:
        try:
            callback(snapshot)
        except Exception as e:
            # One broken console must not starve the others
            logger.error(f"[FEED] Subscriber {key} failed: {e}", exc_info=True)

    def fetch_snapshot(self) -> list[Reservation]:
        db = self._session_factory()
        try:
            return ReservationStore(db).list_snapshot()
        finally:
            db.close()

    async def poll_once(self) -> list[Reservation]:
        snapshot = await asyncio.to_thread(self.fetch_snapshot)
        if not self.connected:
            logger.info(f"✅ Reservation feed connected — {len(snapshot)} reservations")
        self.connected = True
        self.last_error = None
        self.deliver(snapshot)
        return snapshot

    async def run(self):
        backoff = _MIN_BACKOFF
        while True:
            try:
                await self.poll_once()
                backoff = _MIN_BACKOFF
                await asyncio.sleep(self.poll_seconds)
            except StoreError as e:
                self.connected = False
                self.last_error = str(e)
                logger.warning(f"❌ Reservation feed lost — retry in {backoff}s: {e}")
                await asyncio.sleep(backoff)
                backoff = min(backoff * 2, _MAX_BACKOFF)
            except Exception as e:
                self.connected = False
                self.last_error = str(e)
                logger.error(f"❌ Reservation feed — unexpected error: {e}", exc_info=True)
                await asyncio.sleep(backoff)
                backoff = min(backoff * 2, _MAX_BACKOFF)

    # ── Lifecycle ────────────────────────────────────────────────────────
    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run(), name="reservation-feed")
            logger.info(f"📡 Reservation feed started (every {self.poll_seconds}s)")
        return self._task

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        self.connected = False
        logger.info("🛑 Reservation feed stopped")
