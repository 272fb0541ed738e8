# app/services/alert_controller.py
"""
New-reservation alert for one console session.

Single slot, no queue:  IDLE ──show()──▶ SHOWING ──timer / dismiss() / view()──▶ IDLE
A show() while SHOWING replaces the reservation on display and restarts the timer.
Manual dismissal cancels the timer so it can never fire into a later alert's window.
Nothing is persisted — closing the session while SHOWING drops the alert.
"""

import asyncio
import time
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

from app.config import settings
from app.schemas.console import AlertOut
from app.schemas.reservation import Reservation
from app.utils.chime import Tone, synthesize_chime
from app.utils.logger import get_logger

logger = get_logger(__name__)

AudioSink = Callable[[list[Tone]], None]


class AlertState(str, Enum):
    IDLE = "idle"
    SHOWING = "showing"


def log_audio_sink(tones: list[Tone]) -> None:
    logger.debug(f"[CHIME] {' → '.join(f'{t.frequency:.0f}Hz' for t in tones)}")


class AlertController:
    def __init__(self, dwell_seconds: Optional[float] = None,
                 audio_sink: AudioSink = log_audio_sink, label: str = "console"):
        self.dwell_seconds = settings.ALERT_DWELL_SECONDS if dwell_seconds is None else dwell_seconds
        self._audio_sink = audio_sink
        self._label = label
        self._tones = synthesize_chime()

        self._state = AlertState.IDLE
        self._reservation: Optional[Reservation] = None
        self._shown_at: Optional[datetime] = None
        self._deadline: Optional[float] = None       # time.monotonic()
        self._timer: Optional[asyncio.TimerHandle] = None
        self._cue_sequence = 0

    # ── Read-only state ──────────────────────────────────────────────────
    @property
    def state(self) -> AlertState:
        return self._state

    @property
    def reservation(self) -> Optional[Reservation]:
        return self._reservation

    @property
    def cue_sequence(self) -> int:
        return self._cue_sequence

    def remaining_seconds(self) -> float:
        if self._state is not AlertState.SHOWING or self._deadline is None:
            return 0.0
        return max(0.0, self._deadline - time.monotonic())

    def snapshot(self) -> AlertOut:
        return AlertOut(
            state=self._state.value,
            reservation=self._reservation,
            shown_at=self._shown_at,
            remaining_seconds=round(self.remaining_seconds(), 2),
            cue_sequence=self._cue_sequence,
        )

    # ── Transitions ──────────────────────────────────────────────────────
    def show(self, reservation: Reservation) -> None:
        """IDLE/SHOWING → SHOWING. Must be called from the event loop thread."""
        loop = asyncio.get_running_loop()
        replacing = self._state is AlertState.SHOWING

        self._cancel_timer()
        self._state = AlertState.SHOWING
        self._reservation = reservation
        self._shown_at = datetime.utcnow()
        self._deadline = time.monotonic() + self.dwell_seconds
        self._timer = loop.call_later(self.dwell_seconds, self._expire, reservation.id)
        self._play_cue()

        logger.info(
            f"[ALERT][{self._label}] {'replaced by' if replacing else 'new reservation'} "
            f"{reservation.id} — {reservation.full_name}, {reservation.party_size} P., "
            f"{reservation.date} {reservation.time:%H:%M}"
        )

    def dismiss(self) -> None:
        """SHOWING → IDLE on operator request. No-op when already IDLE."""
        if self._state is AlertState.IDLE:
            return
        logger.debug(f"[ALERT][{self._label}] dismissed {self._reservation.id}")
        self._reset()

    def view(self) -> Optional[Reservation]:
        """Dismiss and hand back the reservation the operator wants to open."""
        reservation = self._reservation
        self.dismiss()
        return reservation

    def close(self) -> None:
        self._reset()

    # ── Internals ────────────────────────────────────────────────────────
    def _expire(self, reservation_id: str) -> None:
        # Guard against a handle that outlived its alert
        if self._state is AlertState.SHOWING and self._reservation and self._reservation.id == reservation_id:
            logger.debug(f"[ALERT][{self._label}] auto-dismissed {reservation_id}")
            self._timer = None
            self._reset()

    def _reset(self) -> None:
        self._cancel_timer()
        self._state = AlertState.IDLE
        self._reservation = None
        self._shown_at = None
        self._deadline = None

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _play_cue(self) -> None:
        self._cue_sequence += 1
        try:
            self._audio_sink(self._tones)
        except Exception as e:
            # Sound is a courtesy — the popup still shows
            logger.warning(f"[ALERT][{self._label}] chime failed: {e}")
