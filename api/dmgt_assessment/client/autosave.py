"""Autosave policy: debounce after change.

A save is due once the form is dirty, no save is in flight and ``interval``
seconds have passed since the last edit. A failed save is retried one
interval after the failure. The controller only decides *when*; the session
performs the save.
"""

import logging
import threading
import time
from typing import Callable

logger = logging.getLogger(__name__)


class AutosaveController:
    def __init__(self, interval: float, *, enabled: bool = True, clock: Callable[[], float] = time.monotonic) -> None:
        if interval <= 0:
            raise ValueError("autosave interval must be positive")
        self.interval = interval
        self.enabled = enabled
        self._clock = clock
        self.last_change_at: float | None = None
        self.next_attempt_at: float | None = None
        self.in_flight = False
        self.failures = 0
        self._flight_started_at: float | None = None

    def _now(self, now: float | None) -> float:
        return self._clock() if now is None else now

    def notify_change(self, now: float | None = None) -> None:
        now = self._now(now)
        self.last_change_at = now
        self.next_attempt_at = now + self.interval

    def is_due(self, *, dirty: bool, now: float | None = None) -> bool:
        if not self.enabled or not dirty or self.in_flight or self.next_attempt_at is None:
            return False
        return self._now(now) >= self.next_attempt_at

    def begin(self, now: float | None = None) -> None:
        self.in_flight = True
        self._flight_started_at = self._now(now)

    def succeeded(self, now: float | None = None) -> None:
        self.in_flight = False
        self.failures = 0
        edited_meanwhile = (
            self.last_change_at is not None
            and self._flight_started_at is not None
            and self.last_change_at > self._flight_started_at
        )
        if not edited_meanwhile:
            self.next_attempt_at = None

    def failed(self, error: Exception, now: float | None = None) -> None:
        now = self._now(now)
        self.in_flight = False
        self.failures += 1
        self.next_attempt_at = now + self.interval
        logger.warning("[autosave] save failed (%d in a row), retrying in %.0fs: %s", self.failures, self.interval, error)

    def reset(self) -> None:
        self.last_change_at = None
        self.next_attempt_at = None
        self.in_flight = False
        self.failures = 0
        self._flight_started_at = None


class AutosaveRunner:
    """Polls ``tick`` on a daemon thread until stopped."""

    def __init__(self, tick: Callable[[], object], poll_seconds: float = 1.0) -> None:
        self._tick = tick
        self._poll_seconds = poll_seconds
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def _loop(self) -> None:
        while not self._stop.wait(self._poll_seconds):
            try:
                self._tick()
            except Exception:
                logger.exception("[autosave] tick raised")

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="autosave", daemon=True)
        self._thread.start()

    def stop(self, timeout: float | None = 5.0) -> None:
        self._stop.set()
        if self._thread:
            self._thread.join(timeout)
            self._thread = None

    @property
    def running(self) -> bool:
        return bool(self._thread and self._thread.is_alive())
