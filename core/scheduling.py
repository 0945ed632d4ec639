# core/scheduling.py

"""
Deferred execution for the post-submit resync.

A scheduler exposes `schedule(delay, callback, *args)`. `TimerScheduler` runs callbacks on
daemon threads; callers that own an event loop can pass their own implementation.
"""

import logging
import threading
from collections.abc import Callable

logger = logging.getLogger(__name__)


class TimerScheduler:

    def __init__(self):
        self._timers: set[threading.Timer] = set()
        self._lock = threading.Lock()

    def schedule(self, delay: float, callback: Callable[..., None], *args) -> None:
        timer: threading.Timer

        def run() -> None:
            try:
                callback(*args)
            except Exception:
                logger.exception("Scheduled callback %r failed", callback)
            finally:
                with self._lock:
                    self._timers.discard(timer)

        timer = threading.Timer(delay, run)
        timer.daemon = True

        with self._lock:
            self._timers.add(timer)

        timer.start()

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._timers)

    def cancel_all(self) -> None:
        with self._lock:
            timers = list(self._timers)
            self._timers.clear()

        for timer in timers:
            timer.cancel()
