"""Cancellable rest countdown."""

import logging
import threading
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class RestTimer:
    """
    Thread-safe countdown between sets.

    Skipping cancels immediately and adding time extends the deadline
    atomically. Remaining time is never negative.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._lock = threading.Lock()
        self._done = threading.Event()
        self._deadline: Optional[float] = None
        self._duration = 0.0
        self.skipped = False

    def start(self, seconds: float) -> None:
        if seconds < 0:
            raise ValueError("Rest duration must be >= 0")
        with self._lock:
            self._duration = float(seconds)
            self._deadline = self._clock() + seconds
            self.skipped = False
            self._done.clear()
        logger.debug(f"Rest timer started for {seconds}s")

    def remaining(self) -> float:
        with self._lock:
            return self._remaining_locked()

    def _remaining_locked(self) -> float:
        if self._deadline is None:
            return 0.0
        left = self._deadline - self._clock()
        if left <= 0:
            self._deadline = None
            self._done.set()
            return 0.0
        return left

    @property
    def is_running(self) -> bool:
        return self.remaining() > 0

    @property
    def duration(self) -> float:
        """Total planned rest, including added time."""
        return self._duration

    def add_time(self, seconds: float) -> float:
        """Extend the running countdown. Returns the new remaining time."""
        if seconds < 0:
            raise ValueError("Added time must be >= 0")
        with self._lock:
            if self._remaining_locked() <= 0:
                return 0.0
            self._deadline += seconds
            self._duration += seconds
            return self._remaining_locked()

    def skip(self) -> None:
        with self._lock:
            if self._deadline is not None:
                self.skipped = True
            self._deadline = None
            self._done.set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the countdown ends or is skipped.

        Returns True if it finished within `timeout`.
        """
        end = None if timeout is None else time.monotonic() + timeout
        while True:
            left = self.remaining()
            if left <= 0 or self._done.is_set():
                return True
            step = left
            if end is not None:
                budget = end - time.monotonic()
                if budget <= 0:
                    return False
                step = min(step, budget)
            self._done.wait(step)
