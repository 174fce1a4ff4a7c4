"""
Cancellable Scheduling

Delayed callbacks tied to a match or round lifetime. The AI opponent uses this to
pace its guesses; tasks are cancelled when their round or match ends.
"""

import threading
from typing import Callable


class ScheduledTask:
    """Handle for a pending callback."""

    def cancel(self) -> None:
        raise NotImplementedError

    @property
    def cancelled(self) -> bool:
        raise NotImplementedError


class Scheduler:
    """Schedules a callback to run once after a delay in seconds."""

    def schedule(self, delay: float, callback: Callable[[], None]) -> ScheduledTask:
        raise NotImplementedError


class _TimerTask(ScheduledTask):
    def __init__(self, delay: float, callback: Callable[[], None]):
        self._cancelled = threading.Event()
        self._callback = callback
        self._timer = threading.Timer(delay, self._run)
        self._timer.daemon = True

    def _run(self):
        # cancel() may race with the timer firing
        if not self._cancelled.is_set():
            self._callback()

    def start(self):
        self._timer.start()

    def cancel(self) -> None:
        self._cancelled.set()
        self._timer.cancel()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()


class ThreadingScheduler(Scheduler):
    """Scheduler backed by daemon threading.Timer objects."""

    def schedule(self, delay: float, callback: Callable[[], None]) -> ScheduledTask:
        task = _TimerTask(max(0.0, delay), callback)
        task.start()
        return task
