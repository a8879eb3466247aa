import time
from typing import Optional


def now_ms() -> float:
    """Current wall-clock time in milliseconds."""
    return time.time() * 1000


class PeriodicTask:
    """
    Cooperative fixed-interval gate, driven by whatever clock the caller ticks.

    Nothing runs in the background: callers ask `is_due(now)` and record a
    run with `mark_run(now)`. With `run_immediately` the first check is due
    at once; otherwise the first check starts the interval.
    """

    def __init__(self, interval_ms: float, run_immediately: bool = False):
        self.interval_ms = interval_ms
        self.run_immediately = run_immediately
        self.last_run: Optional[float] = None
        self._started_at: Optional[float] = None

    def is_due(self, now: float) -> bool:
        if self.last_run is not None:
            return now - self.last_run >= self.interval_ms
        if self.run_immediately:
            return True
        if self._started_at is None:
            self._started_at = now
        return now - self._started_at >= self.interval_ms

    def mark_run(self, now: float) -> None:
        self.last_run = now

    def reset(self) -> None:
        self.last_run = None
        self._started_at = None
