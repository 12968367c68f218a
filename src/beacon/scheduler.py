"""Fixed-delay scheduling of ingestion cycles."""
from __future__ import annotations

from threading import Event
from typing import Callable, Optional
import logging

LOGGER = logging.getLogger(__name__)


class IngestionScheduler:
    """Run ``task`` once immediately and then ``interval_seconds`` after each run ends.

    Runs never overlap, and an exception raised by one run is logged without
    stopping the schedule. :meth:`stop` may be called from another thread.
    """

    def __init__(
        self,
        task: Callable[[Event], object],
        interval_seconds: float,
        *,
        stop_event: Optional[Event] = None,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._task = task
        self._interval = interval_seconds
        self._stop_event = stop_event or Event()
        self.runs = 0

    @property
    def stop_event(self) -> Event:
        return self._stop_event

    def run_forever(self, max_runs: Optional[int] = None) -> int:
        while not self._stop_event.is_set():
            self._run_once()
            if max_runs is not None and self.runs >= max_runs:
                break
            if self._stop_event.wait(self._interval):
                break
        LOGGER.info("Scheduler stopped after %s runs", self.runs)
        return self.runs

    def stop(self) -> None:
        self._stop_event.set()

    def _run_once(self) -> None:
        self.runs += 1
        try:
            self._task(self._stop_event)
        except Exception:
            LOGGER.exception("Scheduled ingestion run %s failed", self.runs)


__all__ = ["IngestionScheduler"]
