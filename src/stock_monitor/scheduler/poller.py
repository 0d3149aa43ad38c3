"""Repeats monitoring passes at a fixed interval for watch mode."""
from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Optional

logger = logging.getLogger(__name__)


class PollingScheduler:
    """A lightweight scheduler for periodic monitoring passes.

    Passes run one after another on a chain of timers, so two passes never
    overlap. When ``max_runs`` is set the scheduler stops by itself after
    that many passes.
    """

    def __init__(
        self,
        interval_seconds: float,
        task: Callable[[], object],
        max_runs: Optional[int] = None,
    ) -> None:
        self._interval = interval_seconds
        self._task = task
        self._max_runs = max_runs
        self._timer: threading.Timer | None = None
        self._lock = threading.Lock()
        self._running = False
        self._finished = threading.Event()
        self.run_count = 0
        self.last_error: Exception | None = None

    def start(self, run_immediately: bool = True) -> None:
        """Start scheduling passes."""

        with self._lock:
            self._running = True
            self._finished.clear()
            self._schedule_next(0 if run_immediately else self._interval)

    def stop(self) -> None:
        """Stop the scheduler."""

        with self._lock:
            self._running = False
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
        self._finished.set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the scheduler stops. Returns ``False`` on timeout."""

        return self._finished.wait(timeout)

    def _schedule_next(self, delay: float) -> None:
        if not self._running:
            return
        self._timer = threading.Timer(delay, self._run_task)
        self._timer.daemon = True
        self._timer.start()

    def _run_task(self) -> None:
        self.run_count += 1
        try:
            logger.debug("Running monitoring pass %s", self.run_count)
            self._task()
        except Exception as exc:
            # A failed pass is reported; the next one still runs.
            self.last_error = exc
            logger.exception("Monitoring pass %s failed", self.run_count)

        with self._lock:
            if self._max_runs is not None and self.run_count >= self._max_runs:
                self._running = False
                self._timer = None
                self._finished.set()
                return
            self._schedule_next(self._interval)
