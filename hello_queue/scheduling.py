from __future__ import annotations

# Fixed-delay ticker.
#
# Runs a task on a single background thread:
# - first run after `initial_delay` seconds
# - every next run `delay` seconds after the previous one *finished*
#
# Runs never overlap. If a run raises, the error is logged and the ticker
# carries on with the next run.

import logging
import threading
from typing import Callable

logger = logging.getLogger(__name__)


class FixedDelayTicker:
    def __init__(
        self,
        task: Callable[[], object],
        *,
        initial_delay: float,
        delay: float,
        name: str = "ticker",
    ) -> None:
        if initial_delay < 0:
            raise ValueError("initial_delay must be >= 0")
        if delay <= 0:
            raise ValueError("delay must be > 0")
        self.task = task
        self.initial_delay = initial_delay
        self.delay = delay
        self.name = name

        self.ticks = 0
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()

    def stop(self, timeout: float | None = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _run(self) -> None:
        if self._stop.wait(self.initial_delay):
            return
        while True:
            self.ticks += 1
            try:
                self.task()
            except Exception:
                logger.exception("Scheduled task failed", extra={"ticker": self.name, "tick": self.ticks})
            if self._stop.wait(self.delay):
                return
