from __future__ import annotations

# Receiver role.
#
# For each delivered body the receiver "works" for a fixed time and then, with
# a fixed probability, fails. A failure is logged here and raised to the
# transport, which applies its failure policy. Nothing is kept between
# messages.

import logging
import random
import time
from typing import Callable

from .errors import SimulatedProcessingError

logger = logging.getLogger(__name__)


class Receiver:
    def __init__(
        self,
        *,
        work_seconds: float = 0.1,
        failure_probability: float = 0.2,
        rng: random.Random | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """
        Args:
            work_seconds: simulated processing time per message.
            failure_probability: chance in [0, 1] that a message fails.
            rng: optional RNG (useful for deterministic tests).
            sleep: blocking wait used to simulate work.
        """
        if work_seconds < 0:
            raise ValueError("work_seconds must be >= 0")
        if not 0.0 <= failure_probability <= 1.0:
            raise ValueError("failure_probability must be within [0, 1]")
        self.work_seconds = work_seconds
        self.failure_probability = failure_probability
        self._rng = rng or random.Random()
        self._sleep = sleep

    def receive(self, body: str) -> None:
        self._sleep(self.work_seconds)
        if self._rng.random() < self.failure_probability:
            logger.error("Received Exception", extra={"body": body})
            raise SimulatedProcessingError(body)
        logger.info("Received", extra={"body": body})
