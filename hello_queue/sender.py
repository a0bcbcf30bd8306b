from __future__ import annotations

# Sender role.
#
# This file contains two layers:
# 1) `MessageGenerator` (pure logic, easy to unit test)
# 2) `Sender` (publishes one generated message per call through the transport)
#
# The timer driving `Sender.send` lives in `scheduling.FixedDelayTicker` and is
# wired up in `bootstrap.start_roles`.

import logging
from typing import TYPE_CHECKING

from .queues import NamedQueue

if TYPE_CHECKING:
    from .mqtt_client import MqttClient

logger = logging.getLogger(__name__)


class MessageGenerator:
    """Builds "Hello.1", "Hello..2", "Hello...3", "Hello.4", ...

    The dot counter is compared *before* it is incremented: once it has
    produced `dots_wrap` dots it goes back to 1, never to 0. The trailing
    counter starts at 1 and never resets.
    """

    def __init__(self, base: str = "Hello", dots_wrap: int = 3) -> None:
        if dots_wrap < 1:
            raise ValueError("dots_wrap must be >= 1")
        self.base = base
        self.dots_wrap = dots_wrap
        self._dots = 0
        self._count = 0

    def next_message(self) -> str:
        previous = self._dots
        self._dots += 1
        if previous == self.dots_wrap:
            self._dots = 1
        self._count += 1
        return f"{self.base}{'.' * self._dots}{self._count}"


class Sender:
    def __init__(
        self,
        transport: "MqttClient",
        named_queue: NamedQueue,
        generator: MessageGenerator | None = None,
    ) -> None:
        self.transport = transport
        self.queue = named_queue
        self.generator = generator or MessageGenerator()

    def send(self) -> str:
        """Publish the next message. Transport errors are left to the caller."""
        body = self.generator.next_message()
        self.transport.publish(self.queue, body)
        logger.info("Sent", extra={"queue": self.queue.name, "body": body})
        return body
