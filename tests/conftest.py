from __future__ import annotations

import pytest

from hello_queue.config import Settings
from hello_queue.mqtt_client import Subscription
from hello_queue.queues import NamedQueue


class FakeTransport:
    """In-memory stand-in for `MqttClient` (no broker)."""

    def __init__(self) -> None:
        self.queues: dict[str, NamedQueue] = {}
        self.declare_calls = 0
        self.published: list[tuple[str, str]] = []
        self.subscriptions: list[Subscription] = []

    def declare_queue(self, name: str, namespace: str = "") -> NamedQueue:
        self.declare_calls += 1
        return self.queues.setdefault(name, NamedQueue(name=name, namespace=namespace))

    def publish(self, named_queue: NamedQueue, body: str) -> None:
        self.published.append((named_queue.name, body))

    def subscribe(self, named_queue: NamedQueue, handler) -> Subscription:
        sub = Subscription(named_queue=named_queue, handler=handler)
        self.subscriptions.append(sub)
        return sub


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def settings() -> Settings:
    # Long initial delay: tests drive the sender by hand unless they say otherwise.
    return Settings(profiles="", sender_initial_delay_ms=60_000, receiver_work_ms=0)
