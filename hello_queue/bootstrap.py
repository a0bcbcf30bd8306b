from __future__ import annotations

# Process wiring.
#
# - declare the queue (once)
# - start the sender ticker if the "sender" profile is active
# - subscribe the receiver if the "receiver" profile is active
#
# Profiles are read once at startup. With none active the process only
# declares the queue and then idles.

import logging
import os
import random
import signal
import threading
import time
from dataclasses import dataclass
from typing import Iterable, TYPE_CHECKING

from .config import Settings
from .mqtt_client import MqttClient
from .queues import NamedQueue
from .receiver import Receiver
from .scheduling import FixedDelayTicker
from .sender import MessageGenerator, Sender

if TYPE_CHECKING:
    from .mqtt_client import Subscription

logger = logging.getLogger(__name__)

SENDER = "sender"
RECEIVER = "receiver"
KNOWN_PROFILES = frozenset({SENDER, RECEIVER})


def parse_profiles(raw: str | Iterable[str] | None) -> frozenset[str]:
    """Normalize a profile selection like "sender, Receiver" to known names.

    Unknown names are logged and ignored.
    """
    if raw is None:
        return frozenset()
    names = raw.split(",") if isinstance(raw, str) else raw
    selected = {n.strip().lower() for n in names if n and n.strip()}
    unknown = selected - KNOWN_PROFILES
    if unknown:
        logger.warning("Ignoring unknown profiles", extra={"profiles": sorted(unknown)})
    return frozenset(selected & KNOWN_PROFILES)


@dataclass
class Roles:
    """Handles to whatever `start_roles` started."""

    queue: NamedQueue
    profiles: frozenset[str]
    sender: Sender | None = None
    ticker: FixedDelayTicker | None = None
    receiver: Receiver | None = None
    subscription: "Subscription | None" = None

    def stop(self) -> None:
        if self.ticker is not None:
            self.ticker.stop()
        if self.subscription is not None:
            self.subscription.stop()


def start_roles(
    transport: MqttClient,
    settings: Settings,
    profiles: Iterable[str] | None = None,
    rng: random.Random | None = None,
) -> Roles:
    """Declare the queue and start the roles enabled by `profiles`.

    `profiles` defaults to `settings.profiles`.
    """
    active = parse_profiles(settings.profiles if profiles is None else profiles)
    named_queue = transport.declare_queue(settings.queue_name, settings.namespace)
    roles = Roles(queue=named_queue, profiles=active)

    if SENDER in active:
        roles.sender = Sender(
            transport,
            named_queue,
            MessageGenerator(dots_wrap=settings.dots_wrap),
        )
        roles.ticker = FixedDelayTicker(
            roles.sender.send,
            initial_delay=settings.sender_initial_delay_ms / 1000.0,
            delay=settings.sender_period_ms / 1000.0,
            name="sender",
        )
        roles.ticker.start()

    if RECEIVER in active:
        roles.receiver = Receiver(
            work_seconds=settings.receiver_work_ms / 1000.0,
            failure_probability=settings.receiver_failure_probability,
            rng=rng,
        )
        roles.subscription = transport.subscribe(named_queue, roles.receiver.receive)

    logger.info("Roles started", extra={"queue": named_queue.name, "profiles": sorted(active)})
    return roles


def run(settings: Settings) -> None:
    """Run the configured roles until Ctrl+C or SIGTERM."""
    transport = MqttClient(
        client_id=f"hello-{os.getpid()}-{int(time.time())}",
        host=settings.mqtt_host,
        port=settings.mqtt_port,
        keepalive=settings.mqtt_keepalive,
        qos=settings.mqtt_qos,
        workers=settings.receiver_workers,
        shared_group=settings.shared_group,
        failure_policy=settings.failure_policy,
    )
    transport.start()

    stopping = threading.Event()
    signal.signal(signal.SIGTERM, lambda signum, frame: stopping.set())

    roles: Roles | None = None
    try:
        roles = start_roles(transport, settings)
        while not stopping.wait(0.5):
            pass
    except KeyboardInterrupt:
        pass
    finally:
        if roles is not None:
            roles.stop()
        transport.stop()
        logger.info("Stopped")
