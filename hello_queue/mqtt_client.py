"""Small MQTT transport built on top of paho-mqtt.

Why this exists:
- paho-mqtt is callback-based and runs callbacks on its network thread.
- The receiver blocks while it "works", which must not stall that thread.

Design:
- `MqttClient` manages connection + paho's background network loop, keeps the
  table of declared queues and routes incoming messages to subscriptions.
- `Subscription` owns an inbox and a fixed number of worker threads; each
  delivery is handled by exactly one worker.

Bodies are plain UTF-8 text, no envelope. What happens to a body whose
handler raised is decided by the explicit `failure_policy`:
- `drop`: log it and move on.
- `dead-letter`: log it and republish the body to the queue's dead-letter topic.
The broker never redelivers a failed body: paho acknowledges a QoS 1 message
once it has been accepted into the inbox.
"""

from __future__ import annotations

import logging
import queue
import threading
from typing import Any, Callable

import paho.mqtt.client as mqtt

from .errors import QueueNotDeclaredError, TransportError
from .queues import NamedQueue

logger = logging.getLogger(__name__)

MessageHandler = Callable[[str], None]

FAILURE_POLICIES = ("drop", "dead-letter")


class Subscription:
    """Handler bound to one queue, served by `workers` threads."""

    def __init__(
        self,
        *,
        named_queue: NamedQueue,
        handler: MessageHandler,
        workers: int = 1,
        on_failure: Callable[[NamedQueue, str, BaseException], None] | None = None,
    ) -> None:
        if workers < 1:
            raise ValueError("workers must be >= 1")
        self.queue = named_queue
        self.handler = handler
        self.workers = workers
        self._on_failure = on_failure

        # None is the shutdown sentinel, one per worker.
        self._inbox: "queue.Queue[str | None]" = queue.Queue()
        self._threads: list[threading.Thread] = []

    def start(self) -> None:
        if self._threads:
            return
        for i in range(self.workers):
            t = threading.Thread(
                target=self._work,
                name=f"{self.queue.name}-worker-{i + 1}",
                daemon=True,
            )
            t.start()
            self._threads.append(t)

    def stop(self, timeout: float | None = 5.0) -> None:
        """Let workers finish what is already in the inbox, then join them."""
        for _ in self._threads:
            self._inbox.put(None)
        for t in self._threads:
            t.join(timeout)
        self._threads = []

    def dispatch(self, body: str) -> None:
        self._inbox.put(body)

    def process(self, body: str) -> bool:
        """Run the handler for one body. Returns False if it raised."""
        try:
            self.handler(body)
        except Exception as e:
            # The handler reports its own failure; this is bookkeeping only.
            logger.debug(
                "Delivery failed",
                extra={"queue": self.queue.name, "body": body, "error": repr(e)},
            )
            if self._on_failure is not None:
                self._on_failure(self.queue, body, e)
            return False
        return True

    def _work(self) -> None:
        while True:
            body = self._inbox.get()
            if body is None:
                return
            self.process(body)


class MqttClient:
    """Thin wrapper around paho-mqtt exposing declare/publish/subscribe."""

    def __init__(
        self,
        *,
        client_id: str,
        host: str,
        port: int,
        keepalive: int = 30,
        qos: int = 1,
        workers: int = 1,
        shared_group: str = "hello",
        failure_policy: str = "drop",
    ) -> None:
        if failure_policy not in FAILURE_POLICIES:
            raise ValueError(f"unknown failure_policy: {failure_policy!r}")

        self.client_id = client_id
        self.host = host
        self.port = port
        self.keepalive = keepalive
        self.qos = qos
        self.workers = workers
        self.shared_group = shared_group
        self.failure_policy = failure_policy

        self._client = mqtt.Client(
            callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
            client_id=client_id,
            protocol=mqtt.MQTTv5,
        )
        self._client.on_connect = self._on_connect
        self._client.on_message = self._on_message

        self._queues: dict[str, NamedQueue] = {}
        # topic -> subscription
        self._subscriptions: dict[str, Subscription] = {}
        self._lock = threading.Lock()

        self._started = False

    def start(self) -> None:
        """Connect and start the background network loop."""
        if self._started:
            return
        self._client.connect(self.host, self.port, keepalive=self.keepalive)
        self._client.loop_start()
        self._started = True
        logger.info("Connected", extra={"host": self.host, "port": self.port, "client_id": self.client_id})

    def stop(self) -> None:
        """Stop consuming, then disconnect."""
        with self._lock:
            subscriptions = list(self._subscriptions.values())
        for sub in subscriptions:
            sub.stop()
        if not self._started:
            return
        self._client.loop_stop()
        self._client.disconnect()
        self._started = False

    # -------------------- queue operations --------------------

    def declare_queue(self, name: str, namespace: str = "") -> NamedQueue:
        """Declare a queue. Declaring the same name and namespace again returns the same queue."""
        candidate = NamedQueue(name=name, namespace=namespace)
        with self._lock:
            existing = self._queues.get(candidate.topic)
            if existing is not None:
                return existing
            self._queues[candidate.topic] = candidate
        logger.info("Declared queue", extra={"queue": name, "topic": candidate.topic})
        return candidate

    def declared_queues(self) -> list[NamedQueue]:
        with self._lock:
            return list(self._queues.values())

    def publish(self, named_queue: NamedQueue, body: str) -> None:
        self._require_declared(named_queue)
        self._publish(named_queue.topic, body)

    def subscribe(self, named_queue: NamedQueue, handler: MessageHandler) -> Subscription:
        self._require_declared(named_queue)
        sub = Subscription(
            named_queue=named_queue,
            handler=handler,
            workers=self.workers,
            on_failure=self._handle_failure,
        )
        with self._lock:
            if named_queue.topic in self._subscriptions:
                raise ValueError(f"queue {named_queue.name!r} already has a subscription")
            self._subscriptions[named_queue.topic] = sub
        sub.start()

        if self._client.is_connected():
            self._client.subscribe(named_queue.subscription_filter(self.shared_group), qos=self.qos)
        return sub

    # -------------------- internals --------------------

    def _require_declared(self, named_queue: NamedQueue) -> None:
        with self._lock:
            if self._queues.get(named_queue.topic) is not named_queue:
                raise QueueNotDeclaredError(named_queue.name)

    def _publish(self, topic: str, body: str) -> None:
        # paho keeps QoS>0 messages published while offline and sends them on
        # reconnect; a failed publish must not be delivered later.
        if not self._client.is_connected():
            raise TransportError(f"publish to {topic!r} failed: not connected")
        info = self._client.publish(topic, payload=body.encode("utf-8"), qos=self.qos)
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            raise TransportError(f"publish to {topic!r} failed: {mqtt.error_string(info.rc)}")

    def _handle_failure(self, named_queue: NamedQueue, body: str, error: BaseException) -> None:
        if self.failure_policy != "dead-letter":
            return
        # Runs on a worker thread: a broker error here must not kill the worker.
        try:
            self._publish(named_queue.dead_letter_topic, body)
        except TransportError:
            logger.exception("Dead-lettering failed", extra={"queue": named_queue.name, "body": body})
            return
        logger.info("Dead-lettered", extra={"queue": named_queue.name, "body": body})

    # -------------------- paho callbacks --------------------

    def _on_connect(
        self,
        client: mqtt.Client,
        userdata: Any,
        flags: Any,
        reason_code: Any,
        properties: Any = None,
    ) -> None:
        if reason_code.is_failure:
            logger.error("Connection refused", extra={"reason": str(reason_code)})
            return
        # (Re)subscribe on every connect so a broker restart does not lose consumers.
        with self._lock:
            subscriptions = list(self._subscriptions.values())
        for sub in subscriptions:
            client.subscribe(sub.queue.subscription_filter(self.shared_group), qos=self.qos)

    def _on_message(self, client: mqtt.Client, userdata: Any, msg: mqtt.MQTTMessage) -> None:
        with self._lock:
            sub = self._subscriptions.get(msg.topic)
        if sub is None:
            return

        raw = msg.payload
        try:
            body = raw.decode("utf-8") if isinstance(raw, bytes) else str(raw)
        except UnicodeDecodeError:
            logger.warning("Dropped undecodable message", extra={"topic": msg.topic})
            return
        sub.dispatch(body)
