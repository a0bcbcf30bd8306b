"""Queue naming helpers.

We keep topic construction in one place so sender and receiver agree on naming.

MQTT has no server-side queues. A queue here is a plain topic that consumers
attach to through an MQTT 5 *shared subscription*: the broker hands every
message on the topic to exactly one member of the group, which gives the
usual competing-consumer behaviour.

Topic layout under an optional namespace (default: none):

- `<ns>/<name>`
    The queue itself. With no namespace this is just `<name>`, e.g. `hello`.
- `$share/<group>/<ns>/<name>`
    Subscription filter used by receivers.
- `<ns>/<name>/dead-letter`
    Where failed bodies go when the `dead-letter` failure policy is enabled.
"""

from __future__ import annotations

from dataclasses import dataclass

QUEUE_NAME = "hello"


@dataclass(frozen=True)
class NamedQueue:
    name: str
    namespace: str = ""

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("queue name must not be empty")
        if any(c in self.name for c in "/+#$"):
            raise ValueError(f"invalid queue name: {self.name!r}")

    @property
    def topic(self) -> str:
        ns = self.namespace.strip("/")
        return f"{ns}/{self.name}" if ns else self.name

    @property
    def dead_letter_topic(self) -> str:
        return f"{self.topic}/dead-letter"

    def subscription_filter(self, group: str = "") -> str:
        """Filter to subscribe with.

        With a group, all subscribers of that group share the messages
        (each message goes to one of them). Without one, every subscriber
        gets every message.
        """
        if group:
            return f"$share/{group}/{self.topic}"
        return self.topic
