import itertools

import pytest

from hello_queue.queues import NamedQueue
from hello_queue.sender import MessageGenerator, Sender


def test_first_messages():
    gen = MessageGenerator()
    assert [gen.next_message() for _ in range(7)] == [
        "Hello.1",
        "Hello..2",
        "Hello...3",
        "Hello.4",
        "Hello..5",
        "Hello...6",
        "Hello.7",
    ]


def test_dots_cycle_and_counter_over_many_ticks():
    gen = MessageGenerator()
    for n, expected_dots in zip(range(1, 1001), itertools.cycle([1, 2, 3])):
        msg = gen.next_message()
        suffix = str(n)
        assert msg.endswith(suffix)
        dots = msg[len("Hello") : -len(suffix)]
        assert dots == "." * expected_dots


def test_custom_wrap():
    gen = MessageGenerator(base="Hi", dots_wrap=1)
    assert [gen.next_message() for _ in range(3)] == ["Hi.1", "Hi.2", "Hi.3"]


def test_wrap_must_be_positive():
    with pytest.raises(ValueError):
        MessageGenerator(dots_wrap=0)


def test_send_publishes_one_message_per_call(transport, caplog):
    caplog.set_level("INFO", logger="hello_queue.sender")
    q = transport.declare_queue("hello")
    sender = Sender(transport, q)

    assert sender.send() == "Hello.1"
    assert sender.send() == "Hello..2"

    assert transport.published == [("hello", "Hello.1"), ("hello", "Hello..2")]
    assert [r.body for r in caplog.records if r.getMessage() == "Sent"] == ["Hello.1", "Hello..2"]


def test_send_does_not_catch_publish_errors():
    class Broken:
        def publish(self, named_queue, body):
            raise ConnectionError("broker down")

    sender = Sender(Broken(), NamedQueue("hello"))
    with pytest.raises(ConnectionError):
        sender.send()
    # The failed tick still consumed its counter value.
    assert sender.generator.next_message() == "Hello..2"
