import pytest
from pydantic import ValidationError

from hello_queue.config import Settings


def test_defaults():
    s = Settings(_env_file=None)
    assert s.queue_name == "hello"
    assert s.sender_initial_delay_ms == 500
    assert s.sender_period_ms == 1000
    assert s.receiver_work_ms == 100
    assert s.receiver_failure_probability == 0.2
    assert s.dots_wrap == 3
    assert s.failure_policy == "drop"


def test_reads_prefixed_environment(monkeypatch):
    monkeypatch.setenv("HELLO_PROFILES", "sender,receiver")
    monkeypatch.setenv("HELLO_MQTT_PORT", "1884")
    monkeypatch.setenv("HELLO_FAILURE_POLICY", "dead-letter")
    s = Settings(_env_file=None)
    assert s.profiles == "sender,receiver"
    assert s.mqtt_port == 1884
    assert s.failure_policy == "dead-letter"


@pytest.mark.parametrize(
    "kwargs",
    [
        {"receiver_failure_probability": 1.5},
        {"receiver_workers": 0},
        {"failure_policy": "requeue"},
        {"mqtt_qos": 3},
    ],
)
def test_rejects_invalid_values(kwargs):
    with pytest.raises(ValidationError):
        Settings(_env_file=None, **kwargs)
