import subprocess
import sys

import pytest

from hello_queue.run_all import child_commands


def _help(*args: str) -> str:
    proc = subprocess.run(
        [sys.executable, "-m", "hello_queue.app", *args, "-h"],
        capture_output=True,
        text=True,
        check=False,
    )
    assert proc.returncode == 0
    return proc.stdout + proc.stderr


def test_app_help_runs():
    out = _help()
    assert "main entrypoint" in out
    for cmd in ("run", "sender", "receiver", "demo"):
        assert cmd in out


def test_run_help_runs():
    out = _help("run")
    assert "--profiles" in out
    assert "--mqtt-host" in out


def test_demo_help_runs():
    assert "--receivers" in _help("demo")


def test_demo_children():
    commands = child_commands(mqtt_host="broker", mqtt_port=1883, namespace="demo", num_receivers=2)
    assert [name for name, _argv in commands] == ["receiver-1", "receiver-2", "sender"]
    _name, argv = commands[-1]
    assert argv[1:4] == ["-m", "hello_queue.app", "sender"]
    assert argv[-6:] == ["--mqtt-host", "broker", "--mqtt-port", "1883", "--namespace", "demo"]


def test_demo_needs_a_receiver():
    with pytest.raises(ValueError):
        child_commands(mqtt_host="broker", mqtt_port=1883, namespace="", num_receivers=0)
