from __future__ import annotations

# Local demo runner.
#
# This module starts a full local system from one command by spawning child
# processes:
# - one sender
# - N receivers (they share the queue, each message goes to one of them)
#
# Each child is a regular `python -m hello_queue.app <role>` process.

import logging
import os
import signal
import subprocess
import sys
import time
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass
class Child:
    name: str
    proc: subprocess.Popen


def child_commands(
    *,
    mqtt_host: str,
    mqtt_port: int,
    namespace: str,
    num_receivers: int,
) -> list[tuple[str, list[str]]]:
    """(name, argv) for every child, receivers first."""
    if num_receivers < 1:
        raise ValueError("num_receivers must be >= 1")

    common = ["--mqtt-host", mqtt_host, "--mqtt-port", str(mqtt_port), "--namespace", namespace]
    commands = [
        (f"receiver-{i}", [sys.executable, "-m", "hello_queue.app", "receiver", *common])
        for i in range(1, num_receivers + 1)
    ]
    commands.append(("sender", [sys.executable, "-m", "hello_queue.app", "sender", *common]))
    return commands


def run_all(*, mqtt_host: str, mqtt_port: int, namespace: str, num_receivers: int) -> None:
    commands = child_commands(
        mqtt_host=mqtt_host,
        mqtt_port=mqtt_port,
        namespace=namespace,
        num_receivers=num_receivers,
    )

    # Each child in its own process group so it can be signalled as a whole.
    children = [Child(name=name, proc=subprocess.Popen(argv, start_new_session=True)) for name, argv in commands]

    logger.info(
        "Started children",
        extra={"children": [f"{c.name}(pid={c.proc.pid})" for c in children]},
    )

    try:
        # Wait until any child exits unexpectedly.
        while True:
            for c in children:
                rc = c.proc.poll()
                if rc is not None:
                    raise RuntimeError(f"Child {c.name} exited with code {rc}")
            time.sleep(0.5)
    except KeyboardInterrupt:
        pass
    finally:
        _terminate_children(children)


def _terminate_children(children: list[Child]) -> None:
    # Try graceful termination.
    for c in children:
        if c.proc.poll() is None:
            _signal_group(c, signal.SIGTERM)

    # Wait a bit.
    deadline = time.time() + 2.0
    while time.time() < deadline:
        if all(c.proc.poll() is not None for c in children):
            return
        time.sleep(0.1)

    # Force kill.
    for c in children:
        if c.proc.poll() is None:
            _signal_group(c, signal.SIGKILL)


def _signal_group(child: Child, sig: int) -> None:
    try:
        os.killpg(os.getpgid(child.proc.pid), sig)
    except ProcessLookupError:
        # Already gone.
        pass
