"""Minimal producer/consumer demo over an MQTT broker.

A sender publishes "Hello" messages to the `hello` queue on a timer and a
receiver consumes them, simulating some work and failing at random.

Which roles a process runs is chosen at startup through profiles
(`HELLO_PROFILES=sender,receiver` or `--profiles`).

See `python -m hello_queue.app -h` for how to run.
"""
