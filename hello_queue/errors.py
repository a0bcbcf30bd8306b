"""Exceptions shared by the sender, receiver and transport."""

from __future__ import annotations


class HelloQueueError(Exception):
    """Base class for errors raised by this package."""


class SimulatedProcessingError(HelloQueueError):
    """Raised by the receiver when it decides a message "failed"."""

    def __init__(self, body: str) -> None:
        super().__init__(f"Exception {body}")
        self.body = body


class QueueNotDeclaredError(HelloQueueError):
    def __init__(self, name: str) -> None:
        super().__init__(f"queue {name!r} was not declared")
        self.name = name


class TransportError(HelloQueueError):
    """The broker client refused or failed an operation."""
