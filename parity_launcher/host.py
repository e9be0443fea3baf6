"""
Host-side pieces the supervisor talks to: the notification target that stands
in for the UI, and the policy deciding what a parity failure does to the host.
"""

import logging
import os
import signal
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable

from .errors import HostExitRequested

logger = logging.getLogger(__name__)


@dataclass
class Notification:
    channel: str
    payload: Any
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict:
        return {
            "channel": self.channel,
            "payload": self.payload,
            "timestamp": self.timestamp.isoformat(),
        }


class HostState:
    """Receives supervisor notifications and keeps the flags other components read."""

    def __init__(self, max_events: int = 100):
        self.is_parity_running = False
        self._events: deque[Notification] = deque(maxlen=max_events)

    def send(self, channel: str, payload: Any = None):
        """Record a notification, mirroring it into host flags."""
        self._events.append(Notification(channel=channel, payload=payload))
        if channel == "parity-running":
            self.is_parity_running = bool(payload)
        logger.debug(f"Notification {channel}: {payload}")

    def events(self, limit: int = 100) -> list[Notification]:
        """Most recent notifications, newest first."""
        return list(reversed(self._events))[:limit]


class GracefulExit:
    """
    Shuts the server down through its own signal handling, so the lifespan
    teardown still runs, and remembers the status the process should exit with.
    """

    def __init__(self):
        self.status = 0

    def __call__(self, status: int):
        self.status = status
        os.kill(os.getpid(), signal.SIGTERM)


graceful_exit = GracefulExit()


class HostExitPolicy:
    """
    Decides what an escalated parity failure does to the host.

    A failure after an explicit-argument launch exits quietly with the
    requested status. Anything else is unexpected and logged with its
    traceback before exiting with status 1.
    """

    def __init__(self, terminate: Callable[[int], None] = graceful_exit):
        self._terminate = terminate

    def __call__(self, error: BaseException):
        if isinstance(error, HostExitRequested):
            logger.error("Parity failed to run with the given arguments, exiting")
            self._terminate(error.status)
            return

        logger.critical("Parity failed unexpectedly", exc_info=error)
        self._terminate(1)
