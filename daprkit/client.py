"""The runtime client, combining every call group, and its connectivity wait."""

from __future__ import annotations

import datetime
import time
from enum import IntEnum
from typing import Any

from .configuration import ConfigurationMixin
from .invoke import InvokeMixin
from .lock import LockMixin
from .pubsub import PubSubMixin
from .secret import SecretMixin
from .state import StateMixin
from .utils import DaprClientError

__all__ = ["ConnectivityState", "WaitTimeoutError", "DaprClient"]


class ConnectivityState(IntEnum):
    """State of the connection to the runtime."""

    IDLE = 0
    CONNECTING = 1
    READY = 2
    TRANSIENT_FAILURE = 3
    SHUTDOWN = 4


class WaitTimeoutError(DaprClientError):
    """Raised when the connection does not become ready in time."""

    def __init__(self, message: str = "timed out waiting for client connectivity") -> None:
        super().__init__(message)


class DaprClient(
    InvokeMixin,
    LockMixin,
    SecretMixin,
    ConfigurationMixin,
    StateMixin,
    PubSubMixin,
):
    """Client for the runtime's building blocks.

    ``runtime`` carries out the calls; ``connection`` reports connectivity
    through ``get_state()`` and ``wait_for_state_change(state, timeout)``.
    """

    def __init__(self, runtime: Any, connection: Any = None) -> None:
        self.runtime = runtime
        self.connection = connection

    def wait(self, timeout: float | datetime.timedelta) -> None:
        """Block until the connection is ready, or raise WaitTimeoutError."""
        if self.connection is None:
            raise DaprClientError("client has no connection to wait on")
        seconds = timeout.total_seconds() if isinstance(timeout, datetime.timedelta) else timeout
        deadline = time.monotonic() + seconds
        while True:
            state = ConnectivityState(self.connection.get_state())
            if state is ConnectivityState.READY:
                return
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise WaitTimeoutError()
            self.connection.wait_for_state_change(state, remaining)