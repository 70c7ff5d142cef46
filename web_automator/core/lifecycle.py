"""
Driver lifecycle state machine: UNINITIALIZED -> STARTED -> QUIT (terminal).

Adapters own the native resources; this class only owns the state and the
rules about which transitions are allowed. Misuse that is harmless (starting
twice, quitting a session that is not running) is logged as a warning and
reported to the adapter as "nothing to do".
"""
# @file purpose: Session state and transition guards.

from __future__ import annotations

import logging
from enum import Enum

from .errors import NotStartedError, StartupError

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    STARTED = "started"
    QUIT = "quit"


class Lifecycle:
    def __init__(self, name: str) -> None:
        self.name = name
        self._state = SessionState.UNINITIALIZED

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_started(self) -> bool:
        return self._state is SessionState.STARTED

    def should_start(self) -> bool:
        """True when the adapter must allocate a session now."""
        if self._state is SessionState.STARTED:
            logger.warning("%s already started", self.name)
            return False
        if self._state is SessionState.QUIT:
            raise StartupError(
                "session already quit; create a new driver instance", operation="start"
            )
        return True

    def mark_started(self) -> None:
        self._state = SessionState.STARTED

    def require_started(self, operation: str) -> None:
        if self._state is not SessionState.STARTED:
            raise NotStartedError(
                f"driver is {self._state.value}; call start() first", operation=operation
            )

    def should_quit(self) -> bool:
        """True when the adapter must release its session now."""
        if self._state is not SessionState.STARTED:
            logger.warning("%s not started or already quit", self.name)
            return False
        return True

    def mark_quit(self) -> None:
        self._state = SessionState.QUIT
