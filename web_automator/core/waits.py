"""
Bounded polling shared by both engines.

The engines' own locate-with-timeout primitive performs the PRESENT step;
VISIBLE and INTERACTABLE checks are layered on top and re-polled against the
same `Deadline` until they hold or the budget is spent. Expiry always
surfaces as `WaitTimeoutError`, never as a native exception.

`wait_until` blocks the calling thread between polls; `async_wait_until`
suspends instead. Both use the same deadline arithmetic.
"""

from __future__ import annotations

import asyncio
import logging
import time
from enum import Enum
from typing import Awaitable, Callable

from .errors import WaitTimeoutError

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_MS = 100


class WaitKind(str, Enum):
    PRESENT = "present"
    VISIBLE = "visible"
    INTERACTABLE = "interactable"


class Deadline:
    """A monotonic time budget in milliseconds."""

    def __init__(self, timeout_ms: int) -> None:
        self.timeout_ms = max(0, int(timeout_ms))
        self._start = time.monotonic()

    def elapsed_ms(self) -> int:
        return int((time.monotonic() - self._start) * 1000)

    def remaining_ms(self) -> int:
        return max(0, self.timeout_ms - self.elapsed_ms())

    def remaining_s(self) -> float:
        return self.remaining_ms() / 1000.0

    @property
    def expired(self) -> bool:
        return time.monotonic() - self._start >= self.timeout_ms / 1000.0


def _timeout_error(
    kind: WaitKind,
    selector: str | None,
    deadline: Deadline,
    last_error: BaseException | None,
    operation: str | None,
) -> WaitTimeoutError:
    return WaitTimeoutError(
        f"element not {kind.value} within {deadline.timeout_ms}ms",
        kind=kind.value,
        timeout_ms=deadline.timeout_ms,
        selector=selector,
        operation=operation or f"wait_for_{kind.value}",
        cause=last_error,
    )


def wait_until(
    predicate: Callable[[], bool],
    deadline: Deadline,
    *,
    kind: WaitKind,
    selector: str | None = None,
    ignored: tuple[type[BaseException], ...] = (),
    interval_ms: int = DEFAULT_POLL_INTERVAL_MS,
    operation: str | None = None,
) -> None:
    """
    Poll `predicate` until it returns True or `deadline` expires.
    Exceptions listed in `ignored` count as "not yet".
    """
    last_error: BaseException | None = None
    while True:
        try:
            if predicate():
                logger.debug("%s condition met after %dms", kind.value, deadline.elapsed_ms())
                return
        except ignored as e:
            last_error = e
        if deadline.expired:
            raise _timeout_error(kind, selector, deadline, last_error, operation)
        time.sleep(min(interval_ms, max(deadline.remaining_ms(), 1)) / 1000.0)


async def async_wait_until(
    predicate: Callable[[], Awaitable[bool]],
    deadline: Deadline,
    *,
    kind: WaitKind,
    selector: str | None = None,
    ignored: tuple[type[BaseException], ...] = (),
    interval_ms: int = DEFAULT_POLL_INTERVAL_MS,
    operation: str | None = None,
) -> None:
    """Suspending counterpart of `wait_until`; `predicate` is a coroutine function."""
    last_error: BaseException | None = None
    while True:
        try:
            if await predicate():
                logger.debug("%s condition met after %dms", kind.value, deadline.elapsed_ms())
                return
        except ignored as e:
            last_error = e
        if deadline.expired:
            raise _timeout_error(kind, selector, deadline, last_error, operation)
        await asyncio.sleep(min(interval_ms, max(deadline.remaining_ms(), 1)) / 1000.0)
