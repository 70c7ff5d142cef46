import time

import pytest

from web_automator.core.errors import WaitTimeoutError
from web_automator.core.waits import Deadline, WaitKind, async_wait_until, wait_until


def test_deadline_arithmetic() -> None:
    d = Deadline(1000)
    assert not d.expired
    assert 0 < d.remaining_ms() <= 1000
    assert d.remaining_s() <= 1.0
    assert Deadline(0).expired
    assert Deadline(-5).timeout_ms == 0


def test_returns_when_predicate_holds() -> None:
    calls = []

    def pred() -> bool:
        calls.append(1)
        return len(calls) >= 3

    wait_until(pred, Deadline(2000), kind=WaitKind.VISIBLE, interval_ms=10)
    assert len(calls) == 3


def test_timeout_is_bounded() -> None:
    start = time.monotonic()
    with pytest.raises(WaitTimeoutError) as ei:
        wait_until(lambda: False, Deadline(250), kind=WaitKind.VISIBLE, selector="#x")
    elapsed_ms = (time.monotonic() - start) * 1000

    assert 250 <= elapsed_ms < 250 + 400
    err = ei.value
    assert err.kind == "visible"
    assert err.timeout_ms == 250
    assert err.selector == "#x"
    assert err.operation == "wait_for_visible"


def test_ignored_errors_count_as_not_yet() -> None:
    def pred() -> bool:
        raise LookupError("stale")

    with pytest.raises(WaitTimeoutError) as ei:
        wait_until(pred, Deadline(120), kind=WaitKind.INTERACTABLE, ignored=(LookupError,))
    assert isinstance(ei.value.cause, LookupError)


def test_other_errors_propagate() -> None:
    def pred() -> bool:
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        wait_until(pred, Deadline(1000), kind=WaitKind.VISIBLE)


@pytest.mark.asyncio
async def test_async_wait_until() -> None:
    state = {"n": 0}

    async def pred() -> bool:
        state["n"] += 1
        return state["n"] > 1

    await async_wait_until(pred, Deadline(1000), kind=WaitKind.VISIBLE, interval_ms=10)
    assert state["n"] == 2


@pytest.mark.asyncio
async def test_async_timeout_is_bounded() -> None:
    async def never() -> bool:
        return False

    start = time.monotonic()
    with pytest.raises(WaitTimeoutError) as ei:
        await async_wait_until(
            never, Deadline(200), kind=WaitKind.INTERACTABLE, operation="click"
        )
    assert (time.monotonic() - start) * 1000 >= 200
    assert ei.value.operation == "click"
