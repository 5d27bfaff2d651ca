import anyio
import pytest

from taskgraph import CancellationToken, TaskFailure, with_retry
from taskgraph.exceptions import TaskCancelledError


class RecordingToken(CancellationToken):
    def __init__(self, cancel_after: int | None = None) -> None:
        super().__init__()
        self.delays: list[float] = []
        self.cancel_after = cancel_after

    async def sleep(self, delay: float) -> bool:
        self.delays.append(delay)
        return self.cancel_after is None or len(self.delays) < self.cancel_after


def _failing(times: int):
    calls = []

    async def fn(value):
        calls.append(value)
        if len(calls) <= times:
            raise TaskFailure(f"failure {len(calls)}")

        return value

    return fn, calls


@pytest.mark.anyio
async def test_backoff_is_quadratic():
    fn, calls = _failing(3)
    token = RecordingToken()
    retrying = with_retry(fn, 4, token=token, backoff_unit=0.5)

    assert await retrying("x") == "x"
    assert calls == ["x"] * 4
    assert token.delays == [0.5, 2.0, 4.5]
    assert retrying.attempts == 4


@pytest.mark.anyio
async def test_last_error_surfaces():
    fn, calls = _failing(5)
    token = RecordingToken()
    retrying = with_retry(fn, 3, token=token)

    with pytest.raises(TaskFailure, match="failure 3"):
        await retrying("x")

    assert len(calls) == 3
    assert token.delays == [1.0, 4.0]


@pytest.mark.anyio
async def test_single_attempt_never_sleeps():
    fn, calls = _failing(1)
    token = RecordingToken()

    with pytest.raises(TaskFailure):
        await with_retry(fn, 1, token=token)("x")

    assert token.delays == []


@pytest.mark.anyio
async def test_cancellation_aborts_retrying():
    fn, calls = _failing(5)
    token = RecordingToken(cancel_after=2)

    with pytest.raises(TaskCancelledError) as exc_info:
        await with_retry(fn, 5, token=token, name="seed")("x")

    assert len(calls) == 2
    assert isinstance(exc_info.value.__cause__, TaskFailure)
    assert exc_info.value.task_name == "seed"


@pytest.mark.anyio
async def test_already_cancelled_token():
    fn, calls = _failing(5)
    token = CancellationToken()
    token.cancel()

    with pytest.raises(TaskCancelledError):
        await with_retry(fn, 5, token=token)("x")

    assert len(calls) == 1


@pytest.mark.anyio
async def test_sync_functions_are_retried():
    calls = []

    def fn():
        calls.append(1)
        if len(calls) < 2:
            raise OSError("flaky disk")

        return "done"

    assert await with_retry(fn, 2, token=RecordingToken())() == "done"
    assert len(calls) == 2


def test_invalid_attempts():
    with pytest.raises(ValueError):
        with_retry(lambda: None, 0, token=None)


@pytest.mark.anyio
async def test_token_deadline():
    token = CancellationToken.after(0.01)

    assert not token.cancelled
    assert not await token.sleep(1)

    await anyio.sleep(0.01)
    assert token.cancelled


@pytest.mark.anyio
async def test_child_token():
    parent = CancellationToken()
    child = parent.child(timeout=5)

    assert child.deadline is not None
    assert parent.deadline is None

    child.cancel()
    assert child.cancelled
    assert not parent.cancelled

    other = parent.child()
    parent.cancel()
    assert other.cancelled
    assert not await other.sleep(1)
