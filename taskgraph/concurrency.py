import inspect
import weakref
from functools import partial
from typing import TYPE_CHECKING

import anyio
import anyio.to_thread

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Callable
    from typing import Any


def is_async_callable(fn: "Callable[..., Any]") -> bool:
    while isinstance(fn, partial):
        fn = fn.func

    return inspect.iscoroutinefunction(fn) or inspect.iscoroutinefunction(
        getattr(fn, "__call__", None)
    )


async def invoke(fn: "Callable[..., Any]", *args: "Any") -> "Any":
    """
    Call `fn` with `args`, awaiting it if it is a coroutine function and otherwise
    running it in a worker thread so blocking bodies don't stall the event loop. An
    awaitable returned by a plain callable is awaited in the event loop.
    """
    if is_async_callable(fn):
        return await fn(*args)

    result = await anyio.to_thread.run_sync(partial(fn, *args))
    if inspect.isawaitable(result):
        return await result

    return result


class CancellationToken:
    """
    Cooperative stop signal for a run, optionally bound to a deadline on the event
    loop clock. Must be created and cancelled from within the running event loop.
    """

    def __init__(
        self,
        deadline: float | None = None,
        parent: "CancellationToken | None" = None,
    ) -> None:
        self.deadline = deadline
        self.parent = parent
        self._event = anyio.Event()
        self._children: "weakref.WeakSet[CancellationToken]" = weakref.WeakSet()

        if parent is not None:
            parent._children.add(self)
            if parent.cancelled:
                self._event.set()

    @classmethod
    def after(cls, seconds: float) -> "CancellationToken":
        return cls(deadline=anyio.current_time() + seconds)

    def child(self, timeout: float | None = None) -> "CancellationToken":
        """
        A token that fires when this one is cancelled or when its own deadline passes,
        whichever comes first. Cancelling the child leaves this token untouched.
        """
        deadline = self.deadline
        if timeout is not None:
            own_deadline = anyio.current_time() + timeout
            deadline = own_deadline if deadline is None else min(deadline, own_deadline)

        return CancellationToken(deadline=deadline, parent=self)

    def cancel(self) -> None:
        self._event.set()
        for child in list(self._children):
            child.cancel()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        elif self.parent is not None and self.parent.cancelled:
            return True

        return self.deadline is not None and anyio.current_time() >= self.deadline

    async def sleep(self, delay: float) -> bool:
        """Sleep for `delay` seconds. Returns False if the token fired first."""
        reaches_deadline = False
        if self.deadline is not None:
            remaining = max(self.deadline - anyio.current_time(), 0)
            if remaining <= delay:
                delay, reaches_deadline = remaining, True

        with anyio.move_on_after(delay):
            await self._event.wait()

        return not (reaches_deadline or self._event.is_set())
