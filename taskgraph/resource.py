import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from .concurrency import invoke

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Awaitable, Callable

    from .context import RunContext

    ResourceProvider = Callable[[RunContext], "Resource | Awaitable[Resource]"]

logger = logging.getLogger(__name__)


class Resource(ABC):
    """
    A transactional scope handed to a single task. Either method may be a coroutine
    function or a plain function.

    Plain functions, whether the provider, a task's `execute` and `validate` or these
    methods, each run in a worker thread, and successive calls are not guaranteed to
    land on the same thread. Handles bound to the thread that created them (e.g.
    `sqlite3` connections with `check_same_thread=True`) must either be opened with
    that check disabled or be driven from coroutine functions instead.
    """

    @abstractmethod
    def commit(self) -> "Awaitable[None] | None":
        raise NotImplementedError()

    @abstractmethod
    def rollback(self) -> "Awaitable[None] | None":
        raise NotImplementedError()


class NullResource(Resource):
    async def commit(self) -> None:
        pass

    async def rollback(self) -> None:
        pass


async def null_provider(context: "RunContext") -> NullResource:
    return NullResource()


class ResourceBoundary:
    """
    Opens one resource from a provider and closes it exactly once. Errors raised while
    closing are returned instead of raised so they never mask a task's own error.
    """

    def __init__(self, provider: "ResourceProvider") -> None:
        self.provider = provider
        self.resource: Resource | None = None
        self._closed = False

    async def open(self, context: "RunContext") -> Resource:
        self.resource = await invoke(self.provider, context)
        return self.resource

    async def commit(self) -> Exception | None:
        return await self._close("commit")

    async def rollback(self) -> Exception | None:
        return await self._close("rollback")

    async def _close(self, action: str) -> Exception | None:
        if self.resource is None or self._closed:
            return None

        self._closed = True
        try:
            await invoke(getattr(self.resource, action))
        except Exception as e:
            logger.error("Resource %s failed: %s", action, e)
            return e

        return None
