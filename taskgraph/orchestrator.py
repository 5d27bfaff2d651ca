import logging
from typing import TYPE_CHECKING
from uuid import uuid4

import anyio
import sniffio

from .concurrency import CancellationToken
from .config import Config
from .context import RunContext
from .exceptions import DuplicateTaskError
from .executor import DryRunExecutor, LocalExecutor
from .options import RunOptions
from .plan import ExecutionPlan
from .task import Task
from .topology import Topology

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Callable, Iterable
    from typing import Any

    from .executor import Executor
    from .resource import ResourceProvider
    from .statistics import Statistics
    from .task import ExecuteFn, ValidateFn

logger = logging.getLogger(__name__)


class Orchestrator:
    """
    A registry of tasks that can be resolved into a dependency-respecting plan and
    run, sequentially or one dependency level at a time.

    ```python
    orchestrator = Orchestrator(provider=open_transaction)

    @orchestrator.task(priority=1)
    async def roles(context, tx): ...

    @orchestrator.task(dependencies={"roles"}, priority=2)
    async def users(context, tx):
        return Counters(created=10)

    statistics = await orchestrator.run(RunOptions(parallel=True))
    ```
    """

    def __init__(
        self, provider: "ResourceProvider | None" = None, **settings: "Any"
    ) -> None:
        self.config = Config(**settings)
        self.provider = provider
        self._tasks: dict[str, Task] = {}

    @property
    def tasks(self) -> tuple[Task, ...]:
        return tuple(self._tasks.values())

    def register(self, task: Task) -> Task:
        if task.name in self._tasks:
            raise DuplicateTaskError(task.name)

        self._tasks[task.name] = task
        return task

    def task(
        self,
        name: str | None = None,
        *,
        dependencies: "Iterable[str]" = (),
        priority: int = 0,
        validate: "ValidateFn | None" = None,
        max_attempts: int | None = None,
        continue_on_error: bool = False,
    ) -> "Callable[[ExecuteFn], Task]":
        """Register the decorated function as a task's execute callable."""

        def decorator(fn: "ExecuteFn") -> Task:
            return self.register(
                Task(
                    name=name or fn.__name__,
                    execute=fn,
                    dependencies=frozenset(dependencies),
                    priority=priority,
                    validate=validate,
                    max_attempts=max_attempts,
                    continue_on_error=continue_on_error,
                )
            )

        return decorator

    def resolve(self, options: RunOptions | None = None) -> ExecutionPlan:
        options = options or RunOptions()
        topology = Topology.resolve(self._tasks.values(), only=options.only)
        return ExecutionPlan.from_topology(topology, parallel=options.parallel)

    def executor(self, options: RunOptions) -> "Executor":
        if options.dry_run:
            return DryRunExecutor(self.config, self.provider)

        return LocalExecutor(self.config, self.provider)

    async def run(
        self,
        options: RunOptions | None = None,
        *,
        token: CancellationToken | None = None,
    ) -> "Statistics":
        options = options or RunOptions()

        # configuration errors surface here, before anything runs
        plan = self.resolve(options)

        # the run gets its own token so the timeout never leaks onto the caller's
        run_token = (token or CancellationToken()).child(
            options.timeout.total_seconds() if options.timeout is not None else None
        )

        context = RunContext(run_id=plan.uuid, options=options, token=run_token)
        return await self.executor(options).start(plan, context)

    def run_sync(
        self, options: RunOptions | None = None, *, backend: str = "asyncio"
    ) -> "Statistics":
        """Blocking counterpart of `run` for callers outside of an event loop."""
        try:
            sniffio.current_async_library()
        except sniffio.AsyncLibraryNotFoundError:
            return anyio.run(self.run, options, backend=backend)

        raise RuntimeError(
            "Calling run_sync within an event loop is forbidden. Await `run` instead."
        )
