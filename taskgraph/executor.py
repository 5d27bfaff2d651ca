import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

import anyio

from .exceptions import ExecutionError, RunCancelledError
from .resource import null_provider
from .runner import TaskRunner
from .statistics import ErrorKind, Result, StatisticsAggregator

if TYPE_CHECKING:  # pragma: no cover
    from .config import Config
    from .context import RunContext
    from .plan import ExecutionPlan
    from .resource import ResourceProvider
    from .statistics import Statistics
    from .task import Task

logger = logging.getLogger(__name__)


class Executor(ABC):
    def __init__(
        self, config: "Config", provider: "ResourceProvider | None" = None
    ) -> None:
        self.config = config
        self.provider = provider or null_provider

    async def start(self, plan: "ExecutionPlan", context: "RunContext") -> "Statistics":
        """
        Run every partition of the plan in order, returning the collected statistics.
        Raises `RunCancelledError` or `ExecutionError`, carrying the partial
        statistics, if the run did not complete successfully.
        """
        aggregator = StatisticsAggregator(dry_run=context.options.dry_run)
        logger.info(
            "Starting run %s with %d tasks (%s)",
            context.run_id,
            len(plan.order),
            "parallel" if plan.parallel else "sequential",
        )

        while not self._halted(plan, aggregator):
            try:
                partition: list["Task"] = plan.proceed()
            except IndexError:
                break

            await self.dispatch(partition, aggregator, context)

        statistics = aggregator.summary()
        logger.info(
            "Finished run %s: %d succeeded, %d failed, %d blocked",
            context.run_id,
            statistics.successful,
            statistics.failed,
            len(statistics.blocked),
        )

        if statistics.cancelled:
            raise RunCancelledError(statistics)
        elif statistics.failed:
            raise ExecutionError(statistics)

        return statistics

    def _halted(self, plan: "ExecutionPlan", aggregator: StatisticsAggregator) -> bool:
        if aggregator.cancelled:
            return True

        continuable = {
            task.name
            for partition in plan.partitions
            for task in partition
            if task.continue_on_error
        }
        return bool(aggregator.failed_names - continuable)

    def _admit(
        self, task: "Task", aggregator: StatisticsAggregator, context: "RunContext"
    ) -> bool:
        """Decide whether a task may start now, recording why not if it may not."""
        if aggregator.cancelled or context.token.cancelled:
            if not aggregator.cancelled:
                logger.warning("Run %s cancelled before '%s'", context.run_id, task.name)

            aggregator.cancel()
            return False

        if unavailable := task.dependencies & aggregator.unavailable_names:
            logger.warning(
                "Task '%s' blocked by failed dependencies: %s",
                task.name,
                sorted(unavailable),
            )
            aggregator.block(task.name)
            return False

        return True

    @abstractmethod
    async def dispatch(
        self,
        partition: list["Task"],
        aggregator: StatisticsAggregator,
        context: "RunContext",
    ) -> None:
        raise NotImplementedError()


class LocalExecutor(Executor):
    """
    Runs every task of a partition concurrently in the current event loop. The
    partition only finishes once all of its tasks have finished.
    """

    async def _run_task(
        self, task: "Task", aggregator: StatisticsAggregator, context: "RunContext"
    ) -> None:
        if not self._admit(task, aggregator, context):
            return

        result = await TaskRunner(task, self.provider, self.config).run(context)
        aggregator.fold(result)

        if result.error_kind is ErrorKind.CANCELLED:
            aggregator.cancel()

    async def dispatch(
        self,
        partition: list["Task"],
        aggregator: StatisticsAggregator,
        context: "RunContext",
    ) -> None:
        async with anyio.create_task_group() as tg:
            for task in partition:
                tg.start_soon(
                    self._run_task,
                    task,
                    aggregator,
                    context,
                    name=f"{context.run_id}:{task.name}",
                )


class DryRunExecutor(Executor):
    """Previews a plan by recording a zero-duration success for every task."""

    async def dispatch(
        self,
        partition: list["Task"],
        aggregator: StatisticsAggregator,
        context: "RunContext",
    ) -> None:
        for task in partition:
            aggregator.fold(Result.previewed(task.name))
