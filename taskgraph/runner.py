import logging
from dataclasses import dataclass, replace
from datetime import timedelta
from typing import TYPE_CHECKING

import anyio

from .concurrency import invoke
from .exceptions import TaskCancelledError, TaskFailure, TaskFaultError
from .resource import ResourceBoundary
from .retry import with_retry
from .statistics import ErrorKind, Result
from .task import Counters

if TYPE_CHECKING:  # pragma: no cover
    from typing import Any

    from .config import Config
    from .context import RunContext
    from .resource import ResourceProvider
    from .task import Task

logger = logging.getLogger(__name__)


@dataclass
class TaskRunner:
    """
    Runs a single task inside its own resource boundary and turns every outcome,
    including unexpected exceptions, into a `Result`.
    """

    task: "Task"
    provider: "ResourceProvider"
    config: "Config"

    def _classify(self, exc: Exception, validating: bool) -> tuple[ErrorKind, Exception]:
        if isinstance(exc, TaskCancelledError):
            return ErrorKind.CANCELLED, exc
        elif isinstance(exc, TaskFailure):
            return (ErrorKind.VALIDATION if validating else ErrorKind.EXECUTION), exc

        fault = TaskFaultError(self.task.name, exc)
        fault.__cause__ = exc
        return ErrorKind.FAULT, fault

    async def run(self, context: "RunContext") -> Result:
        context = replace(context, task_name=self.task.name)
        boundary = ResourceBoundary(self.provider)
        started_at = anyio.current_time()

        counters = Counters()
        error: Exception | None = None
        error_kind: ErrorKind | None = None
        secondary: Exception | None = None

        execute = with_retry(
            self.task.execute,
            self.task.max_attempts or self.config.default_max_attempts,
            token=context.token,
            backoff_unit=self.config.retry_backoff_unit,
            name=self.task.name,
        )

        try:
            resource: "Any" = await boundary.open(context)
        except Exception as e:
            error, error_kind = e, ErrorKind.RESOURCE
        else:
            validating = False
            try:
                raw = await execute(context, resource)
                if raw is not None:
                    counters = Counters.model_validate(raw)

                if self.task.validate is not None:
                    validating = True
                    await invoke(self.task.validate, context, resource)
            except Exception as e:
                error_kind, error = self._classify(e, validating)

            if error is None:
                if commit_error := await boundary.commit():
                    error, error_kind = commit_error, ErrorKind.RESOURCE
            else:
                secondary = await boundary.rollback()

        finished_at = anyio.current_time()
        result = Result(
            name=self.task.name,
            success=error is None,
            duration=timedelta(seconds=finished_at - started_at),
            started_at=started_at,
            finished_at=finished_at,
            created=counters.created,
            updated=counters.updated,
            skipped=counters.skipped,
            attempts=execute.attempts,
            error=str(error) if error is not None else None,
            error_kind=error_kind,
            secondary_error=str(secondary) if secondary is not None else None,
            exception=error,
        )

        if result.success:
            logger.info(
                "Task '%s' succeeded in %.3fs", result.name, result.duration.total_seconds()
            )
        elif error_kind is ErrorKind.FAULT:
            logger.error(
                "Task '%s' faulted", result.name, exc_info=error.__cause__
            )
        else:
            logger.error("Task '%s' failed (%s): %s", result.name, error_kind.value, error)

        return result
