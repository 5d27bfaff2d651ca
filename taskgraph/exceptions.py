from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from typing import Any

    from .statistics import Result, Statistics


class TaskgraphError(Exception):
    def __init__(self, *args: "Any", **kwargs: "Any") -> None:
        super().__init__(*args, **kwargs)


##
## CONFIGURATION
##


class ConfigurationError(TaskgraphError):
    def __init__(self, message: str) -> None:
        super().__init__(message)


class DuplicateTaskError(ConfigurationError):
    def __init__(self, task_name: str) -> None:
        self.task_name = task_name
        super().__init__(f"Task '{task_name}' is already registered.")


class MissingDependencyError(ConfigurationError):
    def __init__(self, task_name: str, dependency: str) -> None:
        self.task_name = task_name
        self.dependency = dependency
        super().__init__(
            f"Task '{task_name}' depends on '{dependency}', which is not registered."
        )


class UnknownTaskError(ConfigurationError):
    def __init__(self, task_names: set[str]) -> None:
        self.task_names = task_names
        super().__init__(f"Cannot select unregistered tasks: {sorted(task_names)}.")


class CyclicDependencyError(ConfigurationError):
    def __init__(self, cycles: list[tuple[str, ...]]) -> None:
        self.cycles = cycles
        cycle_str = "\n  ".join(" -> ".join((*cycle, cycle[0])) for cycle in cycles)
        super().__init__(
            "Tasks cannot contain dependency cycles. Offending cycles:\n"
            f"  {cycle_str}"
        )


##
## TASK EXECUTION
##


class TaskFailure(TaskgraphError):
    """Raised by a task body to report an ordinary, expected failure."""


class TaskFaultError(TaskgraphError):
    """An unexpected exception escaped a task body and was recovered."""

    def __init__(self, task_name: str, exc: BaseException) -> None:
        self.task_name = task_name
        super().__init__(
            f"Task '{task_name}' faulted: {type(exc).__name__}: {exc}"
        )


class TaskCancelledError(TaskgraphError):
    def __init__(self, task_name: str | None = None) -> None:
        self.task_name = task_name
        super().__init__(
            f"Task '{task_name}' was cancelled."
            if task_name
            else "Run was cancelled."
        )


##
## RUN
##


class RunError(TaskgraphError):
    def __init__(self, message: str, statistics: "Statistics") -> None:
        self.statistics = statistics
        super().__init__(message)


class ExecutionError(RunError):
    def __init__(self, statistics: "Statistics") -> None:
        self.failures: list["Result"] = [r for r in statistics.results if not r.success]
        failure_str = "\n  ".join(f"{r.name}: {r.error}" for r in self.failures)
        super().__init__(
            f"{len(self.failures)} of {statistics.total} tasks failed:\n"
            f"  {failure_str}",
            statistics,
        )


class RunCancelledError(RunError):
    def __init__(self, statistics: "Statistics") -> None:
        # failures caused by the tasks themselves, not by the cancellation
        self.failures: list["Result"] = [
            r
            for r in statistics.results
            if not r.success and r.error_kind != "cancelled"
        ]
        message = f"Run was cancelled after {statistics.total} tasks."
        if self.failures:
            failure_str = "\n  ".join(f"{r.name}: {r.error}" for r in self.failures)
            message += f" {len(self.failures)} tasks failed:\n  {failure_str}"

        super().__init__(message, statistics)
