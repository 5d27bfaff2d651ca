from .concurrency import CancellationToken
from .config import Config
from .context import RunContext
from .exceptions import (
    ConfigurationError,
    CyclicDependencyError,
    DuplicateTaskError,
    ExecutionError,
    MissingDependencyError,
    RunCancelledError,
    RunError,
    TaskCancelledError,
    TaskFailure,
    TaskFaultError,
    TaskgraphError,
    UnknownTaskError,
)
from .executor import DryRunExecutor, Executor, LocalExecutor
from .options import RunOptions
from .orchestrator import Orchestrator
from .plan import ExecutionPlan
from .resource import NullResource, Resource, ResourceBoundary
from .retry import with_retry
from .statistics import ErrorKind, Result, Statistics, StatisticsAggregator
from .task import Counters, Task
from .topology import Topology

__all__ = [
    "CancellationToken",
    "Config",
    "ConfigurationError",
    "Counters",
    "CyclicDependencyError",
    "DryRunExecutor",
    "DuplicateTaskError",
    "ErrorKind",
    "ExecutionError",
    "ExecutionPlan",
    "Executor",
    "LocalExecutor",
    "MissingDependencyError",
    "NullResource",
    "Orchestrator",
    "Resource",
    "ResourceBoundary",
    "Result",
    "RunCancelledError",
    "RunContext",
    "RunError",
    "RunOptions",
    "Statistics",
    "StatisticsAggregator",
    "Task",
    "TaskCancelledError",
    "TaskFailure",
    "TaskFaultError",
    "TaskgraphError",
    "Topology",
    "UnknownTaskError",
    "with_retry",
]
