from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, NonNegativeInt

# execute(context, resource) -> Counters | Mapping[str, int] | None, maybe awaitable
ExecuteFn = Callable[..., Any]
# validate(context, resource) -> None, maybe awaitable
ValidateFn = Callable[..., Any]


class Counters(BaseModel):
    created: NonNegativeInt = 0
    updated: NonNegativeInt = 0
    skipped: NonNegativeInt = 0

    model_config = ConfigDict(extra="forbid", frozen=True)


@dataclass(frozen=True, kw_only=True, slots=True)
class Task:
    """
    A named unit of work. `execute` and `validate` receive the run context and the
    resource opened for this task, and may be coroutine functions or plain functions.

    Raise `TaskFailure` from either to report an ordinary failure; anything else is
    treated as a fault.
    """

    name: str
    execute: ExecuteFn
    dependencies: frozenset[str] = field(default_factory=frozenset)
    priority: int = 0
    validate: ValidateFn | None = None
    max_attempts: int | None = None
    continue_on_error: bool = False

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Tasks must have a non-empty name.")
        if not callable(self.execute):
            raise TypeError(f"Task '{self.name}' execute must be callable.")
        if self.validate is not None and not callable(self.validate):
            raise TypeError(f"Task '{self.name}' validate must be callable.")
        if self.max_attempts is not None and self.max_attempts < 1:
            raise ValueError(f"Task '{self.name}' max_attempts must be at least 1.")

        # accept any iterable of names, e.g. lists
        object.__setattr__(self, "dependencies", frozenset(self.dependencies))

    def __hash__(self) -> int:
        return hash(self.name)
