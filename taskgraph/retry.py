import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .concurrency import invoke
from .exceptions import TaskCancelledError

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Callable
    from typing import Any

    from .concurrency import CancellationToken

logger = logging.getLogger(__name__)


@dataclass
class RetryWrapper:
    fn: "Callable[..., Any]"
    max_attempts: int
    token: "CancellationToken"
    backoff_unit: float = 1.0
    name: str | None = None
    attempts: int = 0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1.")

    async def __call__(self, *args: "Any") -> "Any":
        for attempt in range(1, self.max_attempts + 1):
            self.attempts = attempt

            try:
                return await invoke(self.fn, *args)
            except Exception as e:
                if attempt == self.max_attempts:
                    raise

                delay = attempt**2 * self.backoff_unit
                logger.warning(
                    "Attempt %d/%d of '%s' failed (%s), retrying in %.3fs",
                    attempt,
                    self.max_attempts,
                    self.name or getattr(self.fn, "__name__", self.fn),
                    e,
                    delay,
                )

                if self.token.cancelled or not await self.token.sleep(delay):
                    raise TaskCancelledError(self.name) from e


def with_retry(
    fn: "Callable[..., Any]",
    max_attempts: int,
    *,
    token: "CancellationToken",
    backoff_unit: float = 1.0,
    name: str | None = None,
) -> RetryWrapper:
    """
    Wrap `fn` so that failures are retried up to `max_attempts` total attempts, waiting
    `i**2 * backoff_unit` seconds after the i-th failure. The token aborts retrying.
    """
    return RetryWrapper(
        fn=fn,
        max_attempts=max_attempts,
        token=token,
        backoff_unit=backoff_unit,
        name=name,
    )
