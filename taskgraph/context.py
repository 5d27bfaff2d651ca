from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from uuid import UUID

    from .concurrency import CancellationToken
    from .options import RunOptions


@dataclass(frozen=True, kw_only=True, slots=True)
class RunContext:
    run_id: "UUID"
    options: "RunOptions"
    token: "CancellationToken"
    task_name: str | None = None

    @property
    def cancelled(self) -> bool:
        return self.token.cancelled
