from datetime import timedelta
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, computed_field

from .task import Counters


class ErrorKind(str, Enum):
    EXECUTION = "execution"
    VALIDATION = "validation"
    FAULT = "fault"
    RESOURCE = "resource"
    CANCELLED = "cancelled"


class Result(BaseModel):
    name: str
    success: bool
    duration: timedelta = timedelta(0)
    started_at: float | None = None
    finished_at: float | None = None
    created: int = 0
    updated: int = 0
    skipped: int = 0
    attempts: int = 0
    error: str | None = None
    error_kind: ErrorKind | None = None
    secondary_error: str | None = None
    dry_run: bool = False

    exception: BaseException | None = Field(default=None, exclude=True, repr=False)
    """The primary exception, kept for callers that want the traceback."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    @classmethod
    def previewed(cls, name: str) -> "Result":
        return cls(name=name, success=True, dry_run=True)

    @property
    def counters(self) -> Counters:
        return Counters(created=self.created, updated=self.updated, skipped=self.skipped)


class Statistics(BaseModel):
    results: tuple[Result, ...] = ()
    blocked: tuple[str, ...] = ()
    """Tasks that were never started because a dependency failed."""
    cancelled: bool = False
    dry_run: bool = False

    model_config = ConfigDict(frozen=True)

    @computed_field  # type: ignore[misc]
    @property
    def total(self) -> int:
        return len(self.results)

    @computed_field  # type: ignore[misc]
    @property
    def successful(self) -> int:
        return sum(1 for r in self.results if r.success)

    @computed_field  # type: ignore[misc]
    @property
    def failed(self) -> int:
        return self.total - self.successful

    @computed_field  # type: ignore[misc]
    @property
    def total_duration(self) -> timedelta:
        return sum((r.duration for r in self.results), timedelta(0))

    @computed_field  # type: ignore[misc]
    @property
    def created(self) -> int:
        return sum(r.created for r in self.results)

    @computed_field  # type: ignore[misc]
    @property
    def updated(self) -> int:
        return sum(r.updated for r in self.results)

    @computed_field  # type: ignore[misc]
    @property
    def skipped(self) -> int:
        return sum(r.skipped for r in self.results)

    def render(self) -> str:
        header = "Run summary (dry run)" if self.dry_run else "Run summary"
        lines = [header, "=" * len(header)]

        width = max((len(r.name) for r in self.results), default=0)
        for r in self.results:
            kind = r.error_kind.value if r.error_kind else "error"
            status = "ok" if r.success else f"FAILED ({kind})"
            lines.append(
                f"  {r.name:<{width}}  {status:<20} "
                f"{r.duration.total_seconds():8.3f}s"
                f"  +{r.created} ~{r.updated} ={r.skipped}"
            )
            if r.error:
                lines.append(f"      error: {r.error}")
            if r.secondary_error:
                lines.append(f"      secondary: {r.secondary_error}")

        for name in self.blocked:
            lines.append(f"  {name:<{width}}  blocked")

        lines.append(
            f"{self.total} tasks: {self.successful} succeeded, {self.failed} failed,"
            f" {len(self.blocked)} blocked in {self.total_duration.total_seconds():.3f}s"
        )
        lines.append(
            f"records: {self.created} created, {self.updated} updated,"
            f" {self.skipped} skipped"
        )
        if self.cancelled:
            lines.append("run was cancelled before all tasks started")

        return "\n".join(lines)


class StatisticsAggregator:
    """Append-only collector of task results for a single run."""

    def __init__(self, dry_run: bool = False) -> None:
        self.dry_run = dry_run
        self.cancelled = False
        self._results: list[Result] = []
        self._blocked: list[str] = []

    def fold(self, result: Result) -> None:
        self._results.append(result)

    def block(self, name: str) -> None:
        self._blocked.append(name)

    def cancel(self) -> None:
        self.cancelled = True

    @property
    def failed_names(self) -> set[str]:
        return {r.name for r in self._results if not r.success}

    @property
    def unavailable_names(self) -> set[str]:
        return self.failed_names | set(self._blocked)

    def summary(self) -> Statistics:
        return Statistics(
            results=tuple(self._results),
            blocked=tuple(self._blocked),
            cancelled=self.cancelled,
            dry_run=self.dry_run,
        )
