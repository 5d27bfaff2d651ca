from datetime import timedelta

from pydantic import BaseModel, ConfigDict


class RunOptions(BaseModel):
    dry_run: bool = False
    """Record a synthetic success for every task without running any bodies."""

    parallel: bool = False
    """Run each dependency level concurrently instead of one task at a time."""

    only: frozenset[str] | None = None
    """Run only these tasks and their transitive dependencies."""

    timeout: timedelta | None = None
    """Stop starting new tasks once this much time has passed."""

    model_config = ConfigDict(extra="forbid", frozen=True)
