from typing import Annotated

from annotated_types import Ge
from pydantic import PositiveFloat
from pydantic_settings import BaseSettings, SettingsConfigDict


class Config(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="TASKGRAPH_")

    default_max_attempts: Annotated[int, Ge(1)] = 3
    """Attempts for a task's execute callable when the task does not set its own."""

    retry_backoff_unit: PositiveFloat = 1.0
    """Seconds per backoff unit. The i-th retry waits i**2 units."""
