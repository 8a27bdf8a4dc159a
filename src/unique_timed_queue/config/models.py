"""Pydantic models for queue configuration."""

from typing import Literal

from pydantic import BaseModel, Field

DEFAULT_ENQUEUE_DELAY_MS = 60_000


class QueueConfig(BaseModel):
    """Delayed unique queue configuration."""

    enqueue_delay_ms: int = Field(
        default=DEFAULT_ENQUEUE_DELAY_MS,
        ge=0,
        description=(
            "Default delay in milliseconds before a submitted entry is admitted. "
            "Zero admits immediately and disables uniqueness collapsing."
        ),
    )
    suppress_admitted_duplicates: bool = Field(
        default=False,
        description=(
            "Skip admission when an entry with the same key is already "
            "waiting in the admitted sequence."
        ),
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["json", "text"] = "json"


class AppConfig(BaseModel):
    """Application configuration."""

    queue: QueueConfig = Field(default_factory=QueueConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
