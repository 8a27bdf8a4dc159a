"""Configuration module for unique_timed_queue."""

from unique_timed_queue.config.loader import (
    ConfigError,
    ConfigFileNotFoundError,
    ConfigParseError,
    EnvVarNotFoundError,
    load_config,
)
from unique_timed_queue.config.models import (
    DEFAULT_ENQUEUE_DELAY_MS,
    AppConfig,
    LoggingConfig,
    QueueConfig,
)

__all__ = [
    # Exceptions
    "ConfigError",
    "ConfigFileNotFoundError",
    "ConfigParseError",
    "EnvVarNotFoundError",
    # Functions
    "load_config",
    # Models
    "DEFAULT_ENQUEUE_DELAY_MS",
    "AppConfig",
    "LoggingConfig",
    "QueueConfig",
]
