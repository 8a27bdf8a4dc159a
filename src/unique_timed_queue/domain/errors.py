"""Domain errors raised by the delayed unique queue."""


class QueueError(Exception):
    """Base exception for queue errors."""


class InvalidConfigurationError(QueueError, ValueError):
    """Raised when a queue is constructed with an invalid configuration."""
