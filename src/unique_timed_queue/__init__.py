"""In-memory queue that admits unique entries after a resettable delay."""

from unique_timed_queue.application.listeners import EventListener, EventType
from unique_timed_queue.domain.errors import InvalidConfigurationError, QueueError
from unique_timed_queue.domain.keys import key_of
from unique_timed_queue.infrastructure import DelayedUniqueQueue

__all__ = [
    "DelayedUniqueQueue",
    "EventListener",
    "EventType",
    "InvalidConfigurationError",
    "QueueError",
    "key_of",
]
