"""Infrastructure layer."""

from unique_timed_queue.infrastructure.timed_queue import DelayedUniqueQueue

__all__ = ["DelayedUniqueQueue"]
