"""Domain entities."""

from unique_timed_queue.domain.entities.pending import PendingRecord

__all__ = ["PendingRecord"]
