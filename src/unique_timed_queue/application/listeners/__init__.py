"""Event listener module."""

from enum import Enum
from typing import Any, Protocol, runtime_checkable


class EventType(str, Enum):
    """Queue event type enumeration."""

    ENQUEUE = "enqueue"


@runtime_checkable
class EventListener(Protocol):
    """Protocol for callbacks notified when an entry is admitted."""

    def __call__(self, entry: Any, /) -> None:
        """Handle an admitted entry.

        Args:
            entry: The entry that was appended to the admitted sequence.
        """
        ...
