"""Registry of queue event listeners."""

from typing import Any

from structlog.stdlib import BoundLogger

from unique_timed_queue.application.listeners import EventListener, EventType
from unique_timed_queue.domain.keys import generate_listener_id


class EventListenerRegistry:
    """Registry mapping event types to listeners keyed by listener id.

    Listeners for a type are dispatched in registration order.
    """

    def __init__(self, logger: BoundLogger) -> None:
        """Initialize the registry.

        Args:
            logger: Logger used to report failing listeners.
        """
        self._logger = logger
        self._listeners: dict[EventType, dict[str, EventListener]] = {
            event_type: {} for event_type in EventType
        }

    @staticmethod
    def _resolve(event_type: EventType | str) -> EventType:
        try:
            return EventType(event_type)
        except ValueError:
            raise ValueError(f"Unknown event type: {event_type!r}") from None

    def add(self, event_type: EventType | str, listener: EventListener) -> str:
        """Register a listener.

        Args:
            event_type: The event type to listen for.
            listener: Callback invoked with the admitted entry.

        Returns:
            The listener id to pass to :meth:`remove`.

        Raises:
            ValueError: If the event type is unknown.
        """
        listener_id = generate_listener_id()
        self._listeners[self._resolve(event_type)][listener_id] = listener
        return listener_id

    def remove(self, event_type: EventType | str, listener_id: str) -> None:
        """Unregister a listener. Unknown ids are ignored.

        Raises:
            ValueError: If the event type is unknown.
        """
        self._listeners[self._resolve(event_type)].pop(listener_id, None)

    def count(self, event_type: EventType | str) -> int:
        """Return the number of listeners registered for an event type."""
        return len(self._listeners[self._resolve(event_type)])

    def dispatch(self, event_type: EventType, entry: Any) -> None:
        """Invoke every listener for ``event_type`` with ``entry``.

        A listener that raises is logged and skipped; the remaining listeners
        still run.
        """
        # Copy so listeners may unregister themselves while being dispatched
        for listener_id, listener in list(self._listeners[event_type].items()):
            try:
                listener(entry)
            except Exception:
                self._logger.exception(
                    "Event listener failed",
                    event_type=event_type.value,
                    listener_id=listener_id,
                )
