"""DelayedUniqueQueue implementation with delayed, deduplicated admission."""

import asyncio
import weakref
from collections import deque
from collections.abc import Callable, Iterable
from typing import Any, Generic, TypeVar

from structlog.stdlib import BoundLogger

from unique_timed_queue.application.listeners import EventListener, EventType
from unique_timed_queue.application.listeners.registry import EventListenerRegistry
from unique_timed_queue.config.models import DEFAULT_ENQUEUE_DELAY_MS, QueueConfig
from unique_timed_queue.domain.entities.pending import PendingRecord
from unique_timed_queue.domain.errors import InvalidConfigurationError
from unique_timed_queue.domain.keys import key_of
from unique_timed_queue.infrastructure.logging import get_logger

T = TypeVar("T")


def _cancel_timers(pending: dict[str, PendingRecord]) -> None:
    """Cancel and drop every pending record.

    Used as the exit finalizer, so it must not reference the queue itself.
    """
    for record in pending.values():
        record.cancel()
    pending.clear()


class DelayedUniqueQueue(Generic[T]):
    """In-memory queue that admits unique entries after a delay.

    Submitting an entry arms a timer keyed by ``key_func(entry)``.
    Resubmitting an entry with the same key before the timer fires cancels
    the old timer and arms a new one, so a burst of equivalent submissions
    produces a single admission once the burst goes quiet.

    Supports:
    - Delay reset on resubmission
    - Immediate admission for zero or negative delays
    - Forced admission of everything still pending
    - ``"enqueue"`` listeners notified on every admission

    Timers run on an asyncio event loop: the one given at construction,
    otherwise the loop running when :meth:`submit` is called.
    """

    def __init__(
        self,
        enqueue_delay_ms: int = DEFAULT_ENQUEUE_DELAY_MS,
        *,
        suppress_admitted_duplicates: bool = False,
        key_func: Callable[[Any], str] = key_of,
        loop: asyncio.AbstractEventLoop | None = None,
        logger: BoundLogger | None = None,
    ) -> None:
        """Initialize the queue.

        Args:
            enqueue_delay_ms: Default admission delay in milliseconds.
            suppress_admitted_duplicates: Skip admitting an entry whose key
                is already present in the admitted sequence.
            key_func: Derives the deduplication key of an entry.
            loop: Event loop used for admission timers.
            logger: Logger instance.

        Raises:
            InvalidConfigurationError: If ``enqueue_delay_ms`` is negative.
        """
        if enqueue_delay_ms < 0:
            raise InvalidConfigurationError(
                f"enqueue_delay_ms must be non-negative, got {enqueue_delay_ms}"
            )

        self._logger = logger if logger is not None else get_logger(__name__)
        if enqueue_delay_ms == 0:
            self._logger.warning(
                "enqueue_delay_ms is 0, entries are admitted immediately "
                "and uniqueness is not enforced"
            )

        self._enqueue_delay_ms = enqueue_delay_ms
        self._suppress_duplicates = suppress_admitted_duplicates
        self._key_func = key_func
        self._loop = loop
        self._pending: dict[str, PendingRecord] = {}
        self._queue: deque[T] = deque()
        self._listeners = EventListenerRegistry(self._logger)

        # Runs at interpreter exit, on close(), or when the queue is collected
        self._finalizer = weakref.finalize(self, _cancel_timers, self._pending)

    @classmethod
    def from_config(
        cls, config: QueueConfig, logger: BoundLogger | None = None
    ) -> "DelayedUniqueQueue[Any]":
        """Create a queue from a QueueConfig."""
        return cls(
            config.enqueue_delay_ms,
            suppress_admitted_duplicates=config.suppress_admitted_duplicates,
            logger=logger,
        )

    def __enter__(self) -> "DelayedUniqueQueue[T]":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __len__(self) -> int:
        return len(self._queue)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(enqueue_delay_ms={self._enqueue_delay_ms}, "
            f"size={len(self._queue)}, pending={len(self._pending)})"
        )

    @property
    def closed(self) -> bool:
        """Return True once the exit hook has run."""
        return not self._finalizer.alive

    def close(self) -> None:
        """Cancel all pending timers and detach the exit hook.

        Admitted entries stay available for dequeue. Calling close more than
        once is a no-op.
        """
        if self._finalizer.alive:
            self._logger.debug("Closing queue", pending=len(self._pending))
        self._finalizer()

    # Submission

    def submit(self, entry: T, delay_ms: int | None = None) -> None:
        """Schedule an entry for admission.

        A pending entry with the same key is canceled first, so its delay
        starts over.

        Args:
            entry: The entry to admit.
            delay_ms: Delay for this entry in milliseconds. Defaults to the
                queue's default delay. Zero or negative admits immediately.

        Raises:
            RuntimeError: If a timer is needed and no event loop is available.
        """
        key = self._key_func(entry)
        delay = delay_ms if delay_ms is not None else self._enqueue_delay_ms
        if delay <= 0:
            self._cancel_key(key)
            self._logger.debug("Admitting entry immediately", key=key)
            self._admit(key, entry)
            return

        # May raise; the existing pending record must survive that
        loop = self._loop if self._loop is not None else asyncio.get_running_loop()
        self._cancel_key(key)
        timer = loop.call_later(delay / 1000, self._on_timer, key)
        self._pending[key] = PendingRecord(key=key, value=entry, timer=timer)
        self._logger.debug("Entry pending", key=key, delay_ms=delay)

    enqueue = submit

    def submit_all(self, entries: Iterable[T], delay_ms: int | None = None) -> None:
        """Submit each entry in iteration order.

        A failing submission is logged and does not stop the remaining ones.
        """
        for entry in entries:
            try:
                self.submit(entry, delay_ms)
            except Exception:
                self._logger.exception("Failed to submit entry", entry=repr(entry))

    enqueue_all = submit_all

    def force_admit_pending(self) -> None:
        """Admit every pending entry now, in the order they became pending."""
        for key in list(self._pending):
            record = self._pending.pop(key)
            record.cancel()
            self._logger.debug("Admitting pending entry early", key=key)
            self._admit(key, record.value)

    enqueue_pending = force_admit_pending

    def _on_timer(self, key: str) -> None:
        record = self._pending.pop(key, None)
        if record is None:
            return
        self._logger.debug("Admission timer fired", key=key)
        self._admit(key, record.value)

    def _admit(self, key: str, entry: T) -> None:
        if self._suppress_duplicates and any(
            self._key_func(admitted) == key for admitted in self._queue
        ):
            self._logger.debug("Entry already admitted, skipping", key=key)
            return
        self._queue.append(entry)
        self._listeners.dispatch(EventType.ENQUEUE, entry)

    # Consumption

    def dequeue(self) -> T | None:
        """Remove and return the oldest admitted entry, or None if empty."""
        if not self._queue:
            return None
        return self._queue.popleft()

    # Cancellation

    def _cancel_key(self, key: str) -> bool:
        record = self._pending.pop(key, None)
        if record is None:
            return False
        record.cancel()
        self._logger.debug("Canceled pending entry", key=key)
        return True

    def cancel_pending_entry(self, entry: T) -> bool:
        """Cancel a pending entry.

        Args:
            entry: The entry to cancel.

        Returns:
            True if the entry was pending, False otherwise.
        """
        return self._cancel_key(self._key_func(entry))

    clear_pending_entry = cancel_pending_entry

    def cancel_all_pending(self) -> None:
        """Cancel every pending entry. Admitted entries are kept."""
        _cancel_timers(self._pending)

    clear_pending = cancel_all_pending

    def clear(self) -> None:
        """Remove every admitted entry. Pending entries are kept."""
        self._queue.clear()

    def clear_all(self) -> None:
        """Cancel every pending entry and remove every admitted entry."""
        self.cancel_all_pending()
        self.clear()

    # Queries

    def size(self) -> int:
        """Return the number of admitted entries."""
        return len(self._queue)

    def pending_size(self) -> int:
        """Return the number of pending entries."""
        return len(self._pending)

    def is_empty(self) -> bool:
        """Return True if no entries are admitted."""
        return not self._queue

    def is_pending_empty(self) -> bool:
        """Return True if no entries are pending."""
        return not self._pending

    def has_pending(self) -> bool:
        """Return True if at least one entry is pending."""
        return bool(self._pending)

    def has_pending_entry(self, entry: T) -> bool:
        """Return True if an entry with the same key is pending."""
        return self._key_func(entry) in self._pending

    def to_list(self) -> list[T]:
        """Return a copy of the admitted entries, oldest first."""
        return list(self._queue)

    def pending_to_list(self) -> list[T]:
        """Return a copy of the pending entries in the order they were armed."""
        return [record.value for record in self._pending.values()]

    def enqueue_delay(self) -> int:
        """Return the default admission delay in milliseconds."""
        return self._enqueue_delay_ms

    # Listeners

    def add_event_listener(
        self, event_type: EventType | str, listener: EventListener
    ) -> str:
        """Register a listener called synchronously on every admission.

        Args:
            event_type: ``"enqueue"`` is the only supported type.
            listener: Callback receiving the admitted entry.

        Returns:
            The listener id.
        """
        listener_id = self._listeners.add(event_type, listener)
        self._logger.debug(
            "Listener added",
            listener_id=listener_id,
            listeners=self._listeners.count(event_type),
        )
        return listener_id

    def remove_event_listener(
        self, event_type: EventType | str, listener_id: str
    ) -> None:
        """Unregister a listener. Unknown ids are ignored."""
        self._listeners.remove(event_type, listener_id)
