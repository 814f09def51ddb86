"""Lifecycle event publication.

Subscribers live in an immutable tuple that is swapped under a lock on every
change. ``publish`` reads the current tuple without locking, so it always
iterates a consistent snapshot while other threads subscribe or unsubscribe.
"""

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Protocol, runtime_checkable

from notifyhub.core.config import Settings, get_settings
from notifyhub.core.logging import get_logger
from notifyhub.models.event import NotificationEvent
from notifyhub.observability.metrics import EVENT_LISTENER_ERRORS, EVENTS_PUBLISHED

logger = get_logger(__name__)


@runtime_checkable
class NotificationEventListener(Protocol):
    """Observer receiving lifecycle events.

    Any callable taking a NotificationEvent also qualifies.
    """

    def on_event(self, event: NotificationEvent) -> None:
        ...


def _deliver(listener, event: NotificationEvent) -> None:
    if isinstance(listener, NotificationEventListener):
        listener.on_event(event)
    else:
        listener(event)


class NotificationEventPublisher:
    """Fan-out bus notifying subscribers in subscription order."""

    def __init__(self, async_publishing: bool = False, max_workers: int = 2):
        """Initialize publisher.

        Args:
            async_publishing: Deliver on a background worker pool
            max_workers: Pool size for asynchronous delivery
        """
        self._listeners: tuple = ()
        self._lock = threading.Lock()
        self._async_publishing = async_publishing
        self._executor: ThreadPoolExecutor | None = None
        if async_publishing:
            self._executor = ThreadPoolExecutor(
                max_workers=max_workers,
                thread_name_prefix="notifyhub-event-publisher",
            )
        logger.debug("Event publisher initialized", async_publishing=async_publishing)

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "NotificationEventPublisher":
        settings = settings or get_settings()
        return cls(
            async_publishing=settings.event_async_publishing,
            max_workers=settings.event_worker_count,
        )

    @property
    def async_publishing(self) -> bool:
        return self._async_publishing

    def subscribe(self, listener) -> None:
        """Add a listener; the same listener may be added more than once.

        Raises:
            ValueError: If listener is None
        """
        if listener is None:
            raise ValueError("Listener cannot be null")
        with self._lock:
            self._listeners = (*self._listeners, listener)
            count = len(self._listeners)
        logger.debug("Subscribed listener", total=count)

    def unsubscribe(self, listener) -> bool:
        """Remove the first registration of ``listener``.

        Returns:
            True if the listener was registered
        """
        with self._lock:
            listeners = list(self._listeners)
            try:
                listeners.remove(listener)
            except ValueError:
                return False
            self._listeners = tuple(listeners)
            count = len(self._listeners)
        logger.debug("Unsubscribed listener", remaining=count)
        return True

    def publish(self, event: NotificationEvent) -> Future | None:
        """Publish an event to every current subscriber.

        Listener exceptions are logged and never propagate. In async mode the
        fan-out runs on the worker pool and the returned future completes once
        every listener was called.

        Returns:
            Future for async delivery, otherwise None
        """
        if event is None:
            logger.warning("Attempted to publish null event")
            return None

        listeners = self._listeners
        if not listeners:
            return None

        EVENTS_PUBLISHED.labels(event_type=event.event_type.value).inc()
        logger.debug(
            "Publishing event",
            event_type=event.event_type.value,
            notification_id=event.notification_id,
            listeners=len(listeners),
        )

        executor = self._executor
        if executor is not None:
            try:
                return executor.submit(self._notify, listeners, event)
            except RuntimeError:
                logger.warning(
                    "Async publisher shut down, delivering synchronously",
                    event_type=event.event_type.value,
                )

        self._notify(listeners, event)
        return None

    def listener_count(self) -> int:
        return len(self._listeners)

    def clear(self) -> None:
        """Remove all listeners."""
        logger.info("Clearing all event listeners")
        with self._lock:
            self._listeners = ()

    def shutdown(self, wait: bool = True) -> None:
        """Release the async worker pool. Safe to call more than once."""
        if self._executor is not None:
            logger.info("Shutting down async event publisher")
            self._executor.shutdown(wait=wait)

    def __enter__(self) -> "NotificationEventPublisher":
        return self

    def __exit__(self, *args) -> None:
        self.shutdown()

    def _notify(self, listeners: tuple, event: NotificationEvent) -> None:
        for listener in listeners:
            try:
                _deliver(listener, event)
            except Exception as e:
                EVENT_LISTENER_ERRORS.labels(event_type=event.event_type.value).inc()
                logger.error(
                    "Error in event listener",
                    event_type=event.event_type.value,
                    notification_id=event.notification_id,
                    error=str(e),
                    exc_info=True,
                )
