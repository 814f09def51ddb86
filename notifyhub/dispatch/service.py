"""Dispatch facade routing notifications to per-channel senders."""

import asyncio
import threading
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor

from notifyhub.channel.sender import ChannelSender
from notifyhub.core.config import get_settings
from notifyhub.core.exceptions import ConfigurationError, SendFailedError
from notifyhub.core.logging import get_logger
from notifyhub.events.publisher import NotificationEventPublisher
from notifyhub.models.event import NotificationEvent, NotificationEventType
from notifyhub.models.notification import (
    EmailNotification,
    Notification,
    NotificationChannel,
    PushNotification,
    SmsNotification,
)
from notifyhub.models.result import NotificationResult
from notifyhub.observability.tracing import correlation_scope
from notifyhub.provider.base import NotificationProvider
from notifyhub.provider.registry import ChannelProviderRegistry
from notifyhub.retry.policy import RetryPolicy

logger = get_logger(__name__)


class DispatchService:
    """Single entry point for sending email, SMS and push notifications.

    Routing problems (no sender for a channel) are raised as
    ConfigurationError. Delivery problems come back as Failure results.
    """

    def __init__(
        self,
        email_provider: NotificationProvider[EmailNotification] | None = None,
        sms_provider: NotificationProvider[SmsNotification] | None = None,
        push_provider: NotificationProvider[PushNotification] | None = None,
        *,
        publisher: NotificationEventPublisher | None = None,
        retry_policy: RetryPolicy | None = None,
        max_workers: int | None = None,
    ):
        """Initialize service.

        Args:
            email_provider: Provider for the email channel
            sms_provider: Provider for the SMS channel
            push_provider: Provider for the push channel
            publisher: Receives SENDING and outcome events for every send
            retry_policy: Default policy for ``send_with_retry``
            max_workers: Size of the worker pool shared by async sends

        Raises:
            ConfigurationError: If no provider is given or one is not configured
        """
        providers = {
            NotificationChannel.EMAIL: email_provider,
            NotificationChannel.SMS: sms_provider,
            NotificationChannel.PUSH: push_provider,
        }
        providers = {channel: p for channel, p in providers.items() if p is not None}
        if not providers:
            raise ConfigurationError("At least one notification channel must be configured")

        self._executor = ThreadPoolExecutor(
            max_workers=max_workers or get_settings().sender_worker_count,
            thread_name_prefix="notifyhub-dispatch",
        )
        self._registry = ChannelProviderRegistry()
        self._senders: dict[NotificationChannel, ChannelSender] = {}
        try:
            for channel, provider in providers.items():
                self._senders[channel] = ChannelSender(channel, provider, executor=self._executor)
                self._registry.register(channel, provider)
        except ConfigurationError:
            self._executor.shutdown(wait=False)
            raise

        self._publisher = publisher
        self._retry_policy = retry_policy
        self._closed = threading.Event()

        logger.info(
            "Dispatch service initialized",
            channels=sorted(channel.value for channel in self._senders),
            events=publisher is not None,
        )

    @property
    def registry(self) -> ChannelProviderRegistry:
        return self._registry

    @property
    def publisher(self) -> NotificationEventPublisher | None:
        return self._publisher

    @property
    def channels(self) -> set[NotificationChannel]:
        return set(self._senders)

    def is_channel_available(self, channel: NotificationChannel) -> bool:
        """Check whether a ready sender is registered for ``channel``."""
        sender = self._senders.get(channel)
        return sender is not None and sender.is_ready()

    def send(self, notification: Notification) -> NotificationResult:
        """Route a notification to the sender of its channel.

        Raises:
            ValueError: If notification is None
            ConfigurationError: If no sender is registered for the channel
        """
        if notification is None:
            raise ValueError("Notification cannot be null")
        sender = self._sender_for(notification.channel)
        with correlation_scope(notification.metadata.correlation_id):
            return self._dispatch(sender, notification)

    def send_email(self, notification: EmailNotification) -> NotificationResult:
        return self._send_via(NotificationChannel.EMAIL, notification)

    def send_sms(self, notification: SmsNotification) -> NotificationResult:
        return self._send_via(NotificationChannel.SMS, notification)

    def send_push(self, notification: PushNotification) -> NotificationResult:
        return self._send_via(NotificationChannel.PUSH, notification)

    async def send_async(self, notification: Notification) -> NotificationResult:
        """Run ``send`` on the shared worker pool.

        Routing errors are raised before anything is scheduled.
        """
        if notification is None:
            raise ValueError("Notification cannot be null")
        self._sender_for(notification.channel)
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, self.send, notification)

    def send_batch(self, notifications: Iterable[Notification]) -> list[NotificationResult]:
        """Send notifications one after another; results keep input order."""
        return [self.send(notification) for notification in notifications]

    async def send_batch_async(
        self,
        notifications: Iterable[Notification],
    ) -> list[NotificationResult]:
        """Send notifications concurrently; results keep input order."""
        results = await asyncio.gather(
            *(self.send_async(notification) for notification in notifications)
        )
        return list(results)

    def send_with_retry(
        self,
        notification: Notification,
        retry_policy: RetryPolicy | None = None,
        cancel_event: threading.Event | None = None,
    ) -> NotificationResult:
        """Send and retry while the outcome is a retryable Failure.

        Non-retryable failures return immediately. When attempts run out the
        last Failure is returned.

        Args:
            notification: Notification to send
            retry_policy: Overrides the service's default policy
            cancel_event: Setting it during a wait stops retrying

        Returns:
            Final result of the attempt sequence

        Raises:
            ConfigurationError: If no sender is registered for the channel
        """
        if notification is None:
            raise ValueError("Notification cannot be null")
        sender = self._sender_for(notification.channel)
        policy = retry_policy or self._retry_policy or RetryPolicy.from_settings()

        attempts: list[NotificationResult] = []
        retry_announced = False

        def attempt() -> NotificationResult:
            nonlocal retry_announced
            retry_attempt = len(attempts) + 1 if attempts else None
            result = self._send_once(sender, notification, retry_attempt)
            attempts.append(result)
            retry_announced = False
            try:
                result.raise_for_failure()
            except SendFailedError as e:
                if not e.retryable:
                    self._publish_outcome(result, retry_attempt)
                    return result
                retry_announced = (
                    len(attempts) < policy.max_attempts
                    and policy.should_retry(e)
                    and not (cancel_event is not None and cancel_event.is_set())
                )
                self._publish_outcome(result, retry_attempt, will_retry=retry_announced)
                raise
            self._publish_outcome(result, retry_attempt)
            return result

        with correlation_scope(notification.metadata.correlation_id):
            try:
                return policy.execute(attempt, cancel_event=cancel_event)
            except SendFailedError:
                last = attempts[-1]
                if retry_announced:
                    # Cancelled while waiting: the announced retry never happens.
                    self._publish_outcome(last, len(attempts) if len(attempts) > 1 else None)
                logger.warning(
                    "Retries exhausted",
                    notification_id=notification.notification_id,
                    attempts=len(attempts),
                )
                return last

    def close(self) -> None:
        """Release the shared worker pool. The publisher is left to its owner."""
        if self._closed.is_set():
            return
        self._closed.set()
        self._executor.shutdown(wait=True)
        logger.info("Dispatch service closed")

    def __enter__(self) -> "DispatchService":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def _sender_for(self, channel: NotificationChannel) -> ChannelSender:
        sender = self._senders.get(channel)
        if sender is None:
            logger.error("No sender configured for channel", channel=str(channel))
            raise ConfigurationError(
                f"No sender configured for channel: {channel}",
                config_key=str(channel),
            )
        return sender

    def _send_via(self, channel: NotificationChannel, notification: Notification) -> NotificationResult:
        sender = self._sender_for(channel)
        correlation_id = notification.metadata.correlation_id if notification is not None else None
        with correlation_scope(correlation_id):
            return self._dispatch(sender, notification)

    def _dispatch(self, sender: ChannelSender, notification: Notification) -> NotificationResult:
        result = self._send_once(sender, notification)
        self._publish_outcome(result)
        return result

    def _send_once(
        self,
        sender: ChannelSender,
        notification: Notification,
        retry_attempt: int | None = None,
    ) -> NotificationResult:
        if self._publisher is not None and notification is not None:
            self._publisher.publish(
                NotificationEvent.for_notification(
                    NotificationEventType.SENDING,
                    notification,
                    retry_attempt=retry_attempt,
                )
            )
        return sender.send(notification)

    def _publish_outcome(
        self,
        result: NotificationResult,
        retry_attempt: int | None = None,
        will_retry: bool = False,
    ) -> None:
        if self._publisher is not None:
            self._publisher.publish(NotificationEvent.from_result(result, retry_attempt, will_retry))
