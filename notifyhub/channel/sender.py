"""Channel sender: validate, call the provider, normalize the outcome."""

import asyncio
import threading
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from typing import Generic

from notifyhub.core.config import get_settings
from notifyhub.core.exceptions import ConfigurationError
from notifyhub.core.logging import get_logger
from notifyhub.models.notification import Notification, NotificationChannel
from notifyhub.models.result import Failure, NotificationResult, Success
from notifyhub.observability.metrics import (
    NOTIFICATIONS_SENT,
    PROVIDER_LATENCY,
    VALIDATION_FAILURES,
)
from notifyhub.provider.base import N, NotificationProvider, ProviderResult
from notifyhub.validation.chain import ValidationChain, chain_for

logger = get_logger(__name__)

VALIDATION_ERROR = "VALIDATION_ERROR"
UNEXPECTED_ERROR = "UNEXPECTED_ERROR"


class ChannelSender(Generic[N]):
    """Sends notifications of one channel through one provider.

    ``send`` never raises for delivery problems: validation failures, provider
    failures and unexpected provider exceptions all come back as Failure results.
    """

    def __init__(
        self,
        channel: NotificationChannel,
        provider: NotificationProvider[N] | None,
        chain: ValidationChain | None = None,
        executor: ThreadPoolExecutor | None = None,
        max_workers: int | None = None,
    ):
        """Initialize sender.

        Args:
            channel: Channel this sender serves
            provider: Provider bound to the channel
            chain: Validation chain, defaults to the channel's standard chain
            executor: Shared worker pool for async sends (not shut down by close)
            max_workers: Size of the private pool created when no executor is given

        Raises:
            ConfigurationError: If the provider is missing or not configured
        """
        if provider is None:
            raise ConfigurationError("provider cannot be null", config_key=channel.value)
        if not provider.is_configured():
            raise ConfigurationError(
                f"{provider.provider_name} is not properly configured",
                config_key=channel.value,
            )

        self._channel = channel
        self._provider = provider
        self._chain = chain or chain_for(channel)
        self._executor = executor
        self._owns_executor = executor is None
        self._max_workers = max_workers or get_settings().sender_worker_count
        self._executor_lock = threading.Lock()

        logger.info(
            "Channel sender initialized",
            channel=channel.value,
            provider=provider.provider_name,
        )

    @property
    def channel(self) -> NotificationChannel:
        return self._channel

    @property
    def provider(self) -> NotificationProvider[N]:
        return self._provider

    @property
    def chain(self) -> ValidationChain:
        return self._chain

    def is_ready(self) -> bool:
        return self._provider is not None and self._provider.is_configured()

    def send(self, notification: N) -> NotificationResult:
        """Validate and deliver a single notification.

        Args:
            notification: Notification to send

        Returns:
            Success or Failure; never raises for delivery problems
        """
        if notification is None:
            return self._record(
                NotificationResult.failure(
                    None,
                    self._channel,
                    None,
                    VALIDATION_ERROR,
                    "Validation failed: Notification cannot be null",
                )
            )

        notification_id = notification.notification_id
        log = logger.bind(
            notification_id=notification_id,
            channel=self._channel.value,
        )
        log.info("Sending notification", recipient=notification.recipient)

        if notification.channel != self._channel:
            return self._reject(
                notification,
                [f"Notification channel {notification.channel} does not match sender channel {self._channel}"],
            )

        validation = self._chain.validate(notification)
        if not validation.is_valid:
            log.warning("Validation failed", errors=list(validation.errors))
            return self._reject(notification, list(validation.errors))
        if validation.warnings:
            log.info("Validation notes", warnings=list(validation.warnings))

        try:
            with PROVIDER_LATENCY.labels(
                channel=self._channel.value,
                provider=self._provider.provider_name,
            ).time():
                provider_result = self._provider.send(notification)
            result = self._to_result(provider_result, notification)

        except Exception as e:
            log.error(
                "Unexpected error sending notification",
                provider=self._provider.provider_name,
                error=str(e),
                exc_info=True,
            )
            result = NotificationResult.failure(
                notification_id,
                self._channel,
                notification.recipient,
                UNEXPECTED_ERROR,
                f"Failed to send {self._channel} notification: {e}",
                e,
            )

        if isinstance(result, Success):
            log.info(
                "Notification sent",
                provider=self._provider.provider_name,
                provider_message_id=result.provider_message_id,
            )
        else:
            log.warning(
                "Notification failed",
                error_code=result.error_code,
                error=result.error_message,
                retryable=result.retryable,
            )
        return self._record(result)

    async def send_async(self, notification: N) -> NotificationResult:
        """Run ``send`` on the worker pool without blocking the event loop.

        Cancelling the awaiting task detaches the caller only; an in-flight
        provider call runs to completion.
        """
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._get_executor(), self.send, notification)

    def send_batch(self, notifications: Iterable[N]) -> list[NotificationResult]:
        """Send notifications sequentially; results keep input order."""
        return [self.send(notification) for notification in notifications]

    async def send_batch_async(self, notifications: Iterable[N]) -> list[NotificationResult]:
        """Send notifications concurrently; results keep input order."""
        results = await asyncio.gather(
            *(self.send_async(notification) for notification in notifications)
        )
        return list(results)

    def close(self) -> None:
        """Shut down the private worker pool, if one was created."""
        with self._executor_lock:
            if self._owns_executor and self._executor is not None:
                self._executor.shutdown(wait=True)
                self._executor = None

    def __enter__(self) -> "ChannelSender[N]":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def _get_executor(self) -> ThreadPoolExecutor:
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self._max_workers,
                    thread_name_prefix=f"notifyhub-{self._channel.value}-sender",
                )
            return self._executor

    def _reject(self, notification: Notification, errors: list[str]) -> Failure:
        VALIDATION_FAILURES.labels(channel=self._channel.value).inc()
        return self._record(
            NotificationResult.failure(
                notification.notification_id,
                self._channel,
                notification.recipient,
                VALIDATION_ERROR,
                f"Validation failed: {errors[0]}",
            )
        )

    def _record(self, result: NotificationResult) -> NotificationResult:
        NOTIFICATIONS_SENT.labels(
            channel=self._channel.value,
            status=result.status.value,
        ).inc()
        return result

    def _to_result(
        self,
        provider_result: ProviderResult,
        notification: Notification,
    ) -> NotificationResult:
        """Map the provider's raw result onto the public result type."""
        if provider_result.is_success:
            return NotificationResult.success(
                notification.notification_id,
                provider_result.provider_message_id,
                self._channel,
                notification.recipient,
                provider_result.message,
            )

        message = (
            provider_result.message
            or provider_result.error_code
            or f"{self._provider.provider_name} reported a failure"
        )
        if provider_result.retryable:
            return NotificationResult.retryable_failure(
                notification.notification_id,
                self._channel,
                notification.recipient,
                provider_result.error_code,
                message,
                provider_result.exception,
            )
        return NotificationResult.failure(
            notification.notification_id,
            self._channel,
            notification.recipient,
            provider_result.error_code,
            message,
            provider_result.exception,
        )
