"""Tests for the channel sender."""

import asyncio
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from conftest import StubProvider, make_email, make_sms
from notifyhub.channel.sender import UNEXPECTED_ERROR, VALIDATION_ERROR, ChannelSender
from notifyhub.core.exceptions import ConfigurationError
from notifyhub.models.notification import NotificationChannel, NotificationStatus
from notifyhub.models.result import Failure, Success
from notifyhub.provider.base import ProviderResult
from notifyhub.validation.chain import ValidationChain


def test_send_maps_provider_success(stub_provider: StubProvider, email_notification) -> None:
    sender = ChannelSender(NotificationChannel.EMAIL, stub_provider)

    result = sender.send(email_notification)

    assert isinstance(result, Success)
    assert result.provider_message_id == "msg-1"
    assert result.channel == NotificationChannel.EMAIL
    assert result.recipient == "user@example.com"
    assert result.notification_id == email_notification.notification_id
    assert result.message == "ok"
    assert stub_provider.call_count == 1


def test_invalid_notification_never_reaches_provider(stub_provider: StubProvider) -> None:
    sender = ChannelSender(NotificationChannel.EMAIL, stub_provider)

    result = sender.send(make_email(recipient="not-an-email"))

    assert isinstance(result, Failure)
    assert result.error_code == VALIDATION_ERROR
    assert result.error_message == "Validation failed: Invalid recipient email address: not-an-email"
    assert result.retryable is False
    assert stub_provider.call_count == 0


def test_validation_message_uses_first_error(stub_provider: StubProvider) -> None:
    sender = ChannelSender(NotificationChannel.EMAIL, stub_provider)

    result = sender.send(make_email(recipient="", subject=None, body=""))

    assert result.error_message == "Validation failed: Recipient cannot be null or empty"


def test_none_notification_is_a_validation_failure(stub_provider: StubProvider) -> None:
    sender = ChannelSender(NotificationChannel.SMS, stub_provider)

    result = sender.send(None)

    assert result.error_code == VALIDATION_ERROR
    assert result.channel == NotificationChannel.SMS
    assert stub_provider.call_count == 0


def test_channel_mismatch_is_rejected(stub_provider: StubProvider) -> None:
    sender = ChannelSender(NotificationChannel.EMAIL, stub_provider)

    result = sender.send(make_sms())

    assert result.error_code == VALIDATION_ERROR
    assert stub_provider.call_count == 0


def test_provider_failure_maps_to_failure() -> None:
    provider = StubProvider(ProviderResult.failure("21211", "Invalid 'To' number", status_code=400))
    sender = ChannelSender(NotificationChannel.SMS, provider)

    result = sender.send(make_sms())

    assert isinstance(result, Failure)
    assert result.error_code == "21211"
    assert result.error_message == "Invalid 'To' number"
    assert result.retryable is False
    assert result.status == NotificationStatus.FAILED


def test_retryable_provider_failure_keeps_flag_and_cause() -> None:
    cause = TimeoutError("read timeout")
    provider = StubProvider(ProviderResult.retryable_failure("GATEWAY_TIMEOUT", "Timed out", exception=cause))
    sender = ChannelSender(NotificationChannel.EMAIL, provider)

    result = sender.send(make_email())

    assert result.retryable is True
    assert result.status == NotificationStatus.RETRYING
    assert result.cause is cause


def test_provider_failure_without_message_gets_fallback() -> None:
    provider = StubProvider(ProviderResult(is_success=False, error_code="E42"))
    sender = ChannelSender(NotificationChannel.EMAIL, provider)

    assert sender.send(make_email()).error_message == "E42"


def test_unexpected_provider_error_is_contained() -> None:
    error = RuntimeError("socket closed")
    provider = StubProvider(error=error)
    sender = ChannelSender(NotificationChannel.EMAIL, provider)

    result = sender.send(make_email())

    assert isinstance(result, Failure)
    assert result.error_code == UNEXPECTED_ERROR
    assert result.error_message == "Failed to send email notification: socket closed"
    assert result.cause is error
    assert provider.call_count == 1


def test_construction_requires_provider() -> None:
    with pytest.raises(ConfigurationError):
        ChannelSender(NotificationChannel.EMAIL, None)


def test_construction_requires_configured_provider() -> None:
    with pytest.raises(ConfigurationError, match="not properly configured"):
        ChannelSender(NotificationChannel.EMAIL, StubProvider(configured=False))


def test_accessors(stub_provider: StubProvider) -> None:
    chain = ValidationChain(name="empty")
    sender = ChannelSender(NotificationChannel.PUSH, stub_provider, chain=chain)

    assert sender.channel == NotificationChannel.PUSH
    assert sender.provider is stub_provider
    assert sender.chain is chain
    assert sender.is_ready()


def test_custom_chain_replaces_default(stub_provider: StubProvider) -> None:
    sender = ChannelSender(NotificationChannel.EMAIL, stub_provider, chain=ValidationChain(name="empty"))

    assert sender.send(make_email(recipient="not-an-email")).is_success


def test_send_batch_keeps_order(stub_provider: StubProvider) -> None:
    sender = ChannelSender(NotificationChannel.EMAIL, stub_provider)
    notifications = [make_email(), make_email(recipient="bad"), make_email()]

    results = sender.send_batch(notifications)

    assert [r.is_success for r in results] == [True, False, True]
    assert [r.notification_id for r in results] == [n.notification_id for n in notifications]


@pytest.mark.asyncio
async def test_send_async(stub_provider: StubProvider, email_notification) -> None:
    with ChannelSender(NotificationChannel.EMAIL, stub_provider, max_workers=2) as sender:
        result = await sender.send_async(email_notification)

    assert result.is_success
    assert result.provider_message_id == "msg-1"


class SlowProvider(StubProvider):
    """Sleeps longer for earlier notifications so completion order is reversed."""

    def send(self, notification):
        delay = float(notification.metadata.get_tag("delay") or 0)
        threading.Event().wait(delay)
        return super().send(notification)


@pytest.mark.asyncio
async def test_send_batch_async_keeps_input_order() -> None:
    provider = SlowProvider()
    notifications = []
    for delay in ("0.15", "0.05", "0"):
        notification = make_email()
        notification.metadata.add_tag("delay", delay)
        notifications.append(notification)

    with ChannelSender(NotificationChannel.EMAIL, provider, max_workers=3) as sender:
        results = await sender.send_batch_async(notifications)

    assert [r.notification_id for r in results] == [n.notification_id for n in notifications]
    assert provider.call_count == 3


@pytest.mark.asyncio
async def test_cancelling_async_send_does_not_interrupt_provider() -> None:
    started, release = threading.Event(), threading.Event()

    class BlockingProvider(StubProvider):
        def send(self, notification):
            started.set()
            release.wait(5)
            return super().send(notification)

    provider = BlockingProvider()
    with ChannelSender(NotificationChannel.EMAIL, provider, max_workers=1) as sender:
        task = asyncio.create_task(sender.send_async(make_email()))
        await asyncio.to_thread(started.wait, 5)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        release.set()

    assert provider.call_count == 1


def test_shared_executor_is_not_shut_down(stub_provider: StubProvider) -> None:
    executor = ThreadPoolExecutor(max_workers=1)
    try:
        sender = ChannelSender(NotificationChannel.EMAIL, stub_provider, executor=executor)
        sender.close()

        assert executor.submit(lambda: 42).result(timeout=5) == 42
    finally:
        executor.shutdown()
