"""Pytest configuration and fixtures."""

from collections.abc import Sequence

import pytest

from notifyhub.models.notification import (
    EmailNotification,
    NotificationContent,
    PushNotification,
    PushPlatform,
    SmsNotification,
)
from notifyhub.provider.base import NotificationProvider, ProviderResult


class StubProvider(NotificationProvider):
    """In-memory provider recording every call.

    Returns ``results`` in order and keeps repeating the last one. When
    ``error`` is set, ``send`` raises it instead.
    """

    def __init__(
        self,
        results: ProviderResult | Sequence[ProviderResult] | None = None,
        configured: bool = True,
        error: Exception | None = None,
        name: str = "Stub",
    ):
        if results is None:
            results = ProviderResult.success("msg-1", "ok")
        if isinstance(results, ProviderResult):
            results = [results]
        self._results = list(results)
        self._configured = configured
        self._error = error
        self._name = name
        self.calls: list = []

    @property
    def provider_name(self) -> str:
        return self._name

    @property
    def provider_type(self) -> str:
        return "stub"

    def send(self, notification) -> ProviderResult:
        self.calls.append(notification)
        if self._error is not None:
            raise self._error
        index = min(len(self.calls), len(self._results)) - 1
        return self._results[index]

    def is_configured(self) -> bool:
        return self._configured

    @property
    def call_count(self) -> int:
        return len(self.calls)


def make_email(recipient: str = "user@example.com", subject: str | None = "Welcome", body: str = "hi", **kwargs) -> EmailNotification:
    return EmailNotification(
        recipient=recipient,
        subject=subject,
        content=NotificationContent(body=body),
        **kwargs,
    )


def make_sms(recipient: str = "+14155552671", body: str = "Your code is 123456", **kwargs) -> SmsNotification:
    return SmsNotification(
        recipient=recipient,
        content=NotificationContent(body=body),
        **kwargs,
    )


def make_push(
    recipient: str = "a" * 152,
    title: str | None = "Order shipped",
    body: str = "Your order is on its way",
    **kwargs,
) -> PushNotification:
    kwargs.setdefault("platform", PushPlatform.ANDROID)
    return PushNotification(
        recipient=recipient,
        title=title,
        content=NotificationContent(body=body),
        **kwargs,
    )


@pytest.fixture
def stub_provider() -> StubProvider:
    """Provider accepting everything with message id msg-1."""
    return StubProvider()


@pytest.fixture
def email_notification() -> EmailNotification:
    return make_email()


@pytest.fixture
def sms_notification() -> SmsNotification:
    return make_sms()


@pytest.fixture
def push_notification() -> PushNotification:
    return make_push()
