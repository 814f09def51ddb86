"""Tests for the simulated SendGrid, Twilio and Firebase providers."""

import pytest

from conftest import make_email, make_push, make_sms
from notifyhub.channel.sender import ChannelSender
from notifyhub.core.exceptions import ConfigurationError
from notifyhub.dispatch.service import DispatchService
from notifyhub.models.notification import NotificationChannel
from notifyhub.provider.config import (
    EmailProviderConfig,
    PushProviderConfig,
    SmsProviderConfig,
)
from notifyhub.provider.mock import (
    MockFirebaseProvider,
    MockSendGridProvider,
    MockTwilioProvider,
)

NO_LATENCY = (0.0, 0.0)


def email_config(**kwargs) -> EmailProviderConfig:
    return EmailProviderConfig(api_key="SG.test-key-123456", from_email="noreply@example.com", **kwargs)


def sms_config(**kwargs) -> SmsProviderConfig:
    return SmsProviderConfig(
        account_sid="AC0123456789",
        auth_token="auth-token-abcdef",
        from_phone_number="+14155550000",
        **kwargs,
    )


def push_config(**kwargs) -> PushProviderConfig:
    return PushProviderConfig(project_id="demo-project", server_key="server-key", **kwargs)


def force_roll(monkeypatch, provider, value: float) -> None:
    monkeypatch.setattr(provider._random, "random", lambda: value)


def test_configs_validate_required_credentials() -> None:
    assert email_config().is_valid()
    assert not EmailProviderConfig(api_key="key").is_valid()
    assert sms_config().is_valid()
    assert SmsProviderConfig(account_sid="AC1", auth_token="t", short_code="12345").is_valid()
    assert not SmsProviderConfig(account_sid="AC1", auth_token="t").is_valid()
    assert push_config().is_valid()
    assert PushProviderConfig(project_id="p", service_account_json="{}").is_valid()
    assert not PushProviderConfig(project_id="p").is_valid()


def test_secrets_are_masked() -> None:
    assert email_config().api_key_masked == "SG.t...3456"
    assert EmailProviderConfig(api_key="short").api_key_masked == "***"


def test_disabled_or_invalid_provider_is_not_configured() -> None:
    assert not MockSendGridProvider(email_config(enabled=False), latency=NO_LATENCY).is_configured()

    provider = MockSendGridProvider(EmailProviderConfig(api_key="key"), latency=NO_LATENCY)
    with pytest.raises(ConfigurationError):
        ChannelSender(NotificationChannel.EMAIL, provider)


def test_provider_identity() -> None:
    assert MockSendGridProvider(email_config()).provider_name == "SendGrid"
    assert MockTwilioProvider(sms_config()).provider_name == "Twilio"
    firebase = MockFirebaseProvider(push_config())
    assert firebase.provider_name == "Firebase Cloud Messaging"
    assert firebase.provider_type == "push"


def test_sendgrid_accepts(monkeypatch) -> None:
    provider = MockSendGridProvider(email_config(track_opens=True), latency=NO_LATENCY)
    force_roll(monkeypatch, provider, 0.1)

    result = provider.send(make_email())

    assert result.is_success
    assert result.status_code == 202
    assert result.provider_message_id.startswith("sg_")
    assert result.metadata["tracking_opens"] == "true"
    assert result.raw_response["subject"] == "Welcome"


def test_sendgrid_transient_and_permanent_failures(monkeypatch) -> None:
    provider = MockSendGridProvider(email_config(), latency=NO_LATENCY)

    force_roll(monkeypatch, provider, 0.92)
    transient = provider.send(make_email())
    force_roll(monkeypatch, provider, 0.97)
    permanent = provider.send(make_email())

    assert transient.retryable and transient.status_code == 429
    assert transient.error_code in MockSendGridProvider.TRANSIENT_ERRORS
    assert not permanent.retryable and permanent.status_code == 400
    assert permanent.error_code in MockSendGridProvider.PERMANENT_ERRORS


def test_sendgrid_sandbox_always_accepts(monkeypatch) -> None:
    provider = MockSendGridProvider(email_config(sandbox_mode=True), latency=NO_LATENCY)
    force_roll(monkeypatch, provider, 0.99)

    result = provider.send(make_email())

    assert result.is_success
    assert result.metadata["sandbox"] == "true"


@pytest.mark.parametrize(
    ("roll", "error_code", "retryable"),
    [
        (0.935, "21211", False),
        (0.96, "20429", True),
        (0.99, "NETWORK_ERROR", True),
    ],
)
def test_twilio_failures(monkeypatch, roll: float, error_code: str, retryable: bool) -> None:
    provider = MockTwilioProvider(sms_config(), latency=NO_LATENCY)
    force_roll(monkeypatch, provider, roll)

    result = provider.send(make_sms())

    assert not result.is_success
    assert result.error_code == error_code
    assert result.retryable is retryable


def test_twilio_test_credentials_accept() -> None:
    provider = MockTwilioProvider(sms_config(use_test_credentials=True), latency=NO_LATENCY)

    result = provider.send(make_sms())

    assert result.is_success
    assert result.status_code == 201
    assert result.provider_message_id.startswith("SM")
    assert result.raw_response["from"] == "+14155550000"


@pytest.mark.parametrize(
    ("roll", "error_code", "retryable"),
    [
        (0.90, "INVALID_ARGUMENT", False),
        (0.945, "QUOTA_EXCEEDED", True),
        (0.97, "UNAVAILABLE", True),
        (0.99, "UNREGISTERED", False),
    ],
)
def test_firebase_failures(monkeypatch, roll: float, error_code: str, retryable: bool) -> None:
    provider = MockFirebaseProvider(push_config(), latency=NO_LATENCY)
    force_roll(monkeypatch, provider, roll)

    result = provider.send(make_push())

    assert result.error_code == error_code
    assert result.retryable is retryable
    assert result.metadata["fcm_error_code"] == error_code


def test_firebase_dry_run_validates_only() -> None:
    provider = MockFirebaseProvider(push_config(dry_run=True), latency=NO_LATENCY)

    result = provider.send(make_push())

    assert result.is_success
    assert result.provider_message_id is None
    assert result.metadata["dry_run"] == "true"


def test_firebase_accepts_with_project_message_name(monkeypatch) -> None:
    provider = MockFirebaseProvider(push_config(), latency=NO_LATENCY)
    force_roll(monkeypatch, provider, 0.0)

    result = provider.send(make_push())

    assert result.provider_message_id.startswith("projects/demo-project/messages/")
    assert result.metadata["platform"] == "android"


def test_seeded_providers_are_deterministic() -> None:
    first = MockTwilioProvider(sms_config(), seed=7, latency=NO_LATENCY)
    second = MockTwilioProvider(sms_config(), seed=7, latency=NO_LATENCY)
    notification = make_sms()

    outcomes = [(r.is_success, r.error_code) for r in (first.send(notification) for _ in range(50))]
    replay = [(r.is_success, r.error_code) for r in (second.send(notification) for _ in range(50))]

    assert outcomes == replay


def test_health_check() -> None:
    assert MockSendGridProvider(email_config(), latency=NO_LATENCY, uptime=1.0).health_check()
    assert not MockSendGridProvider(email_config(), latency=NO_LATENCY, uptime=0.0).health_check()
    assert not MockSendGridProvider(email_config(enabled=False), latency=NO_LATENCY).health_check()


def test_dispatch_through_simulated_providers() -> None:
    service = DispatchService(
        email_provider=MockSendGridProvider(email_config(sandbox_mode=True), latency=NO_LATENCY),
        sms_provider=MockTwilioProvider(sms_config(use_test_credentials=True), latency=NO_LATENCY),
        push_provider=MockFirebaseProvider(push_config(use_sandbox=True), latency=NO_LATENCY),
    )
    with service:
        results = service.send_batch([make_email(), make_sms(), make_push()])

    assert all(result.is_success for result in results)
    assert results[2].message == "Push accepted (sandbox mode)"
