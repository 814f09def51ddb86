"""Simulated providers for SendGrid, Twilio and Firebase.

They never touch the network. Outcomes are drawn from a weighted table with a
seedable random generator so demos and tests can be made deterministic.
"""

import random
import time
import uuid
from abc import abstractmethod
from collections.abc import Callable, Sequence

from notifyhub.core.logging import get_logger
from notifyhub.models.notification import (
    EmailNotification,
    PushNotification,
    SmsNotification,
)
from notifyhub.provider.base import N, NotificationProvider, ProviderResult
from notifyhub.provider.config import (
    EmailProviderConfig,
    ProviderConfig,
    PushProviderConfig,
    SmsProviderConfig,
)

logger = get_logger(__name__)

Outcome = Callable[[N], ProviderResult]


class SimulatedProvider(NotificationProvider[N]):
    """Shared machinery for the simulated providers."""

    def __init__(
        self,
        config: ProviderConfig,
        seed: int | None = None,
        latency: tuple[float, float] = (0.05, 0.2),
        uptime: float = 0.95,
    ):
        """Initialize provider.

        Args:
            config: Provider configuration
            seed: Seed for the outcome generator
            latency: Min/max simulated latency in seconds
            uptime: Probability that a health check succeeds
        """
        if config is None:
            raise ValueError(f"{type(self).__name__} requires a configuration")
        self._config = config
        self._random = random.Random(seed)
        self._latency = latency
        self._uptime = uptime

    @property
    def config(self) -> ProviderConfig:
        return self._config

    @property
    def provider_type(self) -> str:
        return self._config.provider_type

    def is_configured(self) -> bool:
        return self._config.enabled and self._config.is_valid()

    def health_check(self) -> bool:
        if not self.is_configured():
            return False
        self._simulate_latency()
        return self._random.random() < self._uptime

    def send(self, notification: N) -> ProviderResult:
        self._simulate_latency()

        shortcut = self._short_circuit(notification)
        if shortcut is not None:
            return shortcut

        roll = self._random.random()
        cumulative = 0.0
        outcomes = self._outcomes()
        for weight, outcome in outcomes:
            cumulative += weight
            if roll < cumulative:
                return outcome(notification)
        return outcomes[-1][1](notification)

    def _short_circuit(self, notification: N) -> ProviderResult | None:
        """Return a result without rolling (sandbox, dry run). Override if needed."""
        return None

    @abstractmethod
    def _outcomes(self) -> Sequence[tuple[float, Outcome]]:
        """Weighted outcome table; weights should sum to 1."""
        pass

    def _simulate_latency(self) -> None:
        low, high = self._latency
        if high > 0:
            time.sleep(self._random.uniform(low, high))

    def _pick(self, choices: Sequence[str]) -> str:
        return self._random.choice(choices)

    def _tag(self, result: ProviderResult, error_type: str | None = None) -> ProviderResult:
        result.add_metadata("provider", self.provider_name)
        if error_type:
            result.add_metadata("error_type", error_type)
        return result


class MockSendGridProvider(SimulatedProvider[EmailNotification]):
    """Simulated SendGrid: 90% accepted, 5% transient, 5% permanent failures."""

    TRANSIENT_ERRORS = (
        "RATE_LIMIT_EXCEEDED",
        "SERVICE_TEMPORARILY_UNAVAILABLE",
        "GATEWAY_TIMEOUT",
    )
    PERMANENT_ERRORS = (
        "INVALID_EMAIL",
        "RECIPIENT_BLOCKED",
        "DOMAIN_NOT_FOUND",
        "SPAM_DETECTED",
    )

    def __init__(self, config: EmailProviderConfig, **kwargs):
        super().__init__(config, **kwargs)
        self._config: EmailProviderConfig = config
        logger.info("Initialized SendGrid simulator", api_key=config.api_key_masked)

    @property
    def provider_name(self) -> str:
        return "SendGrid"

    def _short_circuit(self, notification: EmailNotification) -> ProviderResult | None:
        if self._config.sandbox_mode:
            logger.info("Sandbox mode enabled, email not delivered", recipient=notification.recipient)
            return self._accepted(notification, sandbox=True)
        return None

    def _outcomes(self) -> Sequence[tuple[float, Outcome]]:
        return (
            (0.90, self._accepted),
            (0.05, self._transient_failure),
            (0.05, self._permanent_failure),
        )

    def _accepted(self, notification: EmailNotification, sandbox: bool = False) -> ProviderResult:
        message_id = f"sg_{uuid.uuid4()}"
        result = ProviderResult.success(
            message_id,
            "Email queued (sandbox mode)" if sandbox else "Email queued for delivery",
            status_code=202,
        )
        self._tag(result)
        result.add_metadata("sandbox", str(sandbox).lower())
        result.add_metadata("tracking_opens", str(self._config.track_opens).lower())
        result.add_metadata("tracking_clicks", str(self._config.track_clicks).lower())
        result.add_raw_response("message_id", message_id)
        result.add_raw_response("status", "queued")
        result.add_raw_response("recipient", notification.recipient)
        result.add_raw_response("subject", notification.subject)
        return result

    def _transient_failure(self, notification: EmailNotification) -> ProviderResult:
        error_code = self._pick(self.TRANSIENT_ERRORS)
        logger.warning("SendGrid transient failure", error_code=error_code, recipient=notification.recipient)
        return self._tag(
            ProviderResult.retryable_failure(
                error_code,
                "SendGrid API temporarily unavailable, please retry",
                status_code=429,
            ),
            "transient",
        )

    def _permanent_failure(self, notification: EmailNotification) -> ProviderResult:
        error_code = self._pick(self.PERMANENT_ERRORS)
        logger.warning("SendGrid permanent failure", error_code=error_code, recipient=notification.recipient)
        return self._tag(
            ProviderResult.failure(error_code, f"Failed to send email: {error_code}", status_code=400),
            "permanent",
        )


class MockTwilioProvider(SimulatedProvider[SmsNotification]):
    """Simulated Twilio: 92% accepted, invalid numbers, rate limits and network errors."""

    NETWORK_ERRORS = (
        "Service temporarily unavailable",
        "Gateway timeout",
        "Connection refused",
    )

    def __init__(self, config: SmsProviderConfig, **kwargs):
        kwargs.setdefault("uptime", 0.97)
        super().__init__(config, **kwargs)
        self._config: SmsProviderConfig = config
        logger.info("Initialized Twilio simulator", auth_token=config.auth_token_masked)

    @property
    def provider_name(self) -> str:
        return "Twilio"

    def _short_circuit(self, notification: SmsNotification) -> ProviderResult | None:
        if self._config.use_test_credentials:
            logger.info("Test credentials in use, SMS not delivered", recipient=notification.recipient)
            return self._accepted(notification, test_mode=True)
        return None

    def _outcomes(self) -> Sequence[tuple[float, Outcome]]:
        return (
            (0.92, self._accepted),
            (0.03, self._invalid_number),
            (0.03, self._rate_limited),
            (0.02, self._network_failure),
        )

    def _accepted(self, notification: SmsNotification, test_mode: bool = False) -> ProviderResult:
        message_sid = f"SM{uuid.uuid4().hex}"
        result = ProviderResult.success(
            message_sid,
            "SMS queued (test credentials)" if test_mode else "SMS queued for delivery",
            status_code=201,
        )
        self._tag(result)
        result.add_metadata("test_mode", str(test_mode).lower())
        result.add_raw_response("sid", message_sid)
        result.add_raw_response("status", "queued")
        result.add_raw_response("to", notification.recipient)
        result.add_raw_response("from", self._config.from_phone_number or self._config.short_code)
        return result

    def _invalid_number(self, notification: SmsNotification) -> ProviderResult:
        result = ProviderResult.failure(
            "21211",
            f"The 'To' number {notification.recipient} is not a valid phone number",
            status_code=400,
        )
        result.add_metadata("twilio_error_code", "21211")
        return self._tag(result, "validation")

    def _rate_limited(self, notification: SmsNotification) -> ProviderResult:
        result = ProviderResult.retryable_failure(
            "20429",
            "Too many requests - rate limit exceeded",
            status_code=429,
        )
        result.add_metadata("twilio_error_code", "20429")
        result.add_metadata("retry_after", "60")
        return self._tag(result, "rate_limit")

    def _network_failure(self, notification: SmsNotification) -> ProviderResult:
        return self._tag(
            ProviderResult.retryable_failure(
                "NETWORK_ERROR",
                self._pick(self.NETWORK_ERRORS),
                status_code=503,
            ),
            "transient",
        )


class MockFirebaseProvider(SimulatedProvider[PushNotification]):
    """Simulated FCM: 88% accepted, invalid or unregistered tokens, quota and network errors."""

    def __init__(self, config: PushProviderConfig, **kwargs):
        kwargs.setdefault("uptime", 0.999)
        kwargs.setdefault("latency", (0.02, 0.1))
        super().__init__(config, **kwargs)
        self._config: PushProviderConfig = config
        logger.info("Initialized Firebase simulator", project_id=config.project_id)

    @property
    def provider_name(self) -> str:
        return "Firebase Cloud Messaging"

    def _short_circuit(self, notification: PushNotification) -> ProviderResult | None:
        if self._config.dry_run:
            result = ProviderResult.success(None, "Dry run: notification validated, not sent")
            result.add_metadata("dry_run", "true")
            return self._tag(result)
        if self._config.use_sandbox:
            return self._accepted(notification, sandbox=True)
        return None

    def _outcomes(self) -> Sequence[tuple[float, Outcome]]:
        return (
            (0.88, self._accepted),
            (0.05, self._invalid_token),
            (0.03, self._quota_exceeded),
            (0.02, self._unavailable),
            (0.02, self._unregistered),
        )

    def _accepted(self, notification: PushNotification, sandbox: bool = False) -> ProviderResult:
        project_id = self._config.project_id or "mock-project"
        message_id = f"projects/{project_id}/messages/{uuid.uuid4().hex[:16]}"
        result = ProviderResult.success(
            message_id,
            "Push accepted (sandbox mode)" if sandbox else "Push notification sent",
            status_code=200,
        )
        self._tag(result)
        result.add_metadata("platform", notification.platform.value)
        result.add_metadata("sandbox", str(sandbox).lower())
        result.add_raw_response("name", message_id)
        return result

    def _fcm_failure(
        self,
        error_code: str,
        message: str,
        status_code: int,
        retryable: bool,
    ) -> ProviderResult:
        if retryable:
            result = ProviderResult.retryable_failure(error_code, message, status_code=status_code)
        else:
            result = ProviderResult.failure(error_code, message, status_code=status_code)
        result.add_metadata("fcm_error_code", error_code)
        return self._tag(result, "transient" if retryable else "permanent")

    def _invalid_token(self, notification: PushNotification) -> ProviderResult:
        return self._fcm_failure("INVALID_ARGUMENT", "Invalid registration token", 400, False)

    def _quota_exceeded(self, notification: PushNotification) -> ProviderResult:
        return self._fcm_failure("QUOTA_EXCEEDED", "Sending quota exceeded, retry later", 429, True)

    def _unavailable(self, notification: PushNotification) -> ProviderResult:
        return self._fcm_failure("UNAVAILABLE", "FCM service temporarily unavailable", 503, True)

    def _unregistered(self, notification: PushNotification) -> ProviderResult:
        return self._fcm_failure("UNREGISTERED", "Device token is no longer registered", 404, False)
