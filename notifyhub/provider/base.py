"""Provider contract and the raw result a provider returns.

A provider talks to one external delivery network. The pipeline only ever
calls the methods declared here.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Generic, TypeVar

from notifyhub.models.notification import Notification

N = TypeVar("N", bound=Notification)


@dataclass
class ProviderResult:
    """Raw outcome of a provider call.

    Internal to the pipeline: the channel sender converts it into a
    NotificationResult and never hands it to callers.
    """

    is_success: bool
    provider_message_id: str | None = None
    status_code: int | None = None
    message: str | None = None
    error_code: str | None = None
    exception: BaseException | None = None
    retryable: bool = False
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    metadata: dict[str, str] = field(default_factory=dict)
    raw_response: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def success(
        cls,
        provider_message_id: str | None,
        message: str | None = None,
        status_code: int = 200,
    ) -> "ProviderResult":
        return cls(
            is_success=True,
            provider_message_id=provider_message_id,
            status_code=status_code,
            message=message,
        )

    @classmethod
    def failure(
        cls,
        error_code: str,
        message: str,
        status_code: int | None = None,
    ) -> "ProviderResult":
        return cls(
            is_success=False,
            error_code=error_code,
            message=message,
            status_code=status_code,
            retryable=False,
        )

    @classmethod
    def retryable_failure(
        cls,
        error_code: str,
        message: str,
        exception: BaseException | None = None,
        status_code: int | None = None,
    ) -> "ProviderResult":
        return cls(
            is_success=False,
            error_code=error_code,
            message=message,
            exception=exception,
            status_code=status_code,
            retryable=True,
        )

    def add_metadata(self, key: str, value: str) -> None:
        self.metadata[key] = value

    def add_raw_response(self, key: str, value: Any) -> None:
        self.raw_response[key] = value


class NotificationProvider(ABC, Generic[N]):
    """Abstract base class for delivery providers."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Human readable provider name, e.g. 'SendGrid'."""
        pass

    @property
    @abstractmethod
    def provider_type(self) -> str:
        """Channel family the provider serves, e.g. 'email'."""
        pass

    @abstractmethod
    def send(self, notification: N) -> ProviderResult:
        """Deliver a notification.

        Args:
            notification: Validated notification

        Returns:
            Raw provider result
        """
        pass

    @abstractmethod
    def is_configured(self) -> bool:
        """Return whether the provider has everything it needs to send."""
        pass

    def health_check(self) -> bool:
        """Check provider availability. Override if needed."""
        return self.is_configured()
