"""Public result of a send attempt.

``NotificationResult`` is a two-variant union: ``Success`` or ``Failure``.
Both are immutable snapshots created once per attempt by a channel sender.
"""

from dataclasses import dataclass
from datetime import datetime, timezone

from notifyhub.core.exceptions import SendFailedError
from notifyhub.models.notification import NotificationChannel, NotificationStatus

DEFAULT_SUCCESS_MESSAGE = "Notification sent successfully"
QUEUED_MESSAGE = "Notification queued for sending"


def _now() -> datetime:
    return datetime.now(timezone.utc)


class NotificationResult:
    """Common surface of both result variants."""

    channel: NotificationChannel
    status: NotificationStatus
    timestamp: datetime

    @property
    def is_success(self) -> bool:
        return isinstance(self, Success)

    @property
    def is_failure(self) -> bool:
        return isinstance(self, Failure)

    def raise_for_failure(self) -> "NotificationResult":
        """Return self for a success; failures override this to raise."""
        return self

    @staticmethod
    def success(
        notification_id: str,
        provider_message_id: str | None,
        channel: NotificationChannel,
        recipient: str | None,
        message: str | None = None,
    ) -> "Success":
        return Success(
            notification_id=notification_id,
            provider_message_id=provider_message_id,
            channel=channel,
            recipient=recipient,
            status=NotificationStatus.SENT,
            message=message or DEFAULT_SUCCESS_MESSAGE,
        )

    @staticmethod
    def queued(
        notification_id: str,
        channel: NotificationChannel,
        recipient: str | None,
    ) -> "Success":
        return Success(
            notification_id=notification_id,
            provider_message_id=None,
            channel=channel,
            recipient=recipient,
            status=NotificationStatus.QUEUED,
            message=QUEUED_MESSAGE,
        )

    @staticmethod
    def failure(
        notification_id: str | None,
        channel: NotificationChannel,
        recipient: str | None,
        error_code: str | None,
        error_message: str,
        cause: BaseException | None = None,
    ) -> "Failure":
        return Failure(
            notification_id=notification_id,
            channel=channel,
            recipient=recipient,
            error_code=error_code,
            error_message=error_message,
            cause=cause,
            status=NotificationStatus.FAILED,
            retryable=False,
        )

    @staticmethod
    def retryable_failure(
        notification_id: str | None,
        channel: NotificationChannel,
        recipient: str | None,
        error_code: str | None,
        error_message: str,
        cause: BaseException | None = None,
    ) -> "Failure":
        return Failure(
            notification_id=notification_id,
            channel=channel,
            recipient=recipient,
            error_code=error_code,
            error_message=error_message,
            cause=cause,
            status=NotificationStatus.RETRYING,
            retryable=True,
        )


@dataclass(frozen=True)
class Success(NotificationResult):
    """The provider accepted the notification."""

    notification_id: str
    provider_message_id: str | None
    channel: NotificationChannel
    recipient: str | None
    status: NotificationStatus | None = None
    timestamp: datetime | None = None
    message: str | None = None

    def __post_init__(self) -> None:
        if not self.notification_id or not self.notification_id.strip():
            raise ValueError("notification_id cannot be null or blank")
        if self.channel is None:
            raise ValueError("channel cannot be null")
        if self.status is None:
            object.__setattr__(self, "status", NotificationStatus.SENT)
        if self.timestamp is None:
            object.__setattr__(self, "timestamp", _now())
        if not self.message or not self.message.strip():
            object.__setattr__(self, "message", DEFAULT_SUCCESS_MESSAGE)


@dataclass(frozen=True)
class Failure(NotificationResult):
    """The notification was rejected by validation or by the provider."""

    notification_id: str | None
    channel: NotificationChannel
    recipient: str | None
    error_code: str | None
    error_message: str
    cause: BaseException | None = None
    status: NotificationStatus | None = None
    timestamp: datetime | None = None
    retryable: bool = False

    def __post_init__(self) -> None:
        if self.channel is None:
            raise ValueError("channel cannot be null")
        if not self.error_message or not self.error_message.strip():
            raise ValueError("error_message cannot be null or blank")
        if self.status is None:
            object.__setattr__(self, "status", NotificationStatus.FAILED)
        if self.timestamp is None:
            object.__setattr__(self, "timestamp", _now())

    def raise_for_failure(self) -> NotificationResult:
        """Raise this failure as a SendFailedError.

        Raises:
            SendFailedError: Always, carrying channel, recipient and retryable flag
        """
        raise SendFailedError(
            self.error_message,
            channel=self.channel,
            recipient=self.recipient,
            retryable=self.retryable,
            reason_code=self.error_code,
        ) from self.cause
