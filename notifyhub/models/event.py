"""Notification lifecycle event models."""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from notifyhub.models.notification import (
    Notification,
    NotificationChannel,
    NotificationStatus,
)
from notifyhub.models.result import Failure, Success


class NotificationEventType(str, Enum):
    """Lifecycle transitions a notification goes through."""

    CREATED = "created"
    SENDING = "sending"
    SENT = "sent"
    DELIVERED = "delivered"
    FAILED = "failed"
    RETRYING = "retrying"
    QUEUED = "queued"


class NotificationEvent(BaseModel):
    """Immutable snapshot of a lifecycle transition."""

    model_config = ConfigDict(frozen=True)

    event_type: NotificationEventType = Field(..., description="Lifecycle transition")
    notification_id: str = Field(..., description="Notification the event describes")
    channel: NotificationChannel = Field(..., description="Delivery channel")
    recipient: str | None = Field(default=None, description="Notification recipient")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    message: str | None = None
    error_code: str | None = None
    error_message: str | None = None
    provider_message_id: str | None = None
    metadata: dict[str, str] = Field(default_factory=dict)
    retry_attempt: int | None = Field(default=None, ge=1, description="Attempt number for retries")

    @property
    def is_retry(self) -> bool:
        return self.retry_attempt is not None

    @classmethod
    def for_notification(
        cls,
        event_type: NotificationEventType,
        notification: Notification,
        **fields,
    ) -> "NotificationEvent":
        """Create an event describing ``notification``."""
        return cls(
            event_type=event_type,
            notification_id=notification.notification_id,
            channel=notification.channel,
            recipient=notification.recipient,
            **fields,
        )

    @classmethod
    def from_result(
        cls,
        result: Success | Failure,
        retry_attempt: int | None = None,
        will_retry: bool = False,
    ) -> "NotificationEvent":
        """Create the SENT, QUEUED, RETRYING or FAILED event for a send result.

        A Failure is RETRYING only when ``will_retry`` says another attempt is
        scheduled. Otherwise it is terminal and maps to FAILED.
        """
        if isinstance(result, Success):
            event_type = (
                NotificationEventType.QUEUED
                if result.status == NotificationStatus.QUEUED
                else NotificationEventType.SENT
            )
            return cls(
                event_type=event_type,
                notification_id=result.notification_id,
                channel=result.channel,
                recipient=result.recipient,
                message=result.message,
                provider_message_id=result.provider_message_id,
                retry_attempt=retry_attempt,
            )

        return cls(
            event_type=(
                NotificationEventType.RETRYING if will_retry else NotificationEventType.FAILED
            ),
            notification_id=result.notification_id or "",
            channel=result.channel,
            recipient=result.recipient,
            error_code=result.error_code,
            error_message=result.error_message,
            retry_attempt=retry_attempt,
        )
