"""Notification domain models.

A notification is a tagged union over the ``channel`` field. Every variant shares
recipient, content and metadata; each adds its channel-specific fields.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal, Union

from pydantic import BaseModel, Field


class NotificationChannel(str, Enum):
    """Delivery channel discriminant."""

    EMAIL = "email"
    SMS = "sms"
    PUSH = "push"

    def __str__(self) -> str:
        return self.value


class NotificationPriority(str, Enum):
    """Notification priority, usable for queuing decisions."""

    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def level(self) -> int:
        return _PRIORITY_LEVELS[self]


_PRIORITY_LEVELS = {
    NotificationPriority.LOW: 1,
    NotificationPriority.NORMAL: 5,
    NotificationPriority.HIGH: 10,
    NotificationPriority.CRITICAL: 15,
}


class NotificationStatus(str, Enum):
    """Status carried by a send result."""

    SENT = "sent"
    QUEUED = "queued"
    FAILED = "failed"
    VALIDATED = "validated"
    RETRYING = "retrying"


class PushPlatform(str, Enum):
    """Target platform of a push notification."""

    IOS = "ios"
    ANDROID = "android"
    WEB = "web"
    ALL = "all"


class PushPriority(str, Enum):
    """Delivery urgency of a push notification."""

    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class NotificationContent(BaseModel):
    """The message delivered to the recipient."""

    body: str | None = Field(default=None, description="Message body")
    title: str | None = Field(default=None, description="Optional title")
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Channel specific extras (html body, sound, short code...)",
    )

    def add_metadata(self, key: str, value: Any) -> None:
        self.metadata[key] = value

    def get_metadata(self, key: str) -> Any:
        return self.metadata.get(key)

    def has_metadata(self, key: str) -> bool:
        return key in self.metadata


class NotificationMetadata(BaseModel):
    """Tracking data attached to every notification instance."""

    notification_id: str = Field(
        default_factory=lambda: str(uuid.uuid4()),
        description="Unique notification identifier",
    )
    created_at: datetime = Field(default_factory=_utcnow)
    correlation_id: str | None = Field(
        default=None,
        description="Groups related notifications together",
    )
    user_id: str | None = Field(default=None, description="User who triggered the notification")
    priority: NotificationPriority = Field(default=NotificationPriority.NORMAL)
    tags: dict[str, str] = Field(default_factory=dict, description="Free-form tags")

    def add_tag(self, key: str, value: str) -> None:
        self.tags[key] = value

    def get_tag(self, key: str) -> str | None:
        return self.tags.get(key)


def _is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


class Notification(BaseModel):
    """Fields shared by all notification variants.

    Fields are deliberately lenient: missing or blank values are reported by the
    validation chain, not rejected at construction time.
    """

    channel: NotificationChannel
    recipient: str | None = Field(default=None, description="Address, phone number or device token")
    content: NotificationContent | None = Field(default=None, description="Message content")
    metadata: NotificationMetadata = Field(default_factory=NotificationMetadata)

    @property
    def notification_id(self) -> str:
        return self.metadata.notification_id

    def has_required_fields(self) -> bool:
        """Check the fields every send needs."""
        return (
            not _is_blank(self.recipient)
            and self.content is not None
            and not _is_blank(self.content.body)
        )


class EmailNotification(Notification):
    """Email notification."""

    channel: Literal[NotificationChannel.EMAIL] = NotificationChannel.EMAIL
    subject: str | None = None
    from_email: str | None = None
    from_name: str | None = None
    cc: list[str] = Field(default_factory=list)
    bcc: list[str] = Field(default_factory=list)
    reply_to: str | None = None
    html_body: str | None = None
    plain_text_body: str | None = None
    attachments: list[str] = Field(default_factory=list)

    def has_required_fields(self) -> bool:
        return super().has_required_fields() and not _is_blank(self.subject)

    def add_cc(self, email: str) -> None:
        self.cc.append(email)

    def add_bcc(self, email: str) -> None:
        self.bcc.append(email)

    def add_attachment(self, attachment: str) -> None:
        self.attachments.append(attachment)


class SmsNotification(Notification):
    """SMS notification. The recipient is a phone number."""

    channel: Literal[NotificationChannel.SMS] = NotificationChannel.SMS
    from_phone_number: str | None = None
    transactional: bool = True
    status_callback_url: str | None = None
    max_price: float | None = Field(default=None, description="Maximum price per message")
    validity_period: int | None = Field(default=None, description="Validity window in seconds")


class PushNotification(Notification):
    """Push notification. The recipient is a device token."""

    channel: Literal[NotificationChannel.PUSH] = NotificationChannel.PUSH
    title: str | None = None
    platform: PushPlatform = PushPlatform.ALL
    badge: int | None = None
    sound: str | None = None
    image_url: str | None = None
    click_action: str | None = None
    category: str | None = None
    ttl: int | None = Field(default=None, description="Time to live in seconds")
    priority: PushPriority = PushPriority.NORMAL
    data: dict[str, str] = Field(default_factory=dict, description="Custom data payload")
    collapsible: bool = False
    collapse_key: str | None = None

    def has_required_fields(self) -> bool:
        return super().has_required_fields() and not _is_blank(self.title)

    def add_data(self, key: str, value: str) -> None:
        self.data[key] = value


AnyNotification = Union[EmailNotification, SmsNotification, PushNotification]

NOTIFICATION_TYPES: dict[NotificationChannel, type[Notification]] = {
    NotificationChannel.EMAIL: EmailNotification,
    NotificationChannel.SMS: SmsNotification,
    NotificationChannel.PUSH: PushNotification,
}


def parse_notification(data: dict[str, Any]) -> Notification:
    """Build the notification variant selected by ``data["channel"]``.

    Raises:
        ValueError: If the channel is missing or unknown
    """
    if "channel" not in data:
        raise ValueError("channel is required to build a notification")
    model = NOTIFICATION_TYPES[NotificationChannel(data["channel"])]
    fields = {key: value for key, value in data.items() if key != "channel"}
    return model.model_validate(fields)
