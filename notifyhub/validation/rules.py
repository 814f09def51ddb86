"""Validation rules for notifications.

A rule is a pure function ``(notification) -> ValidationResult``. Rules never
raise; every violated constraint becomes an error message. Channel rule sets are
composed into chains by ``notifyhub.validation.chain``.
"""

import math
import re
from collections.abc import Callable
from dataclasses import dataclass

from email_validator import EmailNotValidError, validate_email

from notifyhub.models.notification import Notification, PushPlatform
from notifyhub.validation.result import ValidationResult

ValidationRule = Callable[[Notification], ValidationResult]

# Email limits
MAX_EMAIL_SUBJECT_LENGTH = 998  # RFC 2822 line limit
MAX_EMAIL_BODY_LENGTH = 100_000

# SMS limits
E164_PATTERN = re.compile(r"^\+[1-9]\d{1,14}$")
PHONE_PATTERN = re.compile(
    r"^[+]?[(]?[0-9]{1,4}[)]?[-\s.]?[(]?[0-9]{1,4}[)]?[-\s.]?[0-9]{1,9}$"
)
MAX_SMS_LENGTH_GSM7 = 160
MAX_SMS_LENGTH_UCS2 = 70
MAX_CONCATENATED_SMS = 1600

GSM7_CHARACTERS = frozenset(
    "@£$¥èéùìòÇ\nØø\rÅåΔ_ΦΓΛΩΠΨΣΘΞÆæßÉ !\"#¤%&'()*+,-./0123456789:;<=>?"
    "¡ABCDEFGHIJKLMNOPQRSTUVWXYZÄÖÑÜ§¿abcdefghijklmnopqrstuvwxyzäöñüà"
    "^{}\\[~]|€"
)

# Push limits
MAX_PUSH_TITLE_LENGTH = 65  # APNs
MAX_PUSH_BODY_LENGTH = 4096  # FCM
MAX_PUSH_DATA_PAYLOAD_BYTES = 4096  # FCM
MIN_PUSH_TTL_SECONDS = 0
MAX_PUSH_TTL_SECONDS = 2_419_200  # 28 days
MIN_DEVICE_TOKEN_LENGTH = 10
MAX_DEVICE_TOKEN_LENGTH = 500
APNS_TOKEN_LENGTH = 64
FCM_TOKEN_MIN_LENGTH = 100
FCM_TOKEN_MAX_LENGTH = 200
DATA_ENTRY_OVERHEAD_BYTES = 10  # quotes, colon and comma per JSON entry

APNS_TOKEN_PATTERN = re.compile(r"^[0-9a-fA-F]+$")


def _is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


def _body(notification: Notification) -> str | None:
    content = notification.content
    return content.body if content is not None else None


def is_valid_email_address(address: str | None) -> bool:
    """Check email address syntax without DNS lookups."""
    if _is_blank(address):
        return False
    try:
        validate_email(address, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


def is_valid_phone_number(number: str) -> bool:
    """Accept E.164 or the lenient generic phone format."""
    return bool(E164_PATTERN.match(number) or PHONE_PATTERN.match(number))


# ---------------------------------------------------------------------------
# Shared
# ---------------------------------------------------------------------------


def validate_base_fields(notification: Notification) -> ValidationResult:
    """Fields every channel requires: recipient and a non-blank body."""
    errors: list[str] = []

    if _is_blank(notification.recipient):
        errors.append("Recipient cannot be null or empty")

    if notification.content is None:
        errors.append("Notification content cannot be null")
    elif _is_blank(notification.content.body):
        errors.append("Notification body cannot be null or empty")

    return ValidationResult.from_errors(errors)


# ---------------------------------------------------------------------------
# Email
# ---------------------------------------------------------------------------


def validate_email_recipient(notification: Notification) -> ValidationResult:
    recipient = notification.recipient
    if not _is_blank(recipient) and not is_valid_email_address(recipient):
        return ValidationResult.invalid(f"Invalid recipient email address: {recipient}")
    return ValidationResult.valid()


def validate_email_subject(notification: Notification) -> ValidationResult:
    subject = getattr(notification, "subject", None)
    if _is_blank(subject):
        return ValidationResult.invalid("Email subject cannot be null or empty")
    if len(subject) > MAX_EMAIL_SUBJECT_LENGTH:
        return ValidationResult.invalid(
            f"Email subject exceeds maximum length of {MAX_EMAIL_SUBJECT_LENGTH} characters"
        )
    return ValidationResult.valid()


def validate_email_body(notification: Notification) -> ValidationResult:
    body = _body(notification)
    if body is not None and len(body) > MAX_EMAIL_BODY_LENGTH:
        return ValidationResult.invalid(
            f"Email body exceeds maximum length of {MAX_EMAIL_BODY_LENGTH} characters"
        )
    return ValidationResult.valid()


def validate_email_addresses(notification: Notification) -> ValidationResult:
    """CC, BCC, from and reply-to addresses."""
    errors: list[str] = []

    for cc in getattr(notification, "cc", None) or []:
        if not is_valid_email_address(cc):
            errors.append(f"Invalid CC email address: {cc}")

    for bcc in getattr(notification, "bcc", None) or []:
        if not is_valid_email_address(bcc):
            errors.append(f"Invalid BCC email address: {bcc}")

    from_email = getattr(notification, "from_email", None)
    if not _is_blank(from_email) and not is_valid_email_address(from_email):
        errors.append(f"Invalid from email address: {from_email}")

    reply_to = getattr(notification, "reply_to", None)
    if not _is_blank(reply_to) and not is_valid_email_address(reply_to):
        errors.append(f"Invalid reply-to email address: {reply_to}")

    return ValidationResult.from_errors(errors)


# ---------------------------------------------------------------------------
# SMS
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SmsSegmentInfo:
    """How an SMS body will be split into segments."""

    length: int
    encoding: str
    single_segment_limit: int
    segments: int

    @property
    def is_multi_segment(self) -> bool:
        return self.segments > 1


def is_gsm7(text: str) -> bool:
    """Check whether every character belongs to the GSM-7 alphabet."""
    return all(char in GSM7_CHARACTERS for char in text)


def analyze_sms_segments(body: str) -> SmsSegmentInfo:
    """Compute encoding and segment count for an SMS body."""
    gsm7 = is_gsm7(body)
    limit = MAX_SMS_LENGTH_GSM7 if gsm7 else MAX_SMS_LENGTH_UCS2
    length = len(body)
    segments = max(1, math.ceil(length / limit))
    return SmsSegmentInfo(
        length=length,
        encoding="GSM-7" if gsm7 else "UCS-2",
        single_segment_limit=limit,
        segments=segments,
    )


def validate_sms_recipient(notification: Notification) -> ValidationResult:
    if _is_blank(notification.recipient):
        return ValidationResult.valid()

    phone_number = notification.recipient.strip()
    if E164_PATTERN.match(phone_number):
        return ValidationResult.valid()
    if PHONE_PATTERN.match(phone_number):
        return ValidationResult.valid(
            [f"Phone number is not in E.164 format (recommended): {phone_number}"]
        )
    return ValidationResult.invalid(
        f"Invalid phone number format: {phone_number}. "
        "Expected E.164 format (e.g., +1234567890) or valid phone number"
    )


def validate_sms_body(notification: Notification) -> ValidationResult:
    """Reject bodies over the concatenation cap; note multi-segment bodies."""
    body = _body(notification)
    if body is None:
        return ValidationResult.valid()

    if len(body) > MAX_CONCATENATED_SMS:
        return ValidationResult.invalid(
            f"SMS body exceeds maximum length of {MAX_CONCATENATED_SMS} characters "
            f"(current: {len(body)})"
        )

    info = analyze_sms_segments(body)
    if info.is_multi_segment:
        return ValidationResult.valid(
            [
                f"SMS body exceeds single message limit ({info.single_segment_limit} chars). "
                f"Will be sent as {info.segments} segments. "
                f"Encoding: {info.encoding}, Length: {info.length}"
            ]
        )
    return ValidationResult.valid()


def validate_sms_sender(notification: Notification) -> ValidationResult:
    from_number = getattr(notification, "from_phone_number", None)
    if _is_blank(from_number):
        return ValidationResult.valid()
    from_number = from_number.strip()
    if not is_valid_phone_number(from_number):
        return ValidationResult.invalid(f"Invalid from phone number format: {from_number}")
    return ValidationResult.valid()


def validate_sms_options(notification: Notification) -> ValidationResult:
    errors: list[str] = []

    max_price = getattr(notification, "max_price", None)
    if max_price is not None and max_price <= 0:
        errors.append("Max price must be greater than 0")

    validity_period = getattr(notification, "validity_period", None)
    if validity_period is not None and validity_period <= 0:
        errors.append("Validity period must be greater than 0 seconds")

    return ValidationResult.from_errors(errors)


# ---------------------------------------------------------------------------
# Push
# ---------------------------------------------------------------------------


def estimate_data_payload_size(data: dict[str, str]) -> int:
    """Approximate the JSON-encoded size of a push data payload in bytes."""
    return sum(
        len(str(key).encode("utf-8")) + len(str(value).encode("utf-8")) + DATA_ENTRY_OVERHEAD_BYTES
        for key, value in data.items()
    )


def validate_push_title(notification: Notification) -> ValidationResult:
    title = getattr(notification, "title", None)
    if _is_blank(title):
        return ValidationResult.invalid("Push notification title cannot be null or empty")
    if len(title) > MAX_PUSH_TITLE_LENGTH:
        return ValidationResult.invalid(
            f"Push notification title exceeds maximum length of {MAX_PUSH_TITLE_LENGTH} "
            f"characters (current: {len(title)})"
        )
    return ValidationResult.valid()


def validate_push_body(notification: Notification) -> ValidationResult:
    body = _body(notification)
    if body is not None and len(body) > MAX_PUSH_BODY_LENGTH:
        return ValidationResult.invalid(
            f"Push notification body exceeds maximum length of {MAX_PUSH_BODY_LENGTH} "
            f"characters (current: {len(body)})"
        )
    return ValidationResult.valid()


def validate_device_token(notification: Notification) -> ValidationResult:
    """Generic token length plus platform-specific shape when the platform is known."""
    if _is_blank(notification.recipient):
        return ValidationResult.valid()

    token = notification.recipient.strip()
    errors: list[str] = []

    if len(token) < MIN_DEVICE_TOKEN_LENGTH:
        errors.append("Device token is too short to be valid")
    elif len(token) > MAX_DEVICE_TOKEN_LENGTH:
        errors.append("Device token is too long to be valid")

    platform = getattr(notification, "platform", None)
    if platform == PushPlatform.IOS:
        if len(token) != APNS_TOKEN_LENGTH or not APNS_TOKEN_PATTERN.match(token):
            errors.append("Invalid APNS device token format (expected 64 hex characters)")
    elif platform == PushPlatform.ANDROID:
        if not FCM_TOKEN_MIN_LENGTH <= len(token) <= FCM_TOKEN_MAX_LENGTH:
            errors.append("Invalid FCM device token format (expected ~152 characters)")

    return ValidationResult.from_errors(errors)


def validate_push_options(notification: Notification) -> ValidationResult:
    """Badge, TTL, payload size, collapse key, image URL and click action."""
    errors: list[str] = []

    badge = getattr(notification, "badge", None)
    if badge is not None and badge < 0:
        errors.append("Badge count cannot be negative")

    ttl = getattr(notification, "ttl", None)
    if ttl is not None:
        if ttl < MIN_PUSH_TTL_SECONDS:
            errors.append(f"TTL cannot be less than {MIN_PUSH_TTL_SECONDS} seconds")
        elif ttl > MAX_PUSH_TTL_SECONDS:
            errors.append(f"TTL cannot exceed {MAX_PUSH_TTL_SECONDS} seconds (28 days)")

    data = getattr(notification, "data", None)
    if data:
        estimated = estimate_data_payload_size(data)
        if estimated > MAX_PUSH_DATA_PAYLOAD_BYTES:
            errors.append(
                f"Data payload size exceeds maximum of {MAX_PUSH_DATA_PAYLOAD_BYTES} bytes "
                f"(estimated: {estimated} bytes)"
            )

    if getattr(notification, "collapsible", False) and _is_blank(
        getattr(notification, "collapse_key", None)
    ):
        errors.append("Collapse key is required when collapsible is true")

    image_url = getattr(notification, "image_url", None)
    if not _is_blank(image_url) and not image_url.startswith(("http://", "https://")):
        errors.append("Image URL must start with http:// or https://")

    click_action = getattr(notification, "click_action", None)
    if not _is_blank(click_action) and "://" not in click_action and not click_action.startswith("/"):
        errors.append("Click action should be a valid URL or path")

    return ValidationResult.from_errors(errors)
