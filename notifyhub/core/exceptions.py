"""Exception hierarchy for the dispatch pipeline.

Expected failures (validation, provider errors) travel as NotificationResult
values. Exceptions are reserved for misconfiguration and for callers that
explicitly ask for raising behavior.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from notifyhub.models.notification import NotificationChannel


class NotificationError(Exception):
    """Base error for notification operations."""

    default_code = "NOTIFICATION_ERROR"

    def __init__(self, message: str, error_code: str | None = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_code


class ConfigurationError(NotificationError):
    """Raised when the pipeline is wired incorrectly."""

    default_code = "CONFIGURATION_ERROR"

    def __init__(self, message: str, config_key: str | None = None):
        if config_key:
            message = f"Configuration error for '{config_key}': {message}"
        super().__init__(message)
        self.config_key = config_key


class ValidationError(NotificationError):
    """Raised on request when a notification fails validation."""

    default_code = "VALIDATION_ERROR"

    def __init__(self, errors: list[str], message: str | None = None):
        self.errors = list(errors)
        super().__init__(message or self._build_message(self.errors))

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @staticmethod
    def _build_message(errors: list[str]) -> str:
        if not errors:
            return "Validation failed"
        if len(errors) == 1:
            return f"Validation failed: {errors[0]}"
        return f"Validation failed with {len(errors)} errors: {'; '.join(errors)}"


class SendFailedError(NotificationError):
    """Raised on request when a send attempt produced a failure result."""

    default_code = "SEND_FAILED"

    def __init__(
        self,
        message: str,
        channel: "NotificationChannel | None" = None,
        recipient: str | None = None,
        retryable: bool = False,
        reason_code: str | None = None,
    ):
        super().__init__(message)
        self.reason_code = reason_code
        self.channel = channel
        self.recipient = recipient
        self.retryable = retryable
