"""Ordered validation chains per channel."""

from collections.abc import Iterable
from functools import reduce

from notifyhub.core.logging import get_logger
from notifyhub.models.notification import Notification, NotificationChannel
from notifyhub.validation import rules
from notifyhub.validation.result import ValidationResult
from notifyhub.validation.rules import ValidationRule

logger = get_logger(__name__)


class ValidationChain:
    """An ordered list of rules combined by AND.

    Every rule runs even after an earlier one failed, so callers receive all
    violated constraints in a single pass.
    """

    def __init__(self, rules: Iterable[ValidationRule] = (), name: str = "default"):
        self._rules: tuple[ValidationRule, ...] = tuple(rules)
        self.name = name

    @property
    def rules(self) -> tuple[ValidationRule, ...]:
        return self._rules

    def then(self, *extra: ValidationRule) -> "ValidationChain":
        """Return a new chain with ``extra`` rules appended."""
        return ValidationChain((*self._rules, *extra), name=self.name)

    def validate(self, notification: Notification | None) -> ValidationResult:
        """Run every rule and combine the outcomes.

        Args:
            notification: Notification to validate

        Returns:
            Combined validation result, never raises
        """
        if notification is None:
            return ValidationResult.invalid("Notification cannot be null")

        return reduce(
            lambda combined, rule: combined.and_(self._apply(rule, notification)),
            self._rules,
            ValidationResult.valid(),
        )

    def _apply(self, rule: ValidationRule, notification: Notification) -> ValidationResult:
        try:
            return rule(notification)
        except Exception as e:
            rule_name = getattr(rule, "__name__", repr(rule))
            logger.error(
                "Validation rule raised",
                chain=self.name,
                rule=rule_name,
                error=str(e),
                exc_info=True,
            )
            return ValidationResult.invalid(f"Validation rule {rule_name} failed: {e}")

    def __len__(self) -> int:
        return len(self._rules)


EMAIL_CHAIN = ValidationChain(
    (
        rules.validate_base_fields,
        rules.validate_email_recipient,
        rules.validate_email_subject,
        rules.validate_email_body,
        rules.validate_email_addresses,
    ),
    name="email",
)

SMS_CHAIN = ValidationChain(
    (
        rules.validate_base_fields,
        rules.validate_sms_recipient,
        rules.validate_sms_body,
        rules.validate_sms_sender,
        rules.validate_sms_options,
    ),
    name="sms",
)

PUSH_CHAIN = ValidationChain(
    (
        rules.validate_base_fields,
        rules.validate_push_title,
        rules.validate_push_body,
        rules.validate_device_token,
        rules.validate_push_options,
    ),
    name="push",
)

_CHAINS: dict[NotificationChannel, ValidationChain] = {
    NotificationChannel.EMAIL: EMAIL_CHAIN,
    NotificationChannel.SMS: SMS_CHAIN,
    NotificationChannel.PUSH: PUSH_CHAIN,
}


def chain_for(channel: NotificationChannel) -> ValidationChain:
    """Get the default validation chain for a channel."""
    return _CHAINS[channel]


def validate(notification: Notification) -> ValidationResult:
    """Validate a notification with the chain selected by its channel."""
    if notification is None:
        return ValidationResult.invalid("Notification cannot be null")
    return chain_for(notification.channel).validate(notification)
