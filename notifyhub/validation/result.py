"""Outcome of validating a notification."""

from dataclasses import dataclass, field

from notifyhub.core.exceptions import ValidationError


@dataclass(frozen=True)
class ValidationResult:
    """Validation status with ordered error messages.

    Warnings are non-blocking observations: they are carried along and
    combined like errors but never make a result invalid.
    """

    is_valid: bool
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = field(default=())

    def __post_init__(self) -> None:
        if self.is_valid and self.errors:
            raise ValueError("A valid result cannot carry errors")
        if not self.is_valid and not self.errors:
            raise ValueError("Errors list cannot be null or empty for invalid result")

    @classmethod
    def valid(cls, warnings: list[str] | tuple[str, ...] = ()) -> "ValidationResult":
        return cls(is_valid=True, warnings=tuple(warnings))

    @classmethod
    def invalid(
        cls,
        errors: str | list[str] | tuple[str, ...],
        warnings: list[str] | tuple[str, ...] = (),
    ) -> "ValidationResult":
        """Create a failed result from one error or a non-empty list of errors."""
        if isinstance(errors, str):
            errors = (errors,)
        return cls(is_valid=False, errors=tuple(errors), warnings=tuple(warnings))

    @classmethod
    def from_errors(
        cls,
        errors: list[str],
        warnings: list[str] | None = None,
    ) -> "ValidationResult":
        """Valid when ``errors`` is empty, invalid otherwise."""
        if errors:
            return cls.invalid(errors, warnings or ())
        return cls.valid(warnings or ())

    @property
    def first_error(self) -> str | None:
        return self.errors[0] if self.errors else None

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def and_(self, other: "ValidationResult") -> "ValidationResult":
        """Combine two results; errors and warnings keep call order."""
        warnings = self.warnings + other.warnings
        if self.is_valid and other.is_valid:
            return ValidationResult.valid(warnings)
        return ValidationResult.invalid(self.errors + other.errors, warnings)

    __and__ = and_

    def raise_if_invalid(self) -> None:
        """Raise ValidationError carrying every error when invalid."""
        if not self.is_valid:
            raise ValidationError(list(self.errors))
