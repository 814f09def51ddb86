"""Backoff strategies: pure functions of (attempt, base delay) to delay.

Attempts are 1-based. Strategies are unit-agnostic; the retry policy works in
seconds.
"""

import math
from abc import ABC, abstractmethod

from notifyhub.core.config import Settings, get_settings


class BackoffStrategy(ABC):
    """Computes the wait before the next attempt."""

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    def _delay(self, attempt: int, base_delay: float) -> float:
        pass

    def calculate_delay(self, attempt: int, base_delay: float) -> float:
        """Delay to wait after failed attempt number ``attempt``.

        Raises:
            ValueError: If attempt is not positive
        """
        if attempt <= 0:
            raise ValueError("Attempt must be positive")
        return self._delay(attempt, base_delay)

    def __repr__(self) -> str:
        return self.name


def _check_max_delay(max_delay: float | None) -> None:
    if max_delay is not None and max_delay <= 0:
        raise ValueError("Max delay must be positive")


class FixedBackoff(BackoffStrategy):
    """Constant delay: 1s, 1s, 1s..."""

    @property
    def name(self) -> str:
        return "FixedBackoff"

    def _delay(self, attempt: int, base_delay: float) -> float:
        return base_delay


class LinearBackoff(BackoffStrategy):
    """Delay grows linearly: base * attempt, optionally capped."""

    def __init__(self, max_delay: float | None = None):
        _check_max_delay(max_delay)
        self.max_delay = max_delay

    @property
    def name(self) -> str:
        return "LinearBackoff"

    def _delay(self, attempt: int, base_delay: float) -> float:
        delay = base_delay * attempt
        if self.max_delay is not None:
            delay = min(delay, self.max_delay)
        return delay


class ExponentialBackoff(BackoffStrategy):
    """Delay grows geometrically: base * multiplier ** (attempt - 1), optionally capped."""

    def __init__(self, multiplier: float = 2.0, max_delay: float | None = None):
        if multiplier <= 1.0:
            raise ValueError("Multiplier must be greater than 1.0")
        _check_max_delay(max_delay)
        self.multiplier = multiplier
        self.max_delay = max_delay

    @property
    def name(self) -> str:
        return f"ExponentialBackoff(multiplier={self.multiplier})"

    def _delay(self, attempt: int, base_delay: float) -> float:
        try:
            delay = base_delay * self.multiplier ** (attempt - 1)
        except OverflowError:
            delay = math.inf if base_delay else 0.0
        if self.max_delay is not None:
            delay = min(delay, self.max_delay)
        return delay


def backoff_from_settings(settings: Settings | None = None) -> BackoffStrategy:
    """Build the backoff strategy selected by settings."""
    settings = settings or get_settings()
    if settings.retry_backoff == "fixed":
        return FixedBackoff()
    if settings.retry_backoff == "linear":
        return LinearBackoff(max_delay=settings.retry_max_delay)
    return ExponentialBackoff(
        multiplier=settings.retry_multiplier,
        max_delay=settings.retry_max_delay,
    )
