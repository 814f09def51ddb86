"""Retry policy for arbitrary units of work.

Built on tenacity's retry engine. The policy decides *whether* to retry
(attempt budget, allow-list of error types, custom predicate) and *how long* to
wait (pluggable backoff strategy). After the last attempt, or when a failure is
not retryable, the original exception is re-raised unchanged.
"""

import threading
import time
from collections.abc import Awaitable, Callable, Iterable
from typing import Any, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    Retrying,
    retry_if_exception,
    stop_after_attempt,
)

from notifyhub.core.config import Settings, get_settings
from notifyhub.core.logging import get_logger
from notifyhub.observability.metrics import RETRY_ATTEMPTS
from notifyhub.retry.backoff import BackoffStrategy, ExponentialBackoff, backoff_from_settings

logger = get_logger(__name__)

T = TypeVar("T")


class _RetryInterrupted(Exception):
    """Raised from the sleep hook when the caller cancelled further retries."""


def _retry_any(error: BaseException) -> bool:
    return True


class RetryPolicy:
    """Executes an operation up to ``max_attempts`` times with backoff between attempts."""

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        strategy: BackoffStrategy | None = None,
        retry_on: Callable[[BaseException], bool] | None = None,
        retryable_exceptions: Iterable[type[BaseException]] = (),
        log_retries: bool = True,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize policy.

        Args:
            max_attempts: Total attempts including the first one (>= 1)
            base_delay: Base delay in seconds fed to the strategy
            strategy: Backoff strategy, exponential (x2) by default
            retry_on: Predicate over the failure; retries any error by default
            retryable_exceptions: When non-empty, only these types are retried
            log_retries: Log attempts, waits and give-ups
            sleep: Blocking sleep used between attempts
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if base_delay < 0:
            raise ValueError("base_delay cannot be negative")

        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.strategy = strategy or ExponentialBackoff()
        self.retry_on = retry_on or _retry_any
        self.retryable_exceptions: tuple[type[BaseException], ...] = tuple(retryable_exceptions)
        self.log_retries = log_retries
        self._sleep = sleep

    @classmethod
    def from_settings(cls, settings: Settings | None = None, **overrides: Any) -> "RetryPolicy":
        """Build a policy from settings; keyword overrides win."""
        settings = settings or get_settings()
        options: dict[str, Any] = {
            "max_attempts": settings.retry_max_attempts,
            "base_delay": settings.retry_base_delay,
            "strategy": backoff_from_settings(settings),
        }
        options.update(overrides)
        return cls(**options)

    def should_retry(self, error: BaseException) -> bool:
        """Decide whether a failure qualifies for another attempt."""
        if not isinstance(error, Exception):
            return False
        if self.retryable_exceptions and not isinstance(error, self.retryable_exceptions):
            return False
        return bool(self.retry_on(error))

    def calculate_delay(self, attempt: int) -> float:
        return self.strategy.calculate_delay(attempt, self.base_delay)

    def execute(
        self,
        operation: Callable[[], T],
        *,
        cancel_event: threading.Event | None = None,
    ) -> T:
        """Run ``operation`` until it succeeds or retrying stops.

        Args:
            operation: Callable taking no arguments
            cancel_event: Setting it during a wait stops retrying

        Returns:
            The operation's return value

        Raises:
            Exception: The last failure, unchanged
        """
        last_failure: dict[str, BaseException] = {}

        def remember_and_log(retry_state: RetryCallState) -> None:
            last_failure["error"] = retry_state.outcome.exception()
            self._before_sleep(retry_state)

        def wait(seconds: float) -> None:
            if cancel_event is None:
                self._sleep(seconds)
            elif cancel_event.wait(seconds):
                raise _RetryInterrupted()

        retrying = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=self._wait,
            retry=retry_if_exception(self.should_retry),
            before=self._before_attempt,
            before_sleep=remember_and_log,
            sleep=wait,
            reraise=True,
        )

        interrupted = False
        try:
            return retrying(operation)
        except _RetryInterrupted:
            interrupted = True
        except Exception as e:
            self._log_give_up(e, retrying.statistics.get("attempt_number", 1))
            raise

        RETRY_ATTEMPTS.labels(outcome="interrupted").inc()
        if self.log_retries:
            logger.warning("Retry wait interrupted, giving up")
        raise last_failure["error"]

    async def execute_async(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Async variant of ``execute``; waits with ``asyncio.sleep``.

        Cancelling the calling task cancels the wait and propagates as usual.
        """
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=self._wait,
            retry=retry_if_exception(self.should_retry),
            before=self._before_attempt,
            before_sleep=self._before_sleep,
            reraise=True,
        )
        try:
            return await retrying(operation)
        except Exception as e:
            self._log_give_up(e, retrying.statistics.get("attempt_number", 1))
            raise

    def _wait(self, retry_state: RetryCallState) -> float:
        return self.calculate_delay(retry_state.attempt_number)

    def _before_attempt(self, retry_state: RetryCallState) -> None:
        if self.log_retries and retry_state.attempt_number > 1:
            logger.info(
                "Retry attempt",
                attempt=retry_state.attempt_number,
                max_attempts=self.max_attempts,
            )

    def _before_sleep(self, retry_state: RetryCallState) -> None:
        RETRY_ATTEMPTS.labels(outcome="retried").inc()
        if not self.log_retries:
            return
        error = retry_state.outcome.exception()
        logger.warning(
            "Operation failed, retrying",
            attempt=retry_state.attempt_number,
            max_attempts=self.max_attempts,
            delay=retry_state.next_action.sleep if retry_state.next_action else None,
            error=str(error),
        )

    def _log_give_up(self, error: Exception, attempts: int) -> None:
        retryable = self.should_retry(error)
        RETRY_ATTEMPTS.labels(outcome="exhausted" if retryable else "rejected").inc()
        if not self.log_retries:
            return
        if retryable:
            logger.error(
                "Operation failed after all attempts",
                attempts=attempts,
                error=str(error),
            )
        else:
            logger.error(
                "Operation failed with non-retryable error",
                attempt=attempts,
                error=str(error),
            )

    def __repr__(self) -> str:
        return (
            f"RetryPolicy(max_attempts={self.max_attempts}, "
            f"base_delay={self.base_delay}, strategy={self.strategy.name})"
        )
