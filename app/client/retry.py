"""Retry policy for relay calls made by the orchestrator."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

import httpx
from tenacity import AsyncRetrying, RetryCallState, retry_if_exception, stop_after_attempt, wait_fixed

from app.exceptions.base import AuthenticationError, NotFoundError, ValidationError
from app.exceptions.pipeline import (
    ConfigurationError,
    MemoryServiceError,
    PersistenceError,
    StorageError,
    UpstreamError,
    UpstreamResponseError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRY_ATTEMPTS = 3
RETRY_DELAY_SECONDS = 2.0

FATAL_ERRORS: tuple[type[Exception], ...] = (
    ConfigurationError,
    PersistenceError,
    StorageError,
    MemoryServiceError,
    AuthenticationError,
    NotFoundError,
    ValidationError,
)
RETRYABLE_ERRORS: tuple[type[Exception], ...] = (
    UpstreamError,
    UpstreamResponseError,
    httpx.TransportError,
)


def classify_error(error: BaseException) -> bool:
    """Whether an error is worth another attempt.

    Cancellation is never retried. Errors outside both lists are treated as
    transient.
    """
    if not isinstance(error, Exception):
        return False
    if isinstance(error, RETRYABLE_ERRORS):
        return True
    return not isinstance(error, FATAL_ERRORS)


def _retry_everything(error: BaseException) -> bool:
    return isinstance(error, Exception)


class RetryPolicy:
    """Fixed-attempt, constant-delay retry around one async operation."""

    def __init__(
        self,
        attempts: int = RETRY_ATTEMPTS,
        delay: float = RETRY_DELAY_SECONDS,
        is_retryable: Callable[[BaseException], bool] = classify_error,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.attempts = attempts
        self.delay = delay
        self.is_retryable = is_retryable
        self.sleep = sleep

    @classmethod
    def uniform(cls, **kwargs) -> "RetryPolicy":
        """Retry every failure alike, configuration errors included."""
        return cls(is_retryable=_retry_everything, **kwargs)

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        on_attempt: Callable[[int], None] | None = None,
    ) -> T:
        """Run ``operation`` until it succeeds, fails fatally or runs out of attempts.

        Args:
            operation: Zero-argument coroutine factory, called once per attempt.
            on_attempt: Called with the attempt number before each attempt.

        Returns:
            The operation's result.

        Raises:
            The last error raised by the operation.
        """
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.attempts),
            wait=wait_fixed(self.delay),
            retry=retry_if_exception(self.is_retryable),
            sleep=self.sleep,
            before_sleep=self._log_retry,
            reraise=True,
        )

        async for attempt in retrying:
            with attempt:
                if on_attempt is not None:
                    on_attempt(attempt.retry_state.attempt_number)
                result = await operation()
        return result

    def _log_retry(self, retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            f"Attempt {retry_state.attempt_number}/{self.attempts} failed "
            f"({type(error).__name__}: {error}), retrying in {self.delay:g}s"
        )
