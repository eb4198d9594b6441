"""
Connect Retry
=============

Bounded startup retry for data-store connections.

A connection that cannot be established after the configured number of
attempts is fatal: callers get a TransportConnectError and are expected
to stop.

Version: 0.1.0
"""

from collections.abc import Awaitable, Callable
from typing import TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    stop_after_attempt,
    wait_incrementing,
)

from shared.logging import get_logger


logger = get_logger(__name__)

T = TypeVar("T")


class TransportConnectError(Exception):
    """A data store stayed unreachable after all connect attempts."""

    def __init__(self, target: str, attempts: int, cause: BaseException | None = None) -> None:
        self.target = target
        self.attempts = attempts
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Could not connect to {target} after {attempts} attempt(s){detail}")


def _log_retry(target: str) -> Callable[[RetryCallState], None]:
    def _before_sleep(retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            "connect_retry",
            target=target,
            attempt=retry_state.attempt_number,
            wait=retry_state.next_action.sleep if retry_state.next_action else None,
            error=str(exc) if exc else None,
        )

    return _before_sleep


async def connect_with_retry(
    operation: Callable[[], Awaitable[T]],
    *,
    target: str,
    attempts: int = 5,
    backoff_seconds: float = 2.0,
) -> T:
    """
    Run a connect operation with bounded, linearly increasing backoff.

    With the defaults the waits between attempts are 2s, 4s, 6s and 8s.

    Args:
        operation: Zero-argument coroutine factory performing the connect
        target: Human-readable name of the store (for logs and errors)
        attempts: Maximum number of attempts
        backoff_seconds: First wait and per-attempt increment

    Returns:
        Whatever the operation returns on its first successful attempt

    Raises:
        TransportConnectError: If every attempt failed
    """
    retrying = AsyncRetrying(
        stop=stop_after_attempt(attempts),
        wait=wait_incrementing(start=backoff_seconds, increment=backoff_seconds),
        before_sleep=_log_retry(target),
        reraise=True,
    )

    try:
        async for attempt in retrying:
            with attempt:
                result = await operation()
    except Exception as e:
        logger.error("connect_failed", target=target, attempts=attempts, error=str(e))
        raise TransportConnectError(target, attempts, e) from e

    logger.info("connected", target=target)
    return result
