from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..constants import (
    RECONNECT_BACKOFF_BASE,
    RECONNECT_BACKOFF_MAX,
    RECONNECT_MAX_ATTEMPTS,
)
from ..logging_config import log_structured_error
from .internal import (
    InternalError,
    MalformedLine,
    MissingConfiguration,
    TransportFault,
)

# First match wins, so subclasses go before their bases
ERROR_CATEGORIES: tuple[tuple[type[BaseException] | tuple[type[BaseException], ...], str], ...] = (
    ((TransportFault, OSError), "network"),
    (MissingConfiguration, "config"),
    (MalformedLine, "parsing"),
    (InternalError, "internal"),
)


def classify_error(error: BaseException) -> str:
    for kinds, category in ERROR_CATEGORIES:
        if isinstance(error, kinds):
            return category
    return "unknown"


def log_error(message: str, error: Exception, context: dict | None = None) -> None:
    """Log ``error`` under its category (network, config, parsing, ...)."""
    log_structured_error(
        error_type=classify_error(error),
        message=f"{message}: {error}",
        exception=error,
        context=context,
    )


T = TypeVar("T")


async def retry_transport(
    operation: Callable[[], Awaitable[T]],
    context: str,
    max_attempts: int = RECONNECT_MAX_ATTEMPTS,
) -> T:
    """Await ``operation`` again with exponential backoff while it raises TransportFault.

    Anything other than a TransportFault propagates on the first attempt.
    Once ``max_attempts`` is used up the last fault is re-raised.
    """

    def announce(state: RetryCallState) -> None:
        if state.attempt_number > 1:
            logging.info(f"🔄 {context}: attempt {state.attempt_number}/{max_attempts}")

    def record_failure(state: RetryCallState) -> None:
        if state.outcome is not None and state.outcome.failed:
            log_error(
                f"{context} attempt {state.attempt_number} failed",
                state.outcome.exception(),
                context={"attempt": state.attempt_number},
            )

    retrying = AsyncRetrying(
        retry=retry_if_exception_type(TransportFault),
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=RECONNECT_BACKOFF_BASE, max=RECONNECT_BACKOFF_MAX),
        before=announce,
        after=record_failure,
        reraise=True,
    )
    return await retrying(operation)
