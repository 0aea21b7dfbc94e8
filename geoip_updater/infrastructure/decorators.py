"""
Infrastructure-specific decorators, providing cross-cutting concerns like
retry logic for callers of the update pipeline.

The pipeline itself never retries; a caller opts in by wrapping its call.
"""

import logging

from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)

from ..application.exceptions import TransportError

logger = logging.getLogger(__name__)

# --- Defaults for Retry Logic ---
_RETRY_MIN_WAIT_SECONDS = 1
_RETRY_MAX_WAIT_SECONDS = 10


def _log_before_retry(retry_state):
    """Log the retry attempt with details about the exception and wait time."""
    exception = retry_state.outcome.exception()
    next_attempt_in = retry_state.next_action.sleep
    logger.warning(
        f"Retrying {retry_state.fn.__name__} in {next_attempt_in:.2f}s due to "
        f"{type(exception).__name__} (attempt {retry_state.attempt_number})..."
    )


def retry_on_transport_error(
    attempts: int,
    min_wait: float = _RETRY_MIN_WAIT_SECONDS,
    max_wait: float = _RETRY_MAX_WAIT_SECONDS,
):
    """
    Build a decorator retrying a call when the download service fails.

    Integrity and local I/O failures are not retried. Once the attempts
    are exhausted the last TransportError is re-raised.
    """
    return retry(
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=1, min=min_wait, max=max_wait),
        retry=retry_if_exception_type(TransportError),
        before_sleep=_log_before_retry,
        reraise=True,
    )
