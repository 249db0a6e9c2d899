"""Bounded retry for operations that lose an optimistic-concurrency race."""

import logging
from typing import Callable, Optional, TypeVar

from shopledger.config import get_max_retries
from shopledger.domain.errors import ConcurrentModificationError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def run_with_retry(
    operation: Callable[[], T],
    name: str,
    attempts: Optional[int] = None,
) -> T:
    """Run an operation, re-running it from scratch on ConcurrentModificationError.

    The operation must re-read and re-validate everything it depends on, since
    a retry starts from the current stored state.

    Args:
        operation: Zero-argument callable performing one complete attempt
        name: Operation name for logging
        attempts: Maximum attempts (defaults to SHOPLEDGER_MAX_RETRIES)

    Returns:
        The operation's result

    Raises:
        ConcurrentModificationError: If every attempt conflicted
    """
    attempts = attempts or get_max_retries()
    for attempt in range(1, attempts + 1):
        try:
            return operation()
        except ConcurrentModificationError:
            if attempt == attempts:
                logger.warning(
                    "Giving up on %s after %d conflicting attempts", name, attempts
                )
                raise
            logger.warning(
                "Retrying %s after concurrent modification (attempt %d/%d)",
                name,
                attempt,
                attempts,
            )
    raise AssertionError("unreachable")
