"""Bounded exponential backoff for transient storage failures."""

import logging
import time
from typing import Any, Callable, TypeVar

from .exceptions import StorageTransientError

log = logging.getLogger(__name__)

T = TypeVar("T")


class RetryPolicy:
    """
    Retries an operation on StorageTransientError with exponential backoff.

    Any other exception propagates on the first occurrence. When every attempt
    fails the last transient error is re-raised unchanged.
    """

    def __init__(
        self,
        max_attempts: int = 3,
        initial_delay: float = 0.5,
        max_delay: float = 8.0,
        backoff_factor: float = 2.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize the retry policy.

        Args:
            max_attempts: Total number of attempts, including the first one
            initial_delay: Delay before the second attempt in seconds
            max_delay: Upper bound for any single delay in seconds
            backoff_factor: Multiplier applied to the delay after each retry
            sleep: Sleep function, replaceable in tests
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.initial_delay = initial_delay
        self.max_delay = max_delay
        self.backoff_factor = backoff_factor
        self._sleep = sleep

    def call(self, operation: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """
        Execute an operation with retry logic.

        Args:
            operation: Function to execute
            *args: Positional arguments for the operation
            **kwargs: Keyword arguments for the operation

        Returns:
            Result of the operation

        Raises:
            StorageTransientError: After all attempts fail
        """
        delay = self.initial_delay
        name = getattr(operation, "__name__", "operation")

        for attempt in range(1, self.max_attempts + 1):
            try:
                return operation(*args, **kwargs)
            except StorageTransientError as e:
                if attempt == self.max_attempts:
                    log.error("%s failed after %d attempts: %s", name, attempt, e)
                    raise
                log.warning(
                    "Transient error in %s on attempt %d/%d, retrying in %.1fs: %s",
                    name, attempt, self.max_attempts, delay, e,
                )
                self._sleep(delay)
                delay = min(delay * self.backoff_factor, self.max_delay)

        raise AssertionError("unreachable")


NO_RETRY = RetryPolicy(max_attempts=1)
