"""
Retry with exponential backoff for idempotent Sheets reads.

Only reads go through here; writes are sent exactly once.
"""

import logging
import random
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

from outreach.errors import SheetNotFoundError, UpstreamUnavailableError

T = TypeVar("T")


@dataclass
class RetryConfig:
    """Configuration for retry behavior with exponential backoff."""

    max_retries: int = 3
    base_delay: float = 0.5  # seconds
    max_delay: float = 8.0  # seconds
    exponential_base: float = 2.0


def retry_with_backoff(
    func: Callable[[], T],
    config: RetryConfig,
    logger_: logging.Logger | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Execute func, retrying UpstreamUnavailableError with backoff and jitter.

    Raises:
        The last UpstreamUnavailableError once retries are exhausted.
        SheetNotFoundError and any other error propagate immediately.
    """
    attempts = max(config.max_retries, 0) + 1
    for attempt in range(attempts):
        try:
            return func()
        except SheetNotFoundError:
            raise
        except UpstreamUnavailableError as e:
            if attempt + 1 >= attempts:
                if logger_:
                    logger_.error(f"All {attempts} attempts failed")
                raise
            delay = min(config.base_delay * (config.exponential_base**attempt), config.max_delay)
            actual_delay = delay + random.uniform(0, delay * 0.1)  # noqa: S311
            if logger_:
                logger_.warning(
                    f"Attempt {attempt + 1} failed: {e}. Retrying in {actual_delay:.1f}s"
                )
            sleep(actual_delay)
