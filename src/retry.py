from __future__ import annotations

import logging
import time
from typing import Callable, Optional, TypeVar

from src.constants import RETRY_ATTEMPTS, RETRY_BASE_DELAY_SEC

T = TypeVar("T")

_logger = logging.getLogger(__name__)


def retry_with_backoff(
    operation: Callable[[], T],
    *,
    retries: int = RETRY_ATTEMPTS,
    base_delay: float = RETRY_BASE_DELAY_SEC,
    should_retry: Optional[Callable[[BaseException], bool]] = None,
    label: str = "",
) -> T:
    """Run ``operation``, retrying up to ``retries`` times on failure.

    The first retry waits ``base_delay`` seconds and every following retry
    doubles the wait. Once the budget is spent (or ``should_retry`` rejects
    the error) the last exception propagates unchanged.
    """
    name = label or getattr(operation, "__name__", "operation")
    delay = float(base_delay)
    remaining = max(0, int(retries))

    while True:
        try:
            return operation()
        except Exception as exc:
            if remaining == 0 or (should_retry is not None and not should_retry(exc)):
                _logger.error("Final attempt failed for %s: %s: %s", name, type(exc).__name__, exc)
                raise
            _logger.warning(
                "Retrying %s after %.1fs (%d retries remaining): %s",
                name,
                delay,
                remaining,
                exc,
            )
            time.sleep(delay)
            remaining -= 1
            delay *= 2
