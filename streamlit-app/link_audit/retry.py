"""
Retry wrapper for availability checks.

Attempts run one after another. A loaded page or a 404 ends the loop; any
other page status waits `retry_delay` seconds and tries again.
"""

import asyncio
import logging
from dataclasses import replace
from typing import Awaitable, Callable

from .schemas import (
    CheckResult, TERMINAL_STATUSES, STATUS_MAINTENANCE, STATUS_TIMEOUT,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY = 10.0  # seconds

CheckAttempt = Callable[[int], Awaitable[CheckResult]]


async def retry_with_maintenance_detection(
    check: CheckAttempt,
    max_retries: int = DEFAULT_MAX_RETRIES,
    retry_delay: float = DEFAULT_RETRY_DELAY,
    url: str = "",
) -> CheckResult:
    """Run `check(attempt)` up to max_retries times.

    On the last attempt the result is annotated with `final_status`
    (under_maintenance if that was the last state seen, otherwise timeout)
    and `retry_attempts`. Exceptions raised by `check` count as failed
    attempts.
    """
    if max_retries < 1:
        raise ValueError("max_retries must be at least 1")

    for attempt in range(1, max_retries + 1):
        try:
            result = await check(attempt)

            if result.page_status in TERMINAL_STATUSES:
                return replace(result, retry_attempts=attempt)

            if attempt == max_retries:
                final_status = STATUS_MAINTENANCE if result.page_status == STATUS_MAINTENANCE else STATUS_TIMEOUT
                return result.with_retry_outcome(final_status, attempt)

            logger.warning(
                "Attempt %d/%d failed: %s. Retrying %s in %ss...",
                attempt, max_retries, result.page_status, url, retry_delay,
            )

        except Exception as e:
            if attempt == max_retries:
                return CheckResult(
                    url=url,
                    available=False,
                    error=f"Failed after {max_retries} attempts: {e}",
                    page_status=STATUS_TIMEOUT,
                    final_status=STATUS_TIMEOUT,
                    retry_attempts=attempt,
                )
            logger.warning(
                "Attempt %d/%d error: %s. Retrying %s in %ss...",
                attempt, max_retries, e, url, retry_delay,
            )

        await asyncio.sleep(retry_delay)

    # Unreachable: the last attempt always returns
    raise AssertionError("retry loop exited without a result")
