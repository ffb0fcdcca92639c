"""Bounded submit -> poll -> fetch loop for long-running provider jobs.

Kling (fal.ai), Runway and HeyGen all accept a job, return an ID, and expect
the caller to poll a status endpoint until the job reaches a terminal state.
This module holds that loop so every client shares the same semantics:

- Wait a fixed interval before each status check
- Stop after max_attempts checks and raise ProviderTimeoutError
- A check returning None means "still running"
- A check raising ProviderError means "terminal failure" and stops the loop

The loop knows nothing about circuit breaking. Exhausting it is just one
more provider failure for the caller to record.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from adkit.exceptions import ProviderTimeoutError
from adkit.utils.logging import get_logger

log = get_logger(__name__)

T = TypeVar("T")


async def poll_until_complete(
    provider_id: str,
    job_id: str,
    check: Callable[[], Awaitable[T | None]],
    interval_seconds: float,
    max_attempts: int,
) -> T:
    """Poll a provider job until it completes, fails, or the budget runs out.

    Args:
        provider_id: Provider identifier (for logs and errors)
        job_id: Provider job/request ID
        check: Coroutine factory returning the result when complete,
            None while the job is pending; raises ProviderError on a
            terminal failure
        interval_seconds: Fixed wait before each check
        max_attempts: Maximum number of checks

    Returns:
        Whatever ``check`` returned once the job completed.

    Raises:
        ProviderError: Propagated from ``check`` on terminal failure
        ProviderTimeoutError: If no terminal state after max_attempts checks

    Example:
        >>> url = await poll_until_complete(
        ...     "kling", request_id, check_status, interval_seconds=5, max_attempts=60
        ... )
    """
    for attempt in range(1, max_attempts + 1):
        await asyncio.sleep(interval_seconds)

        log.debug(
            "provider_poll_attempt",
            provider_id=provider_id,
            job_id=job_id,
            attempt=attempt,
            max_attempts=max_attempts,
        )

        result = await check()
        if result is not None:
            log.info(
                "provider_job_complete",
                provider_id=provider_id,
                job_id=job_id,
                attempts=attempt,
            )
            return result

    raise ProviderTimeoutError(provider_id, job_id, interval_seconds * max_attempts)
