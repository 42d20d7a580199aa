"""Bounded status polling for job-based providers.

Some providers (Replicate) accept a job and answer later.  The adapter submits
the job and hands a ``fetch`` coroutine to :func:`poll_until_complete`, which
asks for the job's status until it is terminal or the attempt budget runs out.

The loop only suspends in ``asyncio.sleep`` and in ``fetch`` itself, so
cancelling the awaiting task stops polling immediately.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from .errors import PollingTimeoutError
from .models import AsyncJob

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 1.0
DEFAULT_MAX_ATTEMPTS = 60


async def poll_until_complete(
    fetch: Callable[[], Awaitable[AsyncJob]],
    *,
    interval: float = DEFAULT_POLL_INTERVAL,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> AsyncJob:
    """Poll *fetch* until the job reaches a terminal state.

    Args:
        fetch: Coroutine function returning the current job snapshot.
        interval: Seconds to wait before each attempt.
        max_attempts: Maximum number of ``fetch`` calls.

    Returns:
        The first terminal job snapshot (succeeded, failed or canceled).

    Raises:
        PollingTimeoutError: After exactly ``max_attempts`` non-terminal polls.
        Any exception raised by ``fetch`` propagates unchanged.
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")

    job: AsyncJob | None = None
    for attempt in range(1, max_attempts + 1):
        await asyncio.sleep(interval)
        job = await fetch()
        logger.debug(f"Poll {attempt}/{max_attempts} for job {job.job_id}: {job.status.value}")
        if job.status.is_terminal:
            return job

    job_id = job.job_id if job else "unknown"
    logger.warning(f"Job {job_id} still pending after {max_attempts} polls")
    raise PollingTimeoutError(
        f"Generation timed out after {max_attempts} status checks. Please try again.",
        attempts=max_attempts,
    )
