"""Fixed-interval polling of a remote indexing job."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from src.evaluation.errors import PollingTransportError, UpstreamTransportError
from src.evaluation.models import JobStatus, PollOutcome

logger = logging.getLogger(__name__)

StatusFn = Callable[[str], Awaitable[JobStatus]]
SleepFn = Callable[[float], Awaitable[None]]


def polling_budget_ms(interval_ms: int, max_attempts: int) -> int:
    """Upper bound on the time spent polling, for user-facing expectations."""
    return interval_ms * max_attempts


async def poll_indexing_job(
    job_id: str,
    status_fn: StatusFn,
    *,
    interval_ms: int,
    max_attempts: int,
    sleep: SleepFn = asyncio.sleep,
) -> PollOutcome:
    """Poll ``status_fn`` until the job is terminal or attempts run out.

    ``ready`` and ``failed`` return immediately; a ``failed`` job is never
    polled again. Between non-terminal attempts the poller sleeps
    ``interval_ms``; there is no sleep after the final attempt.

    Raises:
        PollingTransportError: ``status_fn`` hit a transport failure.
        ValueError: ``max_attempts`` is below 1.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    for attempt in range(1, max_attempts + 1):
        try:
            status = await status_fn(job_id)
        except PollingTransportError:
            raise
        except UpstreamTransportError as exc:
            raise PollingTransportError(
                f"Polling job {job_id} failed on attempt {attempt}: {exc.message}",
                raw=exc.raw,
            ) from exc

        if status == JobStatus.READY:
            logger.info("Job %s ready after %d attempt(s)", job_id, attempt)
            return PollOutcome.READY
        if status == JobStatus.FAILED:
            logger.warning("Job %s reported failed on attempt %d", job_id, attempt)
            return PollOutcome.FAILED

        logger.debug("Job %s pending (attempt %d/%d)", job_id, attempt, max_attempts)
        if attempt < max_attempts:
            await sleep(interval_ms / 1000)

    logger.warning("Job %s still pending after %d attempts", job_id, max_attempts)
    return PollOutcome.TIMED_OUT
