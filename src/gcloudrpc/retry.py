"""Retry of transiently failing RPCs."""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable, Iterator
from typing import TypeVar

from gcloudrpc.exceptions import TransportError
from gcloudrpc.options import RetryPolicy

T = TypeVar("T")

logger = logging.getLogger(__name__)


def backoff_delays(retry_policy: RetryPolicy) -> Iterator[float]:
    """Yields the pause in seconds before each retry allowed by the policy."""
    backoff_ms = retry_policy.initial_backoff_ms
    for _ in range(retry_policy.max_attempts - 1):
        delay_ms = backoff_ms
        if retry_policy.jitter:
            delay_ms *= 1 + random.uniform(-retry_policy.jitter, retry_policy.jitter)
        yield max(delay_ms, 0) / 1000.0
        backoff_ms = min(
            int(backoff_ms * retry_policy.backoff_multiplier),
            retry_policy.max_backoff_ms,
        )


async def execute_with_retry(
    func: Callable[[], Awaitable[T]], retry_policy: RetryPolicy
) -> T:
    """Awaits ``func`` and reissues it while it fails with a retryable code.

    Attempts are strictly sequential. Errors with other codes, and the error
    of the last attempt, are raised to the caller.
    """
    delays = backoff_delays(retry_policy)
    attempt = 1
    while True:
        try:
            return await func()
        except TransportError as e:
            # Check if the error is retryable
            if (
                retry_policy.retryable_codes is None
                or e.code not in retry_policy.retryable_codes
            ):
                raise

            # Check if we've exhausted retries
            delay = next(delays, None)
            if delay is None:
                raise

            logger.warning(
                "Attempt %d of %d failed with %s, retrying in %.3fs",
                attempt,
                retry_policy.max_attempts,
                e.code.name,
                delay,
            )
            await asyncio.sleep(delay)
            attempt += 1
