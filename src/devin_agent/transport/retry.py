"""
Bounded retry for transient Devin API failures.

Only ``transient`` outcomes (HTTP 429 / 5xx) are retried. Auth, credit,
network and aborted outcomes return immediately. Delay grows linearly:
``base_delay * attempt``.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from devin_agent.credentials import sanitize_error_message
from devin_agent.errors import RequestAborted
from devin_agent.transport.http import Outcome
from devin_agent.transport.signal import AbortSignal

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 3
DEFAULT_BASE_DELAY = 2.5


@dataclass
class RetryPolicy:
    max_retries: int = DEFAULT_MAX_RETRIES
    base_delay: float = DEFAULT_BASE_DELAY

    def delay_for(self, attempt: int) -> float:
        return self.base_delay * attempt


async def with_retry(
    operation: Callable[[], Awaitable[Outcome]],
    policy: RetryPolicy,
    label: str,
    signal: Optional[AbortSignal] = None,
) -> Outcome:
    """Run ``operation`` until it stops returning a retryable outcome or retries run out."""
    attempt = 0
    while True:
        outcome = await operation()
        if not outcome.retryable or attempt >= policy.max_retries:
            return outcome
        attempt += 1
        delay = policy.delay_for(attempt)
        logger.info(
            f"{label} retrying in {delay:.1f}s (attempt {attempt}/{policy.max_retries}): "
            f"{sanitize_error_message(outcome.error)}"
        )
        if signal is None:
            await asyncio.sleep(delay)
        elif not await signal.sleep(delay):
            return Outcome.failure(Outcome.ABORTED, RequestAborted())
