"""Retry logic for model calls."""

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

from ..exceptions import SummarizationError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RetryPolicy:
    """Exponential backoff with jitter."""
    max_retries: int = 3
    base_delay: float = 1.0    # seconds
    max_delay: float = 30.0
    jitter: float = 1.0        # up to this many seconds added at random

    def delay_for(self, attempt: int) -> float:
        delay = min(self.base_delay * (2 ** attempt), self.max_delay)
        return delay + random.uniform(0, self.jitter)


def is_retryable(error: Exception) -> bool:
    return isinstance(error, SummarizationError) and error.retryable


async def retry_with_backoff(
    func: Callable[[], Awaitable[T]],
    policy: Optional[RetryPolicy] = None,
    should_retry: Callable[[Exception], bool] = is_retryable,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """
    Retry an async function with exponential backoff.

    Args:
        func: Async function to call (no arguments).
        policy: Attempt count and delays.
        should_retry: Decides whether an exception is worth another attempt;
            anything else is raised immediately.
        sleep: Injected for tests.

    Returns:
        Result of the function call.

    Raises:
        The last exception if all attempts fail.
    """
    policy = policy or RetryPolicy()

    last_exception = None

    for attempt in range(policy.max_retries + 1):
        try:
            return await func()
        except Exception as e:
            if not should_retry(e):
                raise
            last_exception = e
            if attempt < policy.max_retries:
                wait_time = policy.delay_for(attempt)
                logger.warning(
                    "Attempt %d/%d failed: %s. Retrying in %.2fs...",
                    attempt + 1, policy.max_retries + 1, e, wait_time,
                )
                await sleep(wait_time)
            else:
                logger.error("All %d attempts failed. Last error: %s", policy.max_retries + 1, e)

    raise last_exception


class RetryingClient:
    """
    Wraps any client with a complete() method in retry_with_backoff.

    Usage:
        client = RetryingClient(GeminiClient(pool), RetryPolicy(max_retries=3))
        text = await client.complete("Summarize ...")
    """

    def __init__(self, client, policy: Optional[RetryPolicy] = None, sleep=asyncio.sleep):
        self.client = client
        self.policy = policy or RetryPolicy()
        self.sleep = sleep

    async def complete(
        self,
        prompt: str,
        temperature: Optional[float] = None,
        max_output_tokens: Optional[int] = None,
    ) -> str:
        return await retry_with_backoff(
            lambda: self.client.complete(
                prompt, temperature=temperature, max_output_tokens=max_output_tokens
            ),
            policy=self.policy,
            sleep=self.sleep,
        )

    async def check_health(self) -> bool:
        return await self.client.check_health()
