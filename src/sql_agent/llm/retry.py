"""
Transport Retry
===============

Bounded retry with backoff for flaky LLM calls.

This only covers transport failures (dropped connections, rate limits). It
has nothing to do with the agent's safety refinement loop.
"""

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

import structlog

logger = structlog.get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """How many times to call, and how long to wait between calls."""

    max_attempts: int = 3
    delay_seconds: float = 0.3
    backoff: float = 2.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.delay_seconds < 0 or self.backoff < 1:
            raise ValueError("delay_seconds must be >= 0 and backoff >= 1")

    def delay_for(self, attempt: int) -> float:
        """Delay after the given failed attempt (1-based)."""
        return self.delay_seconds * (self.backoff ** (attempt - 1))


async def call_with_retry(
    func: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """
    Await ``func`` until it succeeds or the policy is spent.

    Args:
        func: Zero-argument coroutine factory
        policy: Attempt budget and backoff
        retry_on: Exception types worth retrying; anything else propagates
        sleep: Injected for tests

    Returns:
        The first successful result

    Raises:
        The last exception once ``policy.max_attempts`` calls have failed
    """
    attempt = 1
    while True:
        try:
            return await func()
        except retry_on as exc:
            if attempt >= policy.max_attempts:
                raise
            delay = policy.delay_for(attempt)
            logger.warning(
                "llm.call_retry",
                attempt=attempt,
                max_attempts=policy.max_attempts,
                delay_seconds=delay,
                error=str(exc),
            )
            await sleep(delay)
            attempt += 1
