"""Bounded retry with linear backoff, shared by provisioning and delivery."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_result,
    stop_after_attempt,
    wait_incrementing,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class RetryOutcome(Generic[T]):
    """Last value produced by the operation and how many attempts it took."""

    value: T | None
    attempts: int

    @property
    def succeeded(self) -> bool:
        return bool(self.value)


def _is_failure(value: object) -> bool:
    return not value


async def retry_until(
    op: Callable[[], Awaitable[T]],
    *,
    attempts: int,
    base_delay: float,
    sleep: Sleep = asyncio.sleep,
    description: str = "operation",
) -> RetryOutcome[T]:
    """Call ``op`` until it returns a truthy value, at most ``attempts`` times.

    Attempt n is followed by a wait of n x ``base_delay``. Exceptions raised
    by ``op`` propagate immediately and are not retried. After the final
    failed attempt the last falsy value is returned rather than raised.
    """
    attempts = max(1, attempts)
    count = 0

    async def _attempt() -> T:
        nonlocal count
        count += 1
        return await op()

    def _before_sleep(state: RetryCallState) -> None:
        logger.debug(
            "%s failed (attempt %d/%d), retrying in %.2fs",
            description, state.attempt_number, attempts,
            state.next_action.sleep if state.next_action else 0.0,
        )

    def _give_up(state: RetryCallState) -> T | None:
        logger.warning("%s failed after %d attempts", description, state.attempt_number)
        return state.outcome.result() if state.outcome else None

    retrying = AsyncRetrying(
        stop=stop_after_attempt(attempts),
        wait=wait_incrementing(start=base_delay, increment=base_delay),
        retry=retry_if_result(_is_failure),
        before_sleep=_before_sleep,
        retry_error_callback=_give_up,
        sleep=sleep,
    )
    value = await retrying(_attempt)
    return RetryOutcome(value=value, attempts=count)
