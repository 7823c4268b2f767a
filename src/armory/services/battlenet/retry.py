"""
Retry policy and driver for Battle.net requests.

``RetryPolicy.decide`` is a pure function of the attempt number and the
error; ``run_with_retry`` feeds it to ``tenacity.AsyncRetrying`` and adds the
request/retry counters and cancellation handling.
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, TypeVar

import aiohttp
from tenacity import AsyncRetrying, RetryCallState

from armory.shared.constants import MetricNames, NetworkConfig
from armory.shared.errors import ArmoryError, ErrorContext, RequestAbortedError, UpstreamError

logger = logging.getLogger(__name__)

T = TypeVar("T")

TRANSIENT_EXCEPTIONS: tuple[type[BaseException], ...] = (
    aiohttp.ClientError,
    asyncio.TimeoutError,
    OSError,
)


@dataclass(frozen=True)
class RetryDecision:
    """Outcome of a retry decision."""

    should_retry: bool
    delay_ms: float = 0.0


NO_RETRY = RetryDecision(should_retry=False)


class RetryPolicy:
    """Exponential backoff with jitter over retryable failures.

    Example:
        >>> policy = RetryPolicy(max_retries=2, rand=lambda: 0.0)
        >>> policy.decide(0, UpstreamRequestError("us", "/x", 503))
        RetryDecision(should_retry=True, delay_ms=250.0)
        >>> policy.decide(2, UpstreamRequestError("us", "/x", 503)).should_retry
        False
    """

    def __init__(
        self,
        max_retries: int = NetworkConfig.MAX_FETCH_RETRIES,
        base_delay_ms: int = NetworkConfig.BASE_RETRY_DELAY_MS,
        max_delay_ms: int = NetworkConfig.MAX_RETRY_DELAY_MS,
        jitter_ms: int = NetworkConfig.RETRY_JITTER_MS,
        retryable_statuses: frozenset[int] = NetworkConfig.RETRYABLE_STATUS_CODES,
        rand: Callable[[], float] = random.random,
    ) -> None:
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self.max_delay_ms = max_delay_ms
        self.jitter_ms = jitter_ms
        self.retryable_statuses = retryable_statuses
        self._rand = rand

    def is_retryable(self, error: BaseException) -> bool:
        """Classify an error as transient."""
        if isinstance(error, (RequestAbortedError, asyncio.CancelledError)):
            return False
        if isinstance(error, UpstreamError):
            status = error.upstream_status
            return status in self.retryable_statuses or status >= 500
        if isinstance(error, ArmoryError):
            return False
        return isinstance(error, TRANSIENT_EXCEPTIONS)

    def delay_for(self, attempt: int) -> float:
        """Backoff delay in milliseconds after the zero-based ``attempt``."""
        backoff = min(self.base_delay_ms * 2**attempt, self.max_delay_ms)
        return backoff + self._rand() * self.jitter_ms

    def decide(self, attempt: int, error: BaseException) -> RetryDecision:
        """Decide whether to retry after the zero-based ``attempt`` failed with ``error``."""
        if attempt >= self.max_retries or not self.is_retryable(error):
            return NO_RETRY
        return RetryDecision(should_retry=True, delay_ms=self.delay_for(attempt))


def _status_label(error: BaseException | None) -> str:
    if error is None:
        return MetricNames.STATUS_SUCCESS
    if isinstance(error, UpstreamError):
        return str(error.upstream_status)
    return MetricNames.STATUS_ERROR


def _aborted(operation: str) -> RequestAbortedError:
    return RequestAbortedError(context=ErrorContext(operation=operation))


async def _interruptible_sleep(
    seconds: float,
    sleep: Callable[[float], Awaitable[Any]],
    cancel_event: asyncio.Event | None,
) -> None:
    """Sleep for ``seconds``, returning early once ``cancel_event`` is set."""
    if cancel_event is None:
        await sleep(seconds)
        return

    sleeper = asyncio.ensure_future(sleep(seconds))
    waiter = asyncio.ensure_future(cancel_event.wait())
    try:
        await asyncio.wait({sleeper, waiter}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in (sleeper, waiter):
            if not task.done():
                task.cancel()


async def run_with_retry(
    func: Callable[[], Awaitable[T]],
    *,
    policy: RetryPolicy,
    operation: str,
    metrics: Any | None = None,
    cancel_event: asyncio.Event | None = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> T:
    """Run ``func`` with retries decided by ``policy``.

    Every attempt increments ``bnet_requests_total{status, operation}`` and
    every scheduled retry ``bnet_retry_total{operation}``. When retries are
    exhausted or the error is not retryable, the last error is raised
    unchanged.

    Args:
        func: Coroutine factory performing one attempt
        policy: Retry policy
        operation: Metric label ("token" or "fetch")
        metrics: MetricsRegistry receiving the counters
        cancel_event: Abort signal; stops the loop between and before attempts
        sleep: Awaitable sleep, injectable for tests

    Raises:
        RequestAbortedError: If ``cancel_event`` is set
    """
    decisions: dict[int, RetryDecision] = {}

    def record(metric: str, labels: dict[str, str]) -> None:
        if metrics is not None:
            metrics.increment(metric, labels=labels)

    async def attempt() -> T:
        if cancel_event is not None and cancel_event.is_set():
            raise _aborted(operation)
        try:
            result = await func()
        except BaseException as e:
            if not isinstance(e, (RequestAbortedError, asyncio.CancelledError)):
                record(MetricNames.BNET_REQUESTS, {"status": _status_label(e), "operation": operation})
            raise
        record(MetricNames.BNET_REQUESTS, {"status": _status_label(None), "operation": operation})
        return result

    def should_retry(retry_state: RetryCallState) -> bool:
        outcome = retry_state.outcome
        if outcome is None or not outcome.failed:
            return False
        if cancel_event is not None and cancel_event.is_set():
            return False
        decision = policy.decide(retry_state.attempt_number - 1, outcome.exception())
        decisions[retry_state.attempt_number] = decision
        return decision.should_retry

    def wait(retry_state: RetryCallState) -> float:
        decision = decisions.get(retry_state.attempt_number, NO_RETRY)
        return decision.delay_ms / 1000

    def before_sleep(retry_state: RetryCallState) -> None:
        record(MetricNames.BNET_RETRY, {"operation": operation})
        outcome = retry_state.outcome
        logger.debug(
            "Retrying %s after attempt %d in %.0fms: %s",
            operation,
            retry_state.attempt_number,
            decisions[retry_state.attempt_number].delay_ms,
            outcome.exception() if outcome is not None else None,
        )

    async def pause(seconds: float) -> None:
        await _interruptible_sleep(seconds, sleep, cancel_event)

    retrying = AsyncRetrying(
        retry=should_retry,
        wait=wait,
        sleep=pause,
        before_sleep=before_sleep,
        reraise=True,
    )

    try:
        return await retrying(attempt)
    except RequestAbortedError:
        raise
    except Exception as e:
        if cancel_event is not None and cancel_event.is_set():
            raise _aborted(operation) from e
        raise


__all__ = ["NO_RETRY", "TRANSIENT_EXCEPTIONS", "RetryDecision", "RetryPolicy", "run_with_retry"]
