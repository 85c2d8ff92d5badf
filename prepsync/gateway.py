"""
Request gateway: retry-with-backoff and in-flight deduplication.

Every outbound call is issued through ``RequestGateway.execute`` with a
request id. Concurrent reads sharing an id await one shared attempt
sequence; the registry entry is removed as soon as that sequence settles.
Mutations pass ``dedupe=False`` so each one reaches the server.

Retry classification:
- 4xx responses (httpx.HTTPStatusError) and ClientRequestError: raised at once
- Anything else (timeouts, connection errors, 5xx): retried with exponential
  backoff until attempts exhaust, then the last error is raised
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

import httpx
from loguru import logger

from prepsync.exceptions import ClientRequestError, RequestCancelledError

T = TypeVar("T")

Operation = Callable[[], Awaitable[T]]
Sleep = Callable[[float], Awaitable[Any]]


@dataclass(frozen=True)
class RetryPolicy:
    """Attempt ceiling and backoff schedule."""

    max_retries: int = 3
    base_delay: float = 1.0  # Seconds; doubles after every failed attempt

    def __post_init__(self) -> None:
        if self.max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        if self.base_delay < 0:
            raise ValueError("base_delay must not be negative")

    def delay_for(self, attempt: int) -> float:
        """Backoff after the zero-based ``attempt``: base, 2*base, 4*base, ..."""
        return self.base_delay * (2 ** attempt)

    @property
    def worst_case_seconds(self) -> float:
        """Total sleep of a fully exhausted attempt sequence."""
        return sum(self.delay_for(i) for i in range(self.max_retries - 1))


def is_client_error(exc: BaseException) -> bool:
    """True for errors that retrying cannot fix."""
    if isinstance(exc, ClientRequestError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return 400 <= exc.response.status_code < 500
    return False


class RequestGateway:
    """
    Policy layer wrapping outbound calls.

    Holds only the ephemeral in-flight registry; never persisted.
    """

    def __init__(self, policy: RetryPolicy | None = None, sleep: Sleep | None = None):
        self.policy = policy or RetryPolicy()
        self._sleep: Sleep = sleep or asyncio.sleep
        self._pending: dict[str, asyncio.Task[Any]] = {}

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def in_flight(self, request_id: str) -> bool:
        return request_id in self._pending

    async def execute(
        self,
        request_id: str,
        op: Operation[T],
        cancel: asyncio.Event | None = None,
        dedupe: bool = True,
    ) -> T:
        """
        Run ``op`` under the retry policy, sharing in-flight calls by id.

        Args:
            request_id: Signature of the request (same id = same request)
            op: Zero-argument coroutine factory issuing the request once
            cancel: Optional event; once set, no further attempts are made
            dedupe: Share an in-flight call with the same id (reads only)

        Returns:
            Result of the first successful attempt

        Raises:
            RequestCancelledError: If ``cancel`` was set before success
            Exception: The client error, or the last transient error
        """
        if not dedupe:
            return await self._run_with_retry(request_id, op, cancel)

        task = self._pending.get(request_id)
        if task is not None:
            logger.debug("Deduplicating request: {}", request_id)
        else:
            task = asyncio.ensure_future(self._run_with_retry(request_id, op, cancel))
            self._pending[request_id] = task
            task.add_done_callback(lambda done, key=request_id: self._release(key, done))

        # A caller that goes away must not cancel the attempt others share
        return await asyncio.shield(task)

    def _release(self, request_id: str, task: asyncio.Task[Any]) -> None:
        if self._pending.get(request_id) is task:
            del self._pending[request_id]
        if not task.cancelled():
            # Mark the exception retrieved; callers already received it
            task.exception()

    async def _run_with_retry(
        self,
        request_id: str,
        op: Operation[T],
        cancel: asyncio.Event | None,
    ) -> T:
        attempts = self.policy.max_retries
        attempt = 0

        while True:
            if cancel is not None and cancel.is_set():
                raise RequestCancelledError(request_id)
            try:
                return await op()
            except Exception as e:
                if is_client_error(e):
                    logger.error("Client error for {}: {}", request_id, e)
                    raise
                if attempt == attempts - 1:
                    logger.error("Request {} failed after {} attempts: {}", request_id, attempts, e)
                    raise
                wait_time = self.policy.delay_for(attempt)
                logger.warning(
                    "Request {} failed on attempt {}/{}: {}. Retrying in {}s...",
                    request_id,
                    attempt + 1,
                    attempts,
                    e,
                    wait_time,
                )
            await self._backoff(wait_time, cancel, request_id)
            attempt += 1

    async def _backoff(
        self,
        wait_time: float,
        cancel: asyncio.Event | None,
        request_id: str,
    ) -> None:
        if cancel is None:
            await self._sleep(wait_time)
            return

        sleeper = asyncio.ensure_future(self._sleep(wait_time))
        waiter = asyncio.ensure_future(cancel.wait())
        try:
            await asyncio.wait({sleeper, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            sleeper.cancel()
            waiter.cancel()
        if cancel.is_set():
            raise RequestCancelledError(request_id)
