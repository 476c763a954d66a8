"""Fixed-interval reconnect loop around a single executor."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable
from typing import Callable
from typing import Optional

from graphql_cli_tools.errors import GraphQLClientError
from graphql_cli_tools.models import OperationRequest
from graphql_cli_tools.models import ReconnectPolicy
from graphql_cli_tools.sink import ResponseSink
from graphql_cli_tools.transport import Executor

logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]


@dataclass
class ExecutionOutcome:
    """Summary of a driver run."""
    attempts: int
    last_error: Optional[GraphQLClientError] = None

    @property
    def succeeded(self) -> bool:
        """Whether the final attempt completed without error."""
        return self.last_error is None


class ReconnectDriver:
    """Run an executor once, or forever at a fixed interval.

    Attempt failures are logged, never raised. With no interval the single
    attempt's outcome is returned as is. With an interval, every failed
    attempt is followed by a sleep and a new attempt on a fresh copy of the
    request; the loop only ends on a successful attempt or on :meth:`stop`.
    """

    def __init__(
        self,
        executor: Executor,
        policy: Optional[ReconnectPolicy] = None,
        sleep: Optional[SleepFunc] = None,
    ) -> None:
        """Initialize reconnect driver.

        Args:
            executor: Transport executor
            policy: Reconnect policy (default: single attempt)
            sleep: Coroutine used to wait between attempts (default: asyncio.sleep)
        """
        self.executor = executor
        self.policy = policy or ReconnectPolicy()
        self._sleep = sleep
        self._stopped = False
        self.attempts = 0

    @property
    def stopped(self) -> bool:
        return self._stopped

    def stop(self) -> None:
        """End the loop after the current attempt or sleep."""
        self._stopped = True

    async def run(self, request: OperationRequest, sink: ResponseSink) -> ExecutionOutcome:
        """Drive attempts until one succeeds or retrying is not allowed.

        Raises:
            GraphQLClientError: Only for errors that are not retryable
        """
        self.attempts = 0
        last_error: Optional[GraphQLClientError] = None

        while not self._stopped:
            self.attempts += 1
            try:
                await self.executor.execute(request.model_copy(deep=True), sink)
            except GraphQLClientError as e:
                if not e.retryable:
                    raise
                last_error = e
                logger.error(f"Attempt {self.attempts} failed: {e}")
            else:
                logger.debug(f"Attempt {self.attempts} completed")
                return ExecutionOutcome(attempts=self.attempts)

            if not self.policy.enabled or self._stopped:
                break

            logger.info(f"Reconnecting in {self.policy.interval:.3f}s")
            await (self._sleep or asyncio.sleep)(self.policy.interval)

        return ExecutionOutcome(attempts=self.attempts, last_error=last_error)
