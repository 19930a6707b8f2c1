"""Retrying execution of collaborator calls with linear backoff."""

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from cluster_rotator.exceptions import CollaboratorError, ExecutorTimeoutError
from cluster_rotator.logging_config import get_logger
from cluster_rotator.models.config import DEFAULT_TIMEOUT_BUDGET

logger = get_logger(__name__)


@dataclass
class ExecutionResult:
    """Successful outcome of a retried action.

    Attributes:
        value: Whatever the action returned on its successful attempt
        attempts: Number of attempts made, including the successful one
        total_delay: Seconds spent sleeping between attempts
    """

    value: Any
    attempts: int
    total_delay: float


class RetryingExecutor:
    """Run an action until it succeeds or its attempt budget is spent.

    The delay before attempt ``n`` (0-indexed) is ``n * backoff_seconds``, so
    the worst case waits ``backoff_seconds * (0 + 1 + ... + (budget - 1))``
    before giving up.
    """

    def __init__(
        self,
        timeout_budget: int = DEFAULT_TIMEOUT_BUDGET,
        backoff_seconds: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize the executor.

        Args:
            timeout_budget: Default number of attempts per action
            backoff_seconds: Length of one backoff unit
            sleep: Blocking delay function (injectable for tests)
        """
        if timeout_budget < 1:
            raise ValueError(f"timeout_budget must be at least 1, got {timeout_budget}")
        if backoff_seconds < 0:
            raise ValueError(f"backoff_seconds cannot be negative, got {backoff_seconds}")
        self.timeout_budget = timeout_budget
        self.backoff_seconds = backoff_seconds
        self._sleep = sleep

    def delay_for(self, attempt: int) -> float:
        """Delay in seconds before the given 0-indexed attempt."""
        return attempt * self.backoff_seconds

    def delays(self, timeout_budget: int | None = None) -> list[float]:
        """Full delay schedule for a budget."""
        budget = self._budget(timeout_budget)
        return [self.delay_for(n) for n in range(budget)]

    def _budget(self, timeout_budget: int | None) -> int:
        budget = self.timeout_budget if timeout_budget is None else timeout_budget
        if budget < 1:
            raise ValueError(f"timeout_budget must be at least 1, got {budget}")
        return budget

    def execute(
        self,
        action: Callable[[], Any],
        description: str,
        timeout_budget: int | None = None,
    ) -> ExecutionResult:
        """Invoke ``action`` until it returns without a collaborator error.

        Args:
            action: Zero-argument callable wrapping one collaborator call
            description: Human readable name of the action, used in logs and errors
            timeout_budget: Attempt budget overriding the executor default

        Returns:
            ExecutionResult carrying the action's return value

        Raises:
            ExecutorTimeoutError: If every attempt in the budget failed
        """
        budget = self._budget(timeout_budget)

        last_error: CollaboratorError | None = None
        total_delay = 0.0

        for attempt in range(budget):
            delay = self.delay_for(attempt)
            if delay > 0:
                self._sleep(delay)
                total_delay += delay

            try:
                value = action()
            except CollaboratorError as e:
                last_error = e
                logger.debug(f"{description}: attempt {attempt + 1}/{budget} failed: {e.message}")
                continue

            if attempt > 0:
                logger.info(f"{description}: succeeded after {attempt + 1} attempts")
            else:
                logger.debug(f"{description}: succeeded")
            return ExecutionResult(value=value, attempts=attempt + 1, total_delay=total_delay)

        logger.error(f"{description}: giving up after {budget} attempts")
        raise ExecutorTimeoutError(description, budget, last_error)
