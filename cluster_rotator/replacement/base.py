"""Shared step execution for the replacement sequencers."""

from collections.abc import Callable

from cluster_rotator.backend import ClusterBackend
from cluster_rotator.exceptions import ExecutorTimeoutError, HealthCheckError, ReplacementError
from cluster_rotator.executor import RetryingExecutor
from cluster_rotator.health import HealthGate
from cluster_rotator.logging_config import get_logger
from cluster_rotator.models.cluster import HealthCheckName
from cluster_rotator.models.node import Node
from cluster_rotator.models.run import ReplacementState, ReplacementStep, RotationEvent, StepAction

logger = get_logger(__name__)

EventCallback = Callable[[RotationEvent], None]


class Sequencer:
    """Base class driving ``ReplacementStep`` values through the executor."""

    def __init__(
        self,
        backend: ClusterBackend,
        executor: RetryingExecutor,
        health_gate: HealthGate,
        on_event: EventCallback | None = None,
    ):
        self.backend = backend
        self.executor = executor
        self.health_gate = health_gate
        self.on_event = on_event

    def _emit(
        self,
        state: ReplacementState,
        node: Node | None = None,
        zone: str | None = None,
        message: str = "",
    ) -> None:
        event = RotationEvent(state=state, node=node, zone=zone, message=message)
        logger.debug(f"[{state.value}] {message}")
        if self.on_event:
            self.on_event(event)

    def _action_for(self, step: ReplacementStep) -> Callable[[], None]:
        if step.action == StepAction.TERMINATE:
            return lambda: self.backend.terminate_instance(step.node)
        if step.action == StepAction.DECOMMISSION:
            return lambda: self.backend.decommission_agent(step.node)
        if step.action == StepAction.WAIT_FOR_REJOIN:
            return lambda: self.backend.wait_for_count(step.role, step.expected_count)
        raise ValueError(f"Unknown step action: {step.action}")

    def run_step(self, step: ReplacementStep) -> None:
        """Execute one step; any timeout is fatal.

        Raises:
            ReplacementError: If the step exhausted its attempt budget
        """
        description = step.describe()
        try:
            self.executor.execute(self._action_for(step), description, step.timeout_budget)
        except ExecutorTimeoutError as e:
            node_name = step.node.name if step.node else None
            raise ReplacementError(description, node_name, e) from e

    def query(self, action: Callable, description: str):
        """Run a read-only collaborator query through the executor.

        Raises:
            ReplacementError: If the query exhausted its attempt budget
        """
        try:
            return self.executor.execute(action, description).value
        except ExecutorTimeoutError as e:
            raise ReplacementError(description, None, e) from e

    def run_gate(self, names: tuple[HealthCheckName, ...], node: Node | None = None) -> None:
        """Run a health gate after a destructive step.

        Raises:
            ReplacementError: If any check in the gate failed
        """
        try:
            self.health_gate.check_all(names)
        except HealthCheckError as e:
            node_name = node.name if node else None
            raise ReplacementError(f"health check {e.check.value}", node_name, e) from e
