"""Health gating around destructive steps."""

from collections.abc import Callable, Iterable

from cluster_rotator.backend import ClusterBackend
from cluster_rotator.exceptions import ExecutorTimeoutError, HealthCheckError
from cluster_rotator.executor import RetryingExecutor
from cluster_rotator.logging_config import get_logger
from cluster_rotator.models.cluster import AGENT_GATE, CONTROL_PLANE_GATE, HealthCheckName

logger = get_logger(__name__)


class HealthGate:
    """Runs an ordered list of health checks and stops at the first failure."""

    def __init__(
        self,
        backend: ClusterBackend,
        executor: RetryingExecutor,
        on_check_passed: Callable[[HealthCheckName], None] | None = None,
    ):
        self.backend = backend
        self.executor = executor
        self.on_check_passed = on_check_passed

    def check_all(self, names: Iterable[HealthCheckName]) -> None:
        """Run every check in order.

        Args:
            names: Checks to run, in the order they must pass

        Raises:
            HealthCheckError: Naming the first check that did not pass
        """
        for name in names:
            name = HealthCheckName(name)
            try:
                self.executor.execute(
                    lambda name=name: self.backend.check_health(name),
                    f"health check {name.value}",
                )
            except ExecutorTimeoutError as e:
                cause = e.last_error if e.last_error is not None else e
                logger.error(f"Health check {name.value} failed: {cause}")
                raise HealthCheckError(name, cause) from e

            logger.info(f"Health check {name.value} passed")
            if self.on_check_passed:
                self.on_check_passed(name)

    def check_control_plane(self) -> None:
        self.check_all(CONTROL_PLANE_GATE)

    def check_agents(self) -> None:
        self.check_all(AGENT_GATE)
