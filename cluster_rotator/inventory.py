"""Point-in-time cluster inventory.

A snapshot is an informational baseline: it records which masters, leader
and agents existed when it was taken and supplies the node counts the
sequencers must restore. The three queries are independent, so a snapshot
is only as consistent as the collaborator's answers.
"""

from pydantic import ValidationError

from cluster_rotator.backend import ClusterBackend
from cluster_rotator.exceptions import ExecutorTimeoutError, SnapshotError
from cluster_rotator.executor import RetryingExecutor
from cluster_rotator.logging_config import get_logger
from cluster_rotator.models.cluster import ClusterSnapshot

logger = get_logger(__name__)


class InventorySnapshot:
    """Captures ``ClusterSnapshot`` values through the retrying executor."""

    def __init__(self, backend: ClusterBackend, executor: RetryingExecutor):
        self.backend = backend
        self.executor = executor

    def capture(self) -> ClusterSnapshot:
        """Query masters, leader and agents and assemble a snapshot.

        Returns:
            The captured snapshot

        Raises:
            SnapshotError: If any query times out or the answers are inconsistent
        """
        logger.debug("Capturing cluster inventory")

        try:
            masters = self.executor.execute(self.backend.list_masters, "list masters").value
            leader = self.executor.execute(self.backend.current_leader, "find leader").value
            agents = self.executor.execute(self.backend.list_agents, "list agents").value
        except ExecutorTimeoutError as e:
            raise SnapshotError(f"Failed to capture cluster inventory: {e.message}", e.details)

        try:
            snapshot = ClusterSnapshot(masters=tuple(masters), leader=leader, agents=tuple(agents))
        except ValidationError as e:
            problems = "; ".join(err["msg"] for err in e.errors())
            raise SnapshotError("Cluster inventory is inconsistent", problems)

        logger.info(
            f"Captured inventory: {snapshot.master_count} masters (leader {snapshot.leader.name}), "
            f"{snapshot.agent_count} agents"
        )
        return snapshot
