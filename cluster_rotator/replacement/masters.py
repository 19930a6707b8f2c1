"""Control-plane replacement, one master at a time with the leader last."""

from cluster_rotator.logging_config import get_logger
from cluster_rotator.models.cluster import CONTROL_PLANE_GATE, ClusterSnapshot
from cluster_rotator.models.node import MASTER, Node
from cluster_rotator.models.run import ReplacementState, ReplacementStep, StepAction
from cluster_rotator.replacement.base import Sequencer

logger = get_logger(__name__)


class MasterReplacementSequencer(Sequencer):
    """Replaces every master from a snapshot.

    Each master goes through terminate, wait for the master count to be
    restored, and the control-plane health gate before the next one is
    touched. The leader is replaced after all of its peers.
    """

    @staticmethod
    def order(snapshot: ClusterSnapshot) -> list[Node]:
        """Non-leader masters in snapshot order, followed by the leader."""
        peers = [n for n in snapshot.masters if n.name != snapshot.leader.name]
        leader = next(n for n in snapshot.masters if n.name == snapshot.leader.name)
        return peers + [leader]

    def run(self, snapshot: ClusterSnapshot) -> None:
        """Replace all masters.

        Raises:
            ReplacementError: On the first step that fails; nothing after it runs
        """
        expected = snapshot.master_count
        targets = self.order(snapshot)
        logger.info(
            f"Replacing {expected} masters in order: {', '.join(n.name for n in targets)}"
        )

        for index, node in enumerate(targets, start=1):
            role_note = " (leader)" if node.name == snapshot.leader.name else ""
            self.replace(node, expected, f"master {index}/{expected}{role_note}")

        self._emit(ReplacementState.DONE, message=f"All {expected} masters replaced")

    def replace(self, node: Node, expected_count: int, label: str = "master") -> None:
        """Run the three-step cycle for one master."""
        self._emit(ReplacementState.REPLACING, node=node, message=f"Terminating {label} {node.name}")
        self.run_step(
            ReplacementStep(node=node, action=StepAction.TERMINATE, role=MASTER)
        )

        self._emit(
            ReplacementState.WAITING_FOR_REJOIN,
            node=node,
            message=f"Waiting for {expected_count} masters",
        )
        self.run_step(
            ReplacementStep(
                node=node,
                action=StepAction.WAIT_FOR_REJOIN,
                role=MASTER,
                expected_count=expected_count,
            )
        )

        self._emit(ReplacementState.HEALTH_CHECKING, node=node, message="Checking control plane")
        self.run_gate(CONTROL_PLANE_GATE, node)

        logger.info(f"Replaced {label} {node.name}")
        self._emit(ReplacementState.DONE, node=node, message=f"Replaced {label} {node.name}")
