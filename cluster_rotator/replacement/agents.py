"""Agent replacement, one availability zone at a time."""

from cluster_rotator.logging_config import get_logger
from cluster_rotator.models.cluster import AGENT_GATE, ClusterSnapshot
from cluster_rotator.models.node import AGENT, Node
from cluster_rotator.models.run import ReplacementState, ReplacementStep, StepAction
from cluster_rotator.replacement.base import Sequencer

logger = get_logger(__name__)


class AgentReplacementSequencer(Sequencer):
    """Replaces agents zone by zone.

    Zone membership is queried when the zone's turn comes rather than taken
    from the snapshot, since replacements in earlier zones change the agent
    population. The snapshot only supplies the agent count to restore.
    """

    def zones(self) -> list[str]:
        return list(self.query(self.backend.list_zones, "list zones"))

    def agents_in_zone(self, zone: str) -> list[Node]:
        return list(
            self.query(lambda: self.backend.list_agents_in_zone(zone), f"list agents in {zone}")
        )

    def run(self, snapshot: ClusterSnapshot) -> None:
        """Replace the agents of every zone, sequentially.

        Raises:
            ReplacementError: On the first step that fails; later zones are not touched
        """
        expected = snapshot.agent_count
        zones = self.zones()
        logger.info(f"Replacing agents across {len(zones)} zones: {', '.join(zones)}")

        for zone in zones:
            self.replace_zone(zone, expected)

        self._emit(ReplacementState.DONE, message=f"All {len(zones)} zones replaced")

    def replace_zone(self, zone: str, expected_count: int) -> None:
        """Terminate and decommission every agent in ``zone``, then wait and check."""
        hosts = self.agents_in_zone(zone)
        logger.info(f"Zone {zone}: replacing {len(hosts)} agents")

        for node in hosts:
            self._emit(
                ReplacementState.REPLACING,
                node=node,
                zone=zone,
                message=f"Terminating agent {node.name}",
            )
            self.run_step(ReplacementStep(node=node, action=StepAction.TERMINATE, role=AGENT))
            self.run_step(ReplacementStep(node=node, action=StepAction.DECOMMISSION, role=AGENT))

        # Rejoining agents come from auto-provisioning, not necessarily 1:1
        self._emit(
            ReplacementState.WAITING_FOR_REJOIN,
            zone=zone,
            message=f"Waiting for {expected_count} agents",
        )
        self.run_step(
            ReplacementStep(
                action=StepAction.WAIT_FOR_REJOIN, role=AGENT, expected_count=expected_count
            )
        )

        self._emit(ReplacementState.HEALTH_CHECKING, zone=zone, message="Checking agents")
        self.run_gate(AGENT_GATE)

        logger.info(f"Zone {zone}: done")
        self._emit(ReplacementState.DONE, zone=zone, message=f"Zone {zone} replaced")
