"""Data models for cluster state snapshots and health checks."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

from cluster_rotator.models.node import AGENT, MASTER, Node


class HealthCheckName(str, Enum):
    """The fixed set of cluster health checks."""

    CONSENSUS_STORE = "consensus-store"
    LEADER_ELECTION = "leader-election"
    CONTROL_PLANE_SNAPSHOT = "control-plane-snapshot"
    COORDINATION_SERVICE = "coordination-service"
    AGENT_SNAPSHOT = "agent-snapshot"


# Run before the first destructive step and after every master replacement
CONTROL_PLANE_GATE = (
    HealthCheckName.CONSENSUS_STORE,
    HealthCheckName.LEADER_ELECTION,
    HealthCheckName.CONTROL_PLANE_SNAPSHOT,
    HealthCheckName.COORDINATION_SERVICE,
)

# Run after every agent zone
AGENT_GATE = (HealthCheckName.AGENT_SNAPSHOT,)


class ClusterSnapshot(BaseModel):
    """Cluster inventory captured at a point in time."""

    model_config = ConfigDict(frozen=True)

    masters: tuple[Node, ...]
    leader: Node
    agents: tuple[Node, ...] = ()
    captured_at: datetime = Field(default_factory=datetime.now)

    @model_validator(mode="after")
    def validate_membership(self) -> "ClusterSnapshot":
        """Validate roles and that the leader is one of the masters."""
        for node in self.masters:
            if node.role != MASTER:
                raise ValueError(f"node '{node.name}' listed as master has role '{node.role}'")
        for node in self.agents:
            if node.role != AGENT:
                raise ValueError(f"node '{node.name}' listed as agent has role '{node.role}'")
        if self.leader.name not in self.master_names:
            raise ValueError(
                f"leader '{self.leader.name}' is not one of the masters {self.master_names}"
            )
        return self

    @property
    def master_count(self) -> int:
        return len(self.masters)

    @property
    def agent_count(self) -> int:
        return len(self.agents)

    @property
    def master_names(self) -> list[str]:
        return [n.name for n in self.masters]

    @property
    def agent_names(self) -> list[str]:
        return [n.name for n in self.agents]

    def to_summary_dict(self) -> dict:
        """Convert to a plain summary for reporting."""
        return {
            "masters": self.master_names,
            "master_count": self.master_count,
            "leader": self.leader.name,
            "agents": self.agent_names,
            "agent_count": self.agent_count,
        }


class ReplacementPlan(BaseModel):
    """Order in which a run would replace nodes."""

    model_config = ConfigDict(frozen=True)

    snapshot: ClusterSnapshot
    masters: tuple[Node, ...]
    zones: tuple[tuple[str, tuple[Node, ...]], ...] = ()
