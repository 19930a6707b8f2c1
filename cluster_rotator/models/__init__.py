"""Data models for cluster inventory, configuration and run state."""

from cluster_rotator.models.cluster import (
    AGENT_GATE,
    CONTROL_PLANE_GATE,
    ClusterSnapshot,
    HealthCheckName,
    ReplacementPlan,
)
from cluster_rotator.models.config import RotationConfig
from cluster_rotator.models.node import AGENT, MASTER, Node
from cluster_rotator.models.run import (
    ReplacementState,
    ReplacementStep,
    RotationEvent,
    RunResult,
    StepAction,
)

__all__ = [
    "AGENT",
    "AGENT_GATE",
    "CONTROL_PLANE_GATE",
    "MASTER",
    "ClusterSnapshot",
    "HealthCheckName",
    "Node",
    "ReplacementPlan",
    "ReplacementState",
    "ReplacementStep",
    "RotationConfig",
    "RotationEvent",
    "RunResult",
    "StepAction",
]
