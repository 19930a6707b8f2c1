"""Data models for replacement steps and run outcomes."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from cluster_rotator.models.cluster import ClusterSnapshot
from cluster_rotator.models.node import Node


class StepAction(str, Enum):
    """External action a replacement step performs."""

    TERMINATE = "terminate"
    WAIT_FOR_REJOIN = "wait-for-rejoin"
    DECOMMISSION = "decommission"


class ReplacementState(str, Enum):
    """Named states a sequencer moves through for each target."""

    REPLACING = "replacing"
    WAITING_FOR_REJOIN = "waiting-for-rejoin"
    HEALTH_CHECKING = "health-checking"
    DONE = "done"


class ReplacementStep(BaseModel):
    """A single unit of work handed to the retrying executor."""

    model_config = ConfigDict(frozen=True)

    node: Node | None = None
    action: StepAction
    timeout_budget: int | None = None
    role: str | None = None
    expected_count: int | None = None

    @field_validator("timeout_budget")
    @classmethod
    def validate_timeout_budget(cls, v: int | None) -> int | None:
        """Validate the attempt budget is positive."""
        if v is not None and v < 1:
            raise ValueError("timeout_budget must be at least 1")
        return v

    def describe(self) -> str:
        if self.action == StepAction.WAIT_FOR_REJOIN:
            return f"wait for {self.expected_count} {self.role} nodes"
        return f"{self.action.value} {self.node.name}"


class RotationEvent(BaseModel):
    """State transition published by a sequencer."""

    model_config = ConfigDict(frozen=True)

    state: ReplacementState
    node: Node | None = None
    zone: str | None = None
    message: str = ""


class RunResult(BaseModel):
    """Outcome of a whole rotation run."""

    success: bool
    failed_step: str | None = None
    error: str | None = None
    before: ClusterSnapshot | None = None
    after: ClusterSnapshot | None = None
    events: list[RotationEvent] = Field(default_factory=list)

    @property
    def exit_code(self) -> int:
        return 0 if self.success else 1
