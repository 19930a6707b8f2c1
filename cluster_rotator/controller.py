"""Top-level driver for a full rotation run."""

from collections.abc import Callable

from cluster_rotator.backend import ClusterBackend
from cluster_rotator.exceptions import (
    ExecutorTimeoutError,
    HealthCheckError,
    ReplacementError,
    RotationError,
)
from cluster_rotator.executor import RetryingExecutor
from cluster_rotator.health import HealthGate
from cluster_rotator.inventory import InventorySnapshot
from cluster_rotator.logging_config import get_logger
from cluster_rotator.models.cluster import ClusterSnapshot, HealthCheckName, ReplacementPlan
from cluster_rotator.models.config import RotationConfig
from cluster_rotator.models.run import RotationEvent, RunResult
from cluster_rotator.replacement import AgentReplacementSequencer, MasterReplacementSequencer

logger = get_logger(__name__)

PREFLIGHT = "pre-flight health gate"
BACKUP = "backup"
BEFORE_SNAPSHOT = "before snapshot"
MASTERS = "master replacement"
AGENTS = "agent replacement"
AFTER_SNAPSHOT = "after snapshot"

SUMMARY_ROWS = (
    ("Master count", "master_count"),
    ("Masters", "masters"),
    ("Leader", "leader"),
    ("Agent count", "agent_count"),
    ("Agents", "agents"),
)


class RunController:
    """Composes health gate, snapshots and sequencers into one run.

    The controller is the only place a fatal error turns into a result.
    There is no rollback: a failed run is meant to be investigated and
    re-run, relying on the cluster's own recovery for terminated nodes.
    """

    def __init__(
        self,
        backend: ClusterBackend,
        config: RotationConfig | None = None,
        executor: RetryingExecutor | None = None,
        on_event: Callable[[RotationEvent], None] | None = None,
        on_check_passed: Callable[[HealthCheckName], None] | None = None,
    ):
        self.backend = backend
        self.config = config or RotationConfig()
        self.executor = executor or RetryingExecutor(
            timeout_budget=self.config.timeout_budget,
            backoff_seconds=self.config.backoff_seconds,
        )
        self.on_event = on_event
        self.events: list[RotationEvent] = []

        self.health_gate = HealthGate(backend, self.executor, on_check_passed=on_check_passed)
        self.inventory = InventorySnapshot(backend, self.executor)
        self.masters = MasterReplacementSequencer(
            backend, self.executor, self.health_gate, on_event=self._record
        )
        self.agents = AgentReplacementSequencer(
            backend, self.executor, self.health_gate, on_event=self._record
        )

    def _record(self, event: RotationEvent) -> None:
        self.events.append(event)
        if self.on_event:
            self.on_event(event)

    def _backup(self) -> None:
        self.executor.execute(self.backend.backup_state, "backup cluster state")

    @staticmethod
    def _describe_failure(phase: str, error: RotationError) -> str:
        if isinstance(error, ReplacementError):
            target = f" on {error.node}" if error.node else ""
            return f"{phase}: {error.step}{target}"
        if isinstance(error, HealthCheckError):
            return f"{phase}: {error.check.value}"
        if isinstance(error, ExecutorTimeoutError):
            return f"{phase}: {error.description}"
        return phase

    def run(self) -> RunResult:
        """Execute the whole rotation.

        Returns:
            RunResult describing success or the first fatal step
        """
        before: ClusterSnapshot | None = None
        after: ClusterSnapshot | None = None
        phase = PREFLIGHT

        try:
            logger.info("Running pre-flight health gate")
            self.health_gate.check_control_plane()

            if self.config.backup_before_run:
                phase = BACKUP
                logger.info("Backing up cluster state")
                self._backup()

            phase = BEFORE_SNAPSHOT
            before = self.inventory.capture()
            logger.info(f"Before: {before.to_summary_dict()}")

            phase = MASTERS
            self.masters.run(before)

            if self.config.skip_agents:
                logger.info("Skipping agent replacement")
            else:
                phase = AGENTS
                self.agents.run(before)

            phase = AFTER_SNAPSHOT
            after = self.inventory.capture()
            logger.info(f"After: {after.to_summary_dict()}")

        except RotationError as e:
            failed_step = self._describe_failure(phase, e)
            logger.error(f"Rotation aborted during {failed_step}: {e.message}")
            return RunResult(
                success=False,
                failed_step=failed_step,
                error=e.format_message(),
                before=before,
                after=after,
                events=list(self.events),
            )

        logger.info("Rotation completed successfully")
        return RunResult(success=True, before=before, after=after, events=list(self.events))

    @staticmethod
    def summary(result: RunResult) -> list[tuple[str, str, str]]:
        """Before/after rows for masters, leader and agents.

        A snapshot that was never captured renders as ``-``.
        """

        def cell(snapshot: ClusterSnapshot | None, key: str) -> str:
            if snapshot is None:
                return "-"
            value = snapshot.to_summary_dict()[key]
            if isinstance(value, list):
                return ", ".join(value) or "-"
            return str(value)

        return [
            (label, cell(result.before, key), cell(result.after, key))
            for label, key in SUMMARY_ROWS
        ]

    def plan(self) -> ReplacementPlan:
        """Work out what ``run`` would replace, without destructive actions.

        Raises:
            RotationError: If the inventory or zone queries fail
        """
        snapshot = self.inventory.capture()
        masters = MasterReplacementSequencer.order(snapshot)
        zones: list[tuple[str, tuple]] = []
        if not self.config.skip_agents:
            for zone in self.agents.zones():
                zones.append((zone, tuple(self.agents.agents_in_zone(zone))))
        return ReplacementPlan(snapshot=snapshot, masters=tuple(masters), zones=tuple(zones))
