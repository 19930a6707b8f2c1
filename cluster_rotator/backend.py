"""Contract for the external systems a rotation run talks to.

The orchestrator never inspects a cluster directly. Every query and action
goes through a ``ClusterBackend``; implementations raise
``CollaboratorError`` for any failed call and the retrying executor decides
whether the failure is still transient.
"""

from abc import ABC, abstractmethod

from cluster_rotator.models.cluster import HealthCheckName
from cluster_rotator.models.node import Node


class ClusterBackend(ABC):
    """Inventory, health and instance lifecycle operations for one cluster."""

    @abstractmethod
    def list_masters(self) -> list[Node]:
        """Return the control-plane nodes."""

    @abstractmethod
    def current_leader(self) -> Node:
        """Return the master currently holding leadership."""

    @abstractmethod
    def list_agents(self) -> list[Node]:
        """Return the worker nodes."""

    @abstractmethod
    def list_zones(self) -> list[str]:
        """Return the availability zones agents are spread over, in processing order."""

    @abstractmethod
    def list_agents_in_zone(self, zone: str) -> list[Node]:
        """Return the agents currently assigned to ``zone``."""

    @abstractmethod
    def check_health(self, name: HealthCheckName) -> None:
        """Run one health probe; raise ``CollaboratorError`` if it does not pass."""

    @abstractmethod
    def terminate_instance(self, node: Node) -> None:
        """Terminate the instance backing ``node``."""

    @abstractmethod
    def decommission_agent(self, node: Node) -> None:
        """Remove ``node`` from the cluster's membership view."""

    @abstractmethod
    def wait_for_count(self, role: str, expected_count: int) -> None:
        """Probe once whether exactly ``expected_count`` nodes of ``role`` are present."""

    def backup_state(self) -> None:
        """Take a backup of cluster state before destructive work. No-op by default."""
        return None
