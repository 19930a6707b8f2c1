"""Kubernetes implementation of the cluster collaborators.

Inventory and health come from the Kubernetes API of the selected kubeconfig
context. Instances are terminated by an operator supplied command (typically
a cloud provider CLI), which picks up its credentials from the environment.
"""

import shlex
import subprocess
from datetime import datetime, timezone

from kubernetes import client, config
from kubernetes.client.rest import ApiException
from urllib3.exceptions import HTTPError

from cluster_rotator.backend import ClusterBackend
from cluster_rotator.exceptions import CollaboratorError, ConfigurationError, KubernetesError
from cluster_rotator.logging_config import get_logger
from cluster_rotator.models.cluster import HealthCheckName
from cluster_rotator.models.config import RotationConfig
from cluster_rotator.models.node import AGENT, MASTER, Node

logger = get_logger(__name__)

CONTROL_PLANE_LABELS = ("node-role.kubernetes.io/control-plane", "node-role.kubernetes.io/master")


def node_role(labels: dict) -> str:
    """Map Kubernetes node labels to a rotation role."""
    if any(label in labels for label in CONTROL_PLANE_LABELS):
        return MASTER
    if labels.get("node-role") == "control-plane":
        return MASTER
    return AGENT


def instance_id_from_provider(provider_id: str | None) -> str | None:
    """Extract the instance id from a providerID such as ``aws:///us-east-1a/i-0abc``."""
    if not provider_id:
        return None
    instance_id = provider_id.rstrip("/").rsplit("/", 1)[-1]
    return instance_id or None


def is_ready(k8s_node) -> bool:
    for condition in k8s_node.status.conditions or []:
        if condition.type == "Ready":
            return condition.status == "True"
    return False


class KubernetesBackend(ClusterBackend):
    """Collaborators backed by the Kubernetes API and a terminate command."""

    def __init__(self, core_api, coordination_api, rotation_config: RotationConfig | None = None):
        """Initialize the backend.

        Args:
            core_api: ``CoreV1Api`` instance
            coordination_api: ``CoordinationV1Api`` instance
            rotation_config: Label, lease and command settings
        """
        self.core = core_api
        self.coordination = coordination_api
        self.config = rotation_config or RotationConfig()
        # UIDs of node objects this backend terminated; they may linger in the API
        # until reaped, and a replacement can come back under the same name
        self.retired: set[str] = set()
        self._uids: dict[str, str] = {}

    @classmethod
    def from_context(
        cls, context: str, rotation_config: RotationConfig | None = None
    ) -> "KubernetesBackend":
        """Build a backend for a kubeconfig context.

        Raises:
            ConfigurationError: If the kubeconfig or context cannot be loaded
        """
        try:
            config.load_kube_config(context=context)
        except Exception as e:
            raise ConfigurationError(
                f"Failed to load kubeconfig context '{context}'",
                f"{e}\n\nCheck that the context exists: kubectl config get-contexts",
            )
        return cls(client.CoreV1Api(), client.CoordinationV1Api(), rotation_config)

    def _to_node(self, k8s_node) -> Node:
        labels = k8s_node.metadata.labels or {}
        role = node_role(labels)
        zone = None
        if role == AGENT:
            zone = labels.get(self.config.zone_label) or self.config.unzoned_name
        return Node(
            name=k8s_node.metadata.name,
            role=role,
            zone=zone,
            instance_id=instance_id_from_provider(k8s_node.spec.provider_id),
        )

    def _api_call(self, failure: str, call, *args, missing_ok: bool = False):
        """Invoke a Kubernetes client method, mapping every failure to ``KubernetesError``.

        Connection failures surface from urllib3 rather than as ``ApiException``.
        """
        try:
            return call(*args)
        except ApiException as e:
            if missing_ok and e.status == 404:
                return None
            details = f"{e.status} {e.reason}"
            if e.body:
                details = f"{details}: {e.body}"
            raise KubernetesError(failure, details)
        except (HTTPError, OSError) as e:
            raise KubernetesError(failure, f"API server unreachable: {e}")

    def _list_k8s_nodes(self) -> list:
        response = self._api_call("Failed to list nodes", self.core.list_node)
        self._uids = {n.metadata.name: n.metadata.uid for n in response.items}
        return [n for n in response.items if n.metadata.uid not in self.retired]

    def _retire(self, node: Node) -> None:
        uid = self._uids.get(node.name)
        if uid is None:
            logger.debug(f"No known uid for {node.name}, nothing to retire")
            return
        self.retired.add(uid)

    def _nodes(self, role: str) -> list[Node]:
        nodes = [self._to_node(n) for n in self._list_k8s_nodes()]
        return [n for n in nodes if n.role == role]

    def list_masters(self) -> list[Node]:
        return self._nodes(MASTER)

    def list_agents(self) -> list[Node]:
        return self._nodes(AGENT)

    def list_zones(self) -> list[str]:
        return sorted({n.zone for n in self.list_agents()})

    def list_agents_in_zone(self, zone: str) -> list[Node]:
        return [n for n in self.list_agents() if n.zone == zone]

    def _read_leader_lease(self):
        return self._api_call(
            f"Failed to read lease {self.config.leader_lease_namespace}/"
            f"{self.config.leader_lease_name}",
            self.coordination.read_namespaced_lease,
            self.config.leader_lease_name,
            self.config.leader_lease_namespace,
        )

    def current_leader(self) -> Node:
        lease = self._read_leader_lease()
        holder = lease.spec.holder_identity if lease.spec else None
        if not holder:
            raise CollaboratorError("Leader lease has no holder")

        # Holder identities look like "<node-name>_<uuid>"
        holder_name = holder.split("_", 1)[0]
        for node in self.list_masters():
            if node.name == holder_name:
                return node
        raise CollaboratorError(
            f"Leader '{holder_name}' is not a current master",
            "Leadership may be moving; the lease will be re-read",
        )

    def _readyz(self, path: str) -> None:
        body = self._api_call(
            f"{path} is not ready",
            lambda: self.core.api_client.call_api(
                path,
                "GET",
                auth_settings=["BearerToken"],
                response_type="str",
                _return_http_data_only=True,
            ),
        )
        if body is not None and str(body).strip() not in ("ok", ""):
            raise CollaboratorError(f"{path} is not ready", str(body))

    def _check_lease_fresh(self) -> None:
        lease = self._read_leader_lease()
        spec = lease.spec
        if spec is None or not spec.holder_identity or spec.renew_time is None:
            raise CollaboratorError("Leader lease has not been acquired")

        renew_time = spec.renew_time
        if renew_time.tzinfo is None:
            renew_time = renew_time.replace(tzinfo=timezone.utc)
        age = (datetime.now(timezone.utc) - renew_time).total_seconds()
        duration = spec.lease_duration_seconds or 15
        if age > duration:
            raise CollaboratorError(
                "Leader lease is stale",
                f"Last renewed {age:.0f}s ago, lease duration is {duration}s",
            )

    def _check_all_ready(self, role: str) -> None:
        nodes = [n for n in self._list_k8s_nodes() if node_role(n.metadata.labels or {}) == role]
        if not nodes:
            raise CollaboratorError(f"No {role} nodes found")
        not_ready = [n.metadata.name for n in nodes if not is_ready(n)]
        if not_ready:
            raise CollaboratorError(f"{role} nodes not ready: {', '.join(sorted(not_ready))}")

    def check_health(self, name: HealthCheckName) -> None:
        name = HealthCheckName(name)
        if name == HealthCheckName.CONSENSUS_STORE:
            self._readyz("/readyz/etcd")
        elif name == HealthCheckName.LEADER_ELECTION:
            self._check_lease_fresh()
        elif name == HealthCheckName.CONTROL_PLANE_SNAPSHOT:
            self._check_all_ready(MASTER)
        elif name == HealthCheckName.COORDINATION_SERVICE:
            self._readyz("/readyz")
        elif name == HealthCheckName.AGENT_SNAPSHOT:
            self._check_all_ready(AGENT)

    def _run_command(self, command: list[str], description: str) -> None:
        logger.debug(f"Running: {' '.join(command)}")
        try:
            subprocess.run(
                command,
                capture_output=True,
                text=True,
                check=True,
                timeout=self.config.command_timeout,
            )
        except subprocess.TimeoutExpired:
            raise CollaboratorError(
                f"{description} timed out",
                f"Command did not finish within {self.config.command_timeout} seconds",
            )
        except subprocess.CalledProcessError as e:
            raise CollaboratorError(
                f"{description} failed with return code {e.returncode}", e.stderr
            )
        except FileNotFoundError:
            raise CollaboratorError(
                f"{description} failed: '{command[0]}' not found in PATH",
                "Install the provider CLI or fix the configured command",
            )

    def terminate_instance(self, node: Node) -> None:
        if not self.config.terminate_command:
            raise ConfigurationError(
                "No terminate_command configured",
                "Set terminate_command in the rotation config, e.g. "
                "'aws ec2 terminate-instances --instance-ids {instance_id}'",
            )
        command = self.config.terminate_command.format(
            instance_id=node.instance_ref, node=node.name, zone=node.zone or ""
        )
        self._run_command(shlex.split(command), f"Terminating {node.name}")
        self._retire(node)
        logger.info(f"Terminated instance {node.instance_ref} ({node.name})")

    def decommission_agent(self, node: Node) -> None:
        deleted = self._api_call(
            f"Failed to delete node {node.name}", self.core.delete_node, node.name, missing_ok=True
        )
        if deleted is None:
            logger.debug(f"Node {node.name} already removed")
        self._retire(node)
        logger.info(f"Decommissioned agent {node.name}")

    def wait_for_count(self, role: str, expected_count: int) -> None:
        nodes = [n for n in self._list_k8s_nodes() if node_role(n.metadata.labels or {}) == role]
        ready = sum(1 for n in nodes if is_ready(n))
        if ready != expected_count:
            raise CollaboratorError(f"{ready}/{expected_count} {role} nodes ready")

    def backup_state(self) -> None:
        if not self.config.backup_command:
            logger.debug("No backup_command configured, skipping backup")
            return
        self._run_command(shlex.split(self.config.backup_command), "Backup")
        logger.info("Cluster state backed up")
