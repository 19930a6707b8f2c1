"""Pytest configuration and shared fixtures."""

import pytest
from fake_cluster import FakeCluster
from hypothesis import Verbosity, settings

from cluster_rotator.executor import RetryingExecutor

# Configure Hypothesis for property-based testing
settings.register_profile("default", max_examples=100, verbosity=Verbosity.normal)
settings.register_profile("ci", max_examples=1000, verbosity=Verbosity.verbose)
settings.register_profile("dev", max_examples=10, verbosity=Verbosity.verbose)

# Load the default profile
settings.load_profile("default")


class RecordingSleep:
    """Stand-in for time.sleep that records requested delays."""

    def __init__(self):
        self.delays: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def sleeper():
    return RecordingSleep()


@pytest.fixture
def executor(sleeper):
    """Executor with a small budget that never actually sleeps."""
    return RetryingExecutor(timeout_budget=3, backoff_seconds=1.0, sleep=sleeper)


@pytest.fixture
def scenario_cluster():
    """Three masters with B leading, four agents over two zones."""
    return FakeCluster(
        masters=["A", "B", "C"],
        leader="B",
        zones={"z1": ["a1", "a2"], "z2": ["a3", "a4"]},
    )


@pytest.fixture
def sample_config_data():
    """Sample rotation config file contents."""
    return {
        "timeout_budget": 10,
        "backoff_seconds": 0.5,
        "terminate_command": "aws ec2 terminate-instances --instance-ids {instance_id}",
        "backup_command": "etcdctl snapshot save /tmp/backup.db",
        "backup_before_run": True,
        "zone_label": "topology.kubernetes.io/zone",
    }
